"""Resolution of the git cache directory and its layout.

The cache follows a Cargo-like structure::

    ~/.skilo/
    └── git/
        ├── checkouts/    # working trees at specific revisions
        └── db/           # repository mirrors
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from skilo.core.errors import ConfigError

HOME_ENV = "SKILO_HOME"
CACHE_ENV = "SKILO_CACHE"
OFFLINE_ENV = "SKILO_OFFLINE"

DEFAULT_HOME = ".skilo"
GIT_DIR = "git"
DB_DIR = "db"
CHECKOUTS_DIR = "checkouts"


def _user_home() -> Optional[Path]:
    try:
        return Path.home()
    except (RuntimeError, KeyError):
        return None


def resolve_cache_root(
    cache_dir: Optional[str] = None, home: Optional[str] = None
) -> Optional[Path]:
    """Resolve the git cache directory from explicit settings.

    Resolution order:
    1. ``cache_dir`` (points straight at the git cache)
    2. ``home`` joined with ``git``
    3. ``~/.skilo/git``

    Args:
        cache_dir: Direct override for the git cache directory
        home: Override for the skilo home directory

    Returns:
        The git cache directory, or None if no home directory is known
    """
    if cache_dir:
        return Path(cache_dir).expanduser()
    if home:
        return Path(home).expanduser() / GIT_DIR

    user_home = _user_home()
    if user_home is None:
        return None
    return user_home / DEFAULT_HOME / GIT_DIR


def cache_root(environ: Optional[Mapping[str, str]] = None) -> Optional[Path]:
    """Resolve the git cache directory from environment variables.

    Args:
        environ: Environment mapping (defaults to ``os.environ``)

    Returns:
        The git cache directory, or None if it cannot be determined
    """
    env = os.environ if environ is None else environ
    return resolve_cache_root(cache_dir=env.get(CACHE_ENV), home=env.get(HOME_ENV))


def parse_offline_flag(value: Optional[str]) -> bool:
    """Interpret an offline flag: ``"1"`` or ``"true"`` in any case."""
    if value is None:
        return False
    return value == "1" or value.lower() == "true"


def is_offline(environ: Optional[Mapping[str, str]] = None) -> bool:
    """Check whether offline mode is requested via ``SKILO_OFFLINE``."""
    env = os.environ if environ is None else environ
    return parse_offline_flag(env.get(OFFLINE_ENV))


@dataclass(frozen=True)
class CachePaths:
    """Resolved locations of the git cache.

    Constructed once per invocation and handed to every component that
    touches the cache, so none of them read the environment directly.
    """

    root: Path

    @property
    def db_dir(self) -> Path:
        """Directory holding repository mirrors."""
        return self.root / DB_DIR

    @property
    def checkouts_dir(self) -> Path:
        """Directory holding per-revision working trees."""
        return self.root / CHECKOUTS_DIR

    @classmethod
    def from_settings(cls, settings) -> "CachePaths":
        """Build cache paths from a ``CacheSettings`` model.

        Raises:
            ConfigError: If no cache directory can be determined
        """
        root = resolve_cache_root(cache_dir=settings.cache_dir, home=settings.home)
        if root is None:
            raise ConfigError("Could not determine cache directory")
        return cls(root=root)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "CachePaths":
        """Build cache paths straight from environment variables.

        Raises:
            ConfigError: If no cache directory can be determined
        """
        root = cache_root(environ)
        if root is None:
            raise ConfigError("Could not determine cache directory")
        return cls(root=root)
