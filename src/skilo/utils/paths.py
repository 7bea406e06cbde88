"""Path helpers shared by the cache and fetch layers."""

import logging
import os
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)


def expand_path(path: Union[str, Path]) -> Path:
    """Expand ``~`` and ``$VARS`` in a user-supplied path and make it absolute.

    Symlinks are kept as they are, so replacing a symlinked destination
    replaces the link rather than the directory it points at.
    """
    return Path(os.path.expandvars(str(path))).expanduser().absolute()


def ensure_dir(path: Path) -> Path:
    """Create ``path`` and any missing ancestors; existing directories are fine.

    Raises:
        FileExistsError: If ``path`` exists and is not a directory
    """
    if not path.is_dir():
        logger.debug("Creating directory %s", path)
        path.mkdir(parents=True, exist_ok=True)
    return path


def is_within(path: Path, root: Path) -> bool:
    """Return True if ``path`` resolves to ``root`` or somewhere below it."""
    try:
        path.resolve().relative_to(root.resolve())
    except ValueError:
        return False
    return True
