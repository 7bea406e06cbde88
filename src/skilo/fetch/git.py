"""Fetching git repositories into temporary directories."""

import logging
import re
import tempfile
from pathlib import Path
from typing import Optional

import pygit2

from skilo.core.errors import GitError, InvalidSourceError, NetworkError, RepoNotFoundError
from skilo.core.source import GitSource
from skilo.fetch.credentials import CredentialCallbacks
from skilo.utils.paths import ensure_dir, is_within

logger = logging.getLogger(__name__)

NETWORK_MARKERS = (
    "could not resolve host",
    "failed to resolve address",
    "network",
    "connection",
)

# libgit2 reports a missing branch the same way as a missing repository
REF_NOT_FOUND = re.compile(r"reference 'refs/[^']*' not found")


class FetchResult:
    """A fetched repository living in a temporary directory.

    The directory is removed by :meth:`cleanup`, which runs automatically
    when the result is used as a context manager::

        with fetcher.fetch(source) as result:
            shutil.copytree(result.root, dest)
    """

    def __init__(self, temp_dir: tempfile.TemporaryDirectory, root: Path):
        self._temp_dir = temp_dir
        self.path = Path(temp_dir.name)
        self.root = root

    def cleanup(self) -> None:
        """Remove the temporary directory. Safe to call more than once."""
        self._temp_dir.cleanup()

    def __enter__(self) -> "FetchResult":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup()


def _error_message(exc: Exception) -> str:
    # KeyError wraps its message in quotes when formatted with str()
    if exc.args and isinstance(exc.args[0], str):
        return exc.args[0]
    return str(exc)


def classify_clone_error(exc: Exception, url: str):
    """Map a pygit2 clone failure onto the skilo error taxonomy.

    pygit2 raises ``KeyError`` when libgit2 reports GIT_ENOTFOUND, and
    ``GitError`` (or ``ValueError``) for everything else. GIT_ENOTFOUND for a
    ref that does not exist on a reachable remote is a ``GitError``, not a
    missing repository.

    Args:
        exc: Exception raised by the clone
        url: URL that was being cloned

    Returns:
        NetworkError, RepoNotFoundError or GitError
    """
    message = _error_message(exc)
    lowered = message.lower()

    if any(marker in lowered for marker in NETWORK_MARKERS):
        return NetworkError(message)
    if isinstance(exc, KeyError) and not REF_NOT_FOUND.search(message):
        return RepoNotFoundError(url)
    return GitError(message)


class GitFetcher:
    """Clones repositories described by a :class:`GitSource`."""

    SHALLOW_DEPTH = 1

    def __init__(self, callbacks_factory=CredentialCallbacks, temp_root: Optional[Path] = None):
        """Initialize the fetcher.

        Args:
            callbacks_factory: Builds the pygit2 remote callbacks for each clone
            temp_root: Parent directory for temporary clones (system default if None)
        """
        self.callbacks_factory = callbacks_factory
        self.temp_root = temp_root

    def fetch(self, source: GitSource) -> FetchResult:
        """Clone ``source`` into a fresh temporary directory.

        Args:
            source: Repository, ref and optional subdirectory to fetch

        Returns:
            FetchResult owning the temporary directory

        Raises:
            NetworkError: If the remote could not be reached
            RepoNotFoundError: If the remote reports the repository missing
            GitError: For any other clone failure
            InvalidSourceError: If the requested subdirectory does not exist
            OSError: If the temporary directory cannot be created
        """
        temp_parent = str(ensure_dir(self.temp_root)) if self.temp_root else None
        temp_dir = tempfile.TemporaryDirectory(prefix="skilo-", dir=temp_parent)
        try:
            dest = Path(temp_dir.name)
            self._clone(source, dest)
            root = self._resolve_root(source, dest)
        except BaseException:
            temp_dir.cleanup()
            raise

        return FetchResult(temp_dir, root)

    def _clone(self, source: GitSource, dest: Path) -> None:
        # Shallow clones are only requested for the default branch; libgit2
        # does not reliably combine a depth limit with a specific ref.
        depth = self.SHALLOW_DEPTH if source.reference is None else 0

        logger.info(
            "Cloning %s%s into %s",
            source.url,
            f" ({source.reference})" if source.reference else "",
            dest,
        )
        try:
            # checkout_branch only resolves branches; tags are checked out after
            repo = pygit2.clone_repository(
                source.url,
                str(dest),
                checkout_branch=source.branch,
                callbacks=self.callbacks_factory(),
                depth=depth,
            )
        except (pygit2.GitError, KeyError, ValueError) as e:
            error = classify_clone_error(e, source.url)
            logger.debug("Clone of %s failed: %s", source.url, error)
            raise error from e

        if source.tag and not source.branch:
            self._checkout_tag(repo, source.tag)

    def _checkout_tag(self, repo: pygit2.Repository, tag: str) -> None:
        """Detach HEAD at ``tag`` and update the working tree to match.

        Raises:
            GitError: If the tag does not exist in the clone
        """
        try:
            commit = repo.revparse_single(f"refs/tags/{tag}").peel(pygit2.Commit)
        except (KeyError, ValueError, pygit2.GitError) as e:
            raise GitError(f"Tag '{tag}' not found") from e

        repo.checkout_tree(commit, strategy=pygit2.enums.CheckoutStrategy.FORCE)
        repo.set_head(commit.id)
        logger.debug("Checked out tag %s at %s", tag, commit.id)

    def _resolve_root(self, source: GitSource, dest: Path) -> Path:
        if not source.subdir:
            return dest

        root = dest / source.subdir
        if not is_within(root, dest) or not root.exists():
            raise InvalidSourceError(
                source.url,
                f"Subdirectory '{source.subdir}' not found in repository",
            )
        return root
