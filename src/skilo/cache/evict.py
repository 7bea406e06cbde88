"""Pruning of cache entries by age, by repository, or wholesale."""

import logging
import shutil
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

from skilo.cache.names import mirror_name
from skilo.cache.paths import CachePaths
from skilo.cache.store import SkippedEntry, dir_size, iter_entry_dirs

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


@dataclass
class EvictionResult:
    """Outcome of an age-based eviction."""

    removed: int = 0
    freed: int = 0
    skipped: list[SkippedEntry] = field(default_factory=list)


@dataclass
class FullEvictionResult:
    """Outcome of an eviction touching both db/ and checkouts/."""

    repos_removed: int = 0
    checkouts_removed: int = 0
    freed: int = 0
    skipped: list[SkippedEntry] = field(default_factory=list)


class Evictor:
    """Removes entries from the git cache.

    Every removal is best-effort: an entry that cannot be removed is recorded
    in the result's ``skipped`` list and the pass continues.
    """

    def __init__(self, paths: CachePaths, clock: Callable[[], float] = time.time):
        """Initialize the evictor.

        Args:
            paths: Resolved cache locations
            clock: Returns the current time as a POSIX timestamp
        """
        self.paths = paths
        self.clock = clock

    def _remove(self, path: Path, skipped: list[SkippedEntry]) -> Optional[int]:
        """Remove an entry, returning its size or None on failure.

        A symlinked entry is unlinked; its target is left alone.
        """
        size = dir_size(path)
        try:
            if path.is_symlink():
                path.unlink()
            else:
                shutil.rmtree(path)
        except OSError as e:
            logger.debug("Could not remove %s: %s", path, e)
            skipped.append(SkippedEntry(path, str(e)))
            return None
        logger.debug("Removed %s (%d bytes)", path, size)
        return size

    def evict_older_than(self, max_age_days: int) -> EvictionResult:
        """Remove checkouts last modified more than ``max_age_days`` ago.

        Args:
            max_age_days: Age threshold in days; only strictly older entries go

        Returns:
            EvictionResult with the number removed and bytes freed
        """
        result = EvictionResult()
        max_age = max_age_days * SECONDS_PER_DAY
        now = self.clock()

        for entry in iter_entry_dirs(self.paths.checkouts_dir, result.skipped):
            try:
                age = now - entry.stat().st_mtime
            except OSError as e:
                result.skipped.append(SkippedEntry(Path(entry.path), str(e)))
                continue

            if age <= max_age:
                continue

            size = self._remove(Path(entry.path), result.skipped)
            if size is not None:
                result.removed += 1
                result.freed += size

        return result

    def evict_all(self) -> FullEvictionResult:
        """Remove every checkout, then every mirror.

        Returns:
            FullEvictionResult with per-section counts and bytes freed
        """
        result = FullEvictionResult()

        for entry in iter_entry_dirs(self.paths.checkouts_dir, result.skipped):
            size = self._remove(Path(entry.path), result.skipped)
            if size is not None:
                result.checkouts_removed += 1
                result.freed += size

        for entry in iter_entry_dirs(self.paths.db_dir, result.skipped):
            size = self._remove(Path(entry.path), result.skipped)
            if size is not None:
                result.repos_removed += 1
                result.freed += size

        return result

    def evict_repo(self, owner: str, repo: str) -> FullEvictionResult:
        """Remove the mirror and all checkouts of one repository.

        Args:
            owner: Repository owner
            repo: Repository name

        Returns:
            FullEvictionResult for the entries that matched
        """
        result = FullEvictionResult()
        name = mirror_name(owner, repo)
        prefix = f"{name}-"

        for entry in iter_entry_dirs(self.paths.checkouts_dir, result.skipped):
            # owner-repo-<rev>; the revision part never contains a hyphen
            if not entry.name.startswith(prefix) or "-" in entry.name[len(prefix):]:
                continue
            size = self._remove(Path(entry.path), result.skipped)
            if size is not None:
                result.checkouts_removed += 1
                result.freed += size

        for entry in iter_entry_dirs(self.paths.db_dir, result.skipped):
            if entry.name != name:
                continue
            size = self._remove(Path(entry.path), result.skipped)
            if size is not None:
                result.repos_removed += 1
                result.freed += size

        return result
