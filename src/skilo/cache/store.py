"""Inventory of the git cache: mirrors, checkouts and their sizes."""

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Optional

from skilo.cache.paths import CachePaths

logger = logging.getLogger(__name__)

KB = 1024
MB = KB * 1024
GB = MB * 1024


@dataclass(frozen=True)
class SkippedEntry:
    """An entry (or whole section) a best-effort pass could not handle."""

    path: Path
    reason: str


@dataclass(frozen=True)
class CachedRepo:
    """A mirror under db/."""

    name: str
    path: Path
    size: int


@dataclass(frozen=True)
class CachedCheckout:
    """A working tree under checkouts/."""

    name: str
    path: Path
    size: int
    modified: Optional[datetime] = None


@dataclass(frozen=True)
class CacheStats:
    """Snapshot of the cache, sorted by entry name.

    Attributes:
        repos: Mirrors found in db/
        checkouts: Checkouts found in checkouts/
        db_size: Total bytes under db/ entries
        checkouts_size: Total bytes under checkouts/ entries
        skipped: Entries that could not be inspected
    """

    repos: tuple[CachedRepo, ...] = ()
    checkouts: tuple[CachedCheckout, ...] = ()
    db_size: int = 0
    checkouts_size: int = 0
    skipped: tuple[SkippedEntry, ...] = field(default=())

    @property
    def total_size(self) -> int:
        """Combined size of db/ and checkouts/ in bytes."""
        return self.db_size + self.checkouts_size


def dir_size(path: Path) -> int:
    """Sum the sizes of all files below ``path``.

    Symlinks are counted by their own size and never followed, including
    when ``path`` itself is one. Entries that cannot be read are skipped.
    """
    if path.is_symlink():
        try:
            return path.lstat().st_size
        except OSError:
            return 0

    total = 0
    try:
        entries = list(os.scandir(path))
    except OSError:
        return 0

    for entry in entries:
        try:
            if entry.is_dir(follow_symlinks=False):
                total += dir_size(Path(entry.path))
            else:
                total += entry.stat(follow_symlinks=False).st_size
        except OSError:
            continue
    return total


def iter_entry_dirs(
    section: Path, skipped: list[SkippedEntry]
) -> Iterator[os.DirEntry]:
    """Yield the immediate subdirectories of a cache section.

    A missing section yields nothing. A section that cannot be listed is
    recorded in ``skipped`` and yields nothing. Non-directory entries are
    ignored; a symlink to a directory is yielded as an entry of its own.
    """
    if not section.exists():
        return

    try:
        entries = list(os.scandir(section))
    except OSError as e:
        logger.debug("Skipping unreadable cache section %s: %s", section, e)
        skipped.append(SkippedEntry(section, str(e)))
        return

    for entry in entries:
        try:
            if entry.is_dir():
                yield entry
        except OSError as e:
            skipped.append(SkippedEntry(Path(entry.path), str(e)))


class CacheStore:
    """Read-only view over the db/ and checkouts/ sections of the cache."""

    def __init__(self, paths: CachePaths):
        """Initialize the store.

        Args:
            paths: Resolved cache locations
        """
        self.paths = paths

    def collect(self) -> CacheStats:
        """Gather sizes and timestamps for every cache entry.

        This is an advisory inventory: unreadable entries are recorded in
        ``CacheStats.skipped`` instead of raising.

        Returns:
            CacheStats with both lists sorted by name
        """
        skipped: list[SkippedEntry] = []

        repos = []
        for entry in iter_entry_dirs(self.paths.db_dir, skipped):
            repos.append(
                CachedRepo(
                    name=entry.name,
                    path=Path(entry.path),
                    size=dir_size(Path(entry.path)),
                )
            )

        checkouts = []
        for entry in iter_entry_dirs(self.paths.checkouts_dir, skipped):
            try:
                modified = datetime.fromtimestamp(entry.stat().st_mtime, tz=timezone.utc)
            except OSError:
                modified = None
            checkouts.append(
                CachedCheckout(
                    name=entry.name,
                    path=Path(entry.path),
                    size=dir_size(Path(entry.path)),
                    modified=modified,
                )
            )

        repos.sort(key=lambda r: r.name)
        checkouts.sort(key=lambda c: c.name)

        return CacheStats(
            repos=tuple(repos),
            checkouts=tuple(checkouts),
            db_size=sum(r.size for r in repos),
            checkouts_size=sum(c.size for c in checkouts),
            skipped=tuple(skipped),
        )


def format_size(num_bytes: int) -> str:
    """Format a byte count with binary units and one decimal place."""
    if num_bytes >= GB:
        return f"{num_bytes / GB:.1f} GB"
    if num_bytes >= MB:
        return f"{num_bytes / MB:.1f} MB"
    if num_bytes >= KB:
        return f"{num_bytes / KB:.1f} KB"
    return f"{num_bytes} B"


def format_age(modified: Optional[datetime], now: Optional[datetime] = None) -> str:
    """Describe how long ago ``modified`` was, e.g. ``"(3 days ago)"``.

    Returns an empty string when the time is unknown or in the future.
    """
    if modified is None:
        return ""

    now = now or datetime.now(timezone.utc)
    seconds = int((now - modified).total_seconds())
    if seconds < 0:
        return ""

    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24
    weeks = days // 7

    for amount, unit in ((weeks, "week"), (days, "day"), (hours, "hour"), (minutes, "minute")):
        if amount > 0:
            return f"({amount} {unit}{'' if amount == 1 else 's'} ago)"
    return "(just now)"
