"""Example demonstrating the git cache and fetcher APIs.

This shows how to inspect the cache, fetch a skill into a directory and
prune old checkouts without going through the CLI.
"""

import shutil
from pathlib import Path

from skilo.cache import CachePaths, CacheStore, Evictor, format_age, format_size
from skilo.core import GitSource, SkiloError
from skilo.fetch import GitFetcher


def show_cache(paths: CachePaths) -> None:
    """Print what the cache currently holds."""
    print(f"Cache directory: {paths.root}")
    if not paths.root.exists():
        print("  (not created yet)")
        return

    stats = CacheStore(paths).collect()
    print(f"  db/: {len(stats.repos)} mirrors, {format_size(stats.db_size)}")
    for repo in stats.repos:
        print(f"    - {repo.name}")
    print(f"  checkouts/: {len(stats.checkouts)} checkouts, {format_size(stats.checkouts_size)}")
    for checkout in stats.checkouts[:5]:  # Show first 5
        print(f"    - {checkout.name} {format_age(checkout.modified)}")
    if len(stats.checkouts) > 5:
        print(f"    ... and {len(stats.checkouts) - 5} more")


def main():
    """Inspect the cache, fetch one skill, then prune stale checkouts."""
    paths = CachePaths.from_env()
    show_cache(paths)

    source = GitSource.parse("https://github.com/anthropics/skills/tree/main/document-skills/pdf")
    dest = Path("/tmp/skilo-demo/pdf")

    print(f"\nFetching {source.url} ({source.reference}) -> {dest}")
    try:
        with GitFetcher().fetch(source) as result:
            if dest.exists():
                shutil.rmtree(dest)
            shutil.copytree(result.root, dest, ignore=shutil.ignore_patterns(".git"))
        print(f"✓ Copied {sum(1 for _ in dest.rglob('*'))} files")
    except SkiloError as e:
        print(f"✗ Error fetching: {e}")
        if e.retryable:
            print("  (transient, worth retrying)")

    print("\n--- Cache Management ---")
    result = Evictor(paths).evict_older_than(30)
    print(f"Removed {result.removed} checkouts older than 30 days ({format_size(result.freed)} freed)")
    for entry in result.skipped:
        print(f"  skipped {entry.path}: {entry.reason}")


if __name__ == "__main__":
    print("Skilo Cache Usage Example")
    print("=" * 50)
    print()

    try:
        main()
    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
