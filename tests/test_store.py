"""Tests for cache inventory."""

import os
from datetime import datetime, timedelta, timezone

import pytest

from skilo.cache.store import CacheStore, dir_size, format_age, format_size


class TestDirSize:
    """Test recursive size computation."""

    def test_sums_nested_files(self, tmp_path):
        (tmp_path / "a.txt").write_text("x" * 10)
        (tmp_path / "sub" / "deep").mkdir(parents=True)
        (tmp_path / "sub" / "b.txt").write_text("y" * 20)
        (tmp_path / "sub" / "deep" / "c.txt").write_text("z" * 30)

        assert dir_size(tmp_path) == 60

    def test_missing_directory(self, tmp_path):
        assert dir_size(tmp_path / "nope") == 0

    def test_symlinks_not_followed(self, tmp_path):
        """A symlink counts as itself, not as its target."""
        outside = tmp_path / "outside"
        outside.mkdir()
        (outside / "big.bin").write_bytes(b"0" * 10000)

        inside = tmp_path / "inside"
        inside.mkdir()
        (inside / "small.txt").write_text("abc")
        os.symlink(outside, inside / "link-dir")
        os.symlink(outside / "big.bin", inside / "link-file")

        assert dir_size(inside) < 10000

    def test_symlink_as_root_counts_itself(self, tmp_path):
        target = tmp_path / "target"
        target.mkdir()
        (target / "big.bin").write_bytes(b"0" * 10000)
        link = tmp_path / "link"
        os.symlink(target, link)

        assert dir_size(link) == link.lstat().st_size

    def test_symlink_loop_is_harmless(self, tmp_path):
        os.symlink(tmp_path, tmp_path / "loop")
        (tmp_path / "f").write_text("1234")
        assert dir_size(tmp_path) >= 4


class TestCacheStoreCollect:
    """Test CacheStore.collect."""

    def test_absent_cache(self, cache_paths):
        """A cache root that does not exist yields an empty snapshot."""
        stats = CacheStore(cache_paths).collect()

        assert stats.repos == ()
        assert stats.checkouts == ()
        assert stats.db_size == 0
        assert stats.checkouts_size == 0
        assert stats.total_size == 0
        assert stats.skipped == ()

    def test_empty_sections(self, cache_paths):
        cache_paths.db_dir.mkdir(parents=True)
        cache_paths.checkouts_dir.mkdir(parents=True)

        stats = CacheStore(cache_paths).collect()

        assert stats.repos == ()
        assert stats.checkouts == ()
        assert stats.total_size == 0

    def test_collects_and_sorts(self, cache_paths, make_entry):
        """Entries are listed by name with their sizes."""
        make_entry(cache_paths.db_dir, "zeta-repo", {"objects/pack": "x" * 100})
        make_entry(cache_paths.db_dir, "alpha-repo", {"HEAD": "y" * 50})
        make_entry(cache_paths.checkouts_dir, "zeta-repo-abc1234", {"SKILL.md": "z" * 7})
        make_entry(cache_paths.checkouts_dir, "alpha-repo-def5678", {"a/b.txt": "w" * 3})

        stats = CacheStore(cache_paths).collect()

        assert [r.name for r in stats.repos] == ["alpha-repo", "zeta-repo"]
        assert [r.size for r in stats.repos] == [50, 100]
        assert [c.name for c in stats.checkouts] == ["alpha-repo-def5678", "zeta-repo-abc1234"]
        assert [c.size for c in stats.checkouts] == [3, 7]
        assert stats.db_size == 150
        assert stats.checkouts_size == 10
        assert stats.total_size == 160

    def test_files_at_section_level_are_ignored(self, cache_paths, make_entry):
        make_entry(cache_paths.db_dir, "owner-repo", {"HEAD": "abc"})
        (cache_paths.db_dir / "stray.lock").write_text("lock")

        stats = CacheStore(cache_paths).collect()

        assert [r.name for r in stats.repos] == ["owner-repo"]
        assert stats.db_size == 3

    def test_checkout_modification_time(self, cache_paths, make_entry):
        mtime = 1_700_000_000
        make_entry(cache_paths.checkouts_dir, "o-r-abc1234", {"f": "1"}, mtime=mtime)

        stats = CacheStore(cache_paths).collect()

        assert stats.checkouts[0].modified == datetime.fromtimestamp(mtime, tz=timezone.utc)

    def test_repeated_collection_is_stable(self, cache_paths, make_entry):
        for name in ["c-c", "a-a", "b-b"]:
            make_entry(cache_paths.db_dir, name, {"HEAD": name})

        store = CacheStore(cache_paths)
        assert store.collect() == store.collect()

    def test_unreadable_section_is_skipped(self, cache_paths, make_entry, monkeypatch):
        """A section that cannot be listed is reported, not raised."""
        make_entry(cache_paths.db_dir, "owner-repo", {"HEAD": "abc"})
        make_entry(cache_paths.checkouts_dir, "owner-repo-abc1234", {"f": "12"})

        real_scandir = os.scandir
        blocked = str(cache_paths.db_dir)

        def fake_scandir(path="."):
            if str(path) == blocked:
                raise PermissionError(13, "Permission denied", blocked)
            return real_scandir(path)

        monkeypatch.setattr(os, "scandir", fake_scandir)

        stats = CacheStore(cache_paths).collect()

        assert stats.repos == ()
        assert [c.name for c in stats.checkouts] == ["owner-repo-abc1234"]
        assert len(stats.skipped) == 1
        assert stats.skipped[0].path == cache_paths.db_dir


class TestFormatSize:
    """Test human-readable sizes."""

    @pytest.mark.parametrize(
        "num_bytes,expected",
        [
            (0, "0 B"),
            (500, "500 B"),
            (1023, "1023 B"),
            (1024, "1.0 KB"),
            (1536, "1.5 KB"),
            (1024 * 1024, "1.0 MB"),
            (1024 * 1024 * 1024, "1.0 GB"),
            (5 * 1024 * 1024 * 1024, "5.0 GB"),
        ],
    )
    def test_format_size(self, num_bytes, expected):
        assert format_size(num_bytes) == expected


class TestFormatAge:
    """Test relative age descriptions."""

    NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)

    @pytest.mark.parametrize(
        "delta,expected",
        [
            (timedelta(seconds=30), "(just now)"),
            (timedelta(minutes=1), "(1 minute ago)"),
            (timedelta(minutes=5), "(5 minutes ago)"),
            (timedelta(hours=1), "(1 hour ago)"),
            (timedelta(days=2), "(2 days ago)"),
            (timedelta(days=7), "(1 week ago)"),
            (timedelta(days=21), "(3 weeks ago)"),
        ],
    )
    def test_format_age(self, delta, expected):
        assert format_age(self.NOW - delta, now=self.NOW) == expected

    def test_unknown_time(self):
        assert format_age(None) == ""

    def test_future_time(self):
        assert format_age(self.NOW + timedelta(hours=1), now=self.NOW) == ""
