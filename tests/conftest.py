"""Shared pytest fixtures for skilo tests."""

import os
from pathlib import Path
from typing import Optional

import pygit2
import pytest

from skilo.cache.paths import CachePaths

SKILL_MD = """---
name: sample-skill
description: A sample skill for testing
---

# Sample Skill
"""


@pytest.fixture
def cache_paths(tmp_path):
    """Provide cache paths rooted in a temporary directory."""
    return CachePaths(root=tmp_path / "git")


@pytest.fixture
def make_entry():
    """Create a cache entry directory with files and an optional mtime."""

    def _make(
        parent: Path,
        name: str,
        files: Optional[dict[str, str]] = None,
        mtime: Optional[int] = None,
    ) -> Path:
        entry = parent / name
        entry.mkdir(parents=True, exist_ok=True)
        for rel_path, content in (files or {}).items():
            file_path = entry / rel_path
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_text(content)
        if mtime is not None:
            os.utime(entry, (mtime, mtime))
        return entry

    return _make


class FakeClone:
    """Stand-in for pygit2.clone_repository that writes a fixed tree."""

    def __init__(self):
        self.calls = []
        self.error: Optional[BaseException] = None
        self.files = {
            "README.md": "# Skills\n",
            "skills/sample-skill/SKILL.md": SKILL_MD,
            "skills/sample-skill/scripts/run.py": "print('hi')\n",
        }

    def __call__(self, url, path, checkout_branch=None, callbacks=None, depth=0, **kwargs):
        self.calls.append(
            {
                "url": url,
                "path": Path(path),
                "checkout_branch": checkout_branch,
                "callbacks": callbacks,
                "depth": depth,
            }
        )
        if self.error is not None:
            raise self.error

        dest = Path(path)
        (dest / ".git").mkdir(parents=True, exist_ok=True)
        (dest / ".git" / "HEAD").write_text("ref: refs/heads/main\n")
        for rel_path, content in self.files.items():
            file_path = dest / rel_path
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_text(content)
        return object()


@pytest.fixture
def fake_clone(monkeypatch):
    """Replace pygit2.clone_repository with a FakeClone."""
    fake = FakeClone()
    monkeypatch.setattr(pygit2, "clone_repository", fake)
    return fake


def pytest_addoption(parser):
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run tests that talk to real git remotes",
    )


def pytest_collection_modifyitems(config, items):
    if config.getoption("--run-integration"):
        return
    skip_integration = pytest.mark.skip(reason="needs --run-integration")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


@pytest.fixture
def local_origin(tmp_path):
    """A real repository to clone over file://.

    ``main`` holds README "v2"; the ``dev`` branch and the annotated tag
    ``v1.0`` both point at the first commit, whose README is "v1".
    """
    path = tmp_path / "origin"
    repo = pygit2.init_repository(str(path), initial_head="main")
    signature = pygit2.Signature("Skilo Tests", "tests@example.com")

    def commit(files, message, parents):
        for rel_path, content in files.items():
            file_path = path / rel_path
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_text(content)
        repo.index.add_all()
        repo.index.write()
        tree = repo.index.write_tree()
        return repo.create_commit("HEAD", signature, signature, message, tree, parents)

    first = commit(
        {"README.md": "v1\n", "skills/sample-skill/SKILL.md": SKILL_MD}, "First release", []
    )
    repo.create_tag("v1.0", first, pygit2.enums.ObjectType.COMMIT, signature, "Release 1.0")
    repo.branches.local.create("dev", repo[first])
    commit({"README.md": "v2\n"}, "Second release", [first])
    return path
