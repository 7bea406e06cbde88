"""Deterministic names for cache entries."""

from typing import Optional, Tuple

SHORT_REV_LEN = 7


def short_revision(rev: str) -> str:
    """Return the first seven characters of a revision (or all of it)."""
    return rev[:SHORT_REV_LEN]


def mirror_name(owner: str, repo: str) -> str:
    """Name of the db/ entry for a repository: ``owner-repo``."""
    return f"{owner}-{repo}"


def checkout_name(owner: str, repo: str, rev: str) -> str:
    """Name of the checkouts/ entry for a revision: ``owner-repo-shortrev``."""
    return f"{owner}-{repo}-{short_revision(rev)}"


def parse_owner_repo(url: str) -> Optional[Tuple[str, str]]:
    """Extract owner and repository name from a git URL.

    Supports:
    - ``https://github.com/owner/repo.git``
    - ``git@github.com:owner/repo.git``

    Args:
        url: Clone URL

    Returns:
        ``(owner, repo)`` tuple, or None if the URL has another shape
    """
    url = url.removesuffix(".git")

    # SSH form: user@host:owner/repo
    if "@" in url and "://" not in url:
        _, sep, path = url.partition(":")
        parts = path.split("/")
        if sep and len(parts) >= 2 and parts[0] and parts[1]:
            return parts[0], parts[1]

    # URL form: scheme://host/owner/repo
    idx = url.find("://")
    if idx != -1:
        parts = url[idx + 3 :].split("/")
        if len(parts) >= 3 and parts[1] and parts[2]:
            return parts[1], parts[2]

    return None
