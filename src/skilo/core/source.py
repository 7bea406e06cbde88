"""Source descriptors for git-hosted skills.

This module provides functionality to:
- Describe a remote repository plus an optional branch/tag and subdirectory
- Expand ``owner/repo`` shorthand into a GitHub clone URL
- Pull the branch and subdirectory out of GitHub ``/tree/`` URLs
"""

import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

from skilo.core.errors import InvalidSourceError

_SHORTHAND = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")


@dataclass(frozen=True)
class GitSource:
    """A remote repository to fetch.

    Attributes:
        url: Clone URL (HTTPS, SSH or anything the git backend accepts)
        branch: Branch to check out
        tag: Tag to check out (ignored when branch is set)
        subdir: Relative path inside the clone to use as the root
    """

    url: str
    branch: Optional[str] = None
    tag: Optional[str] = None
    subdir: Optional[str] = None

    def __post_init__(self):
        if self.branch and self.tag:
            raise InvalidSourceError(
                self.url, "Specify either a branch or a tag, not both"
            )

    @property
    def reference(self) -> Optional[str]:
        """The ref to check out: branch, else tag, else the default branch."""
        return self.branch or self.tag or None

    @classmethod
    def parse(
        cls,
        spec: str,
        branch: Optional[str] = None,
        tag: Optional[str] = None,
        subdir: Optional[str] = None,
    ) -> "GitSource":
        """Build a source from a user-supplied string.

        Handles:
        - owner/repo (GitHub shorthand)
        - https://github.com/owner/repo/tree/main/path/to/skill
        - any other clone URL, used verbatim

        Explicit ``branch``/``tag``/``subdir`` arguments take precedence over
        values found in a ``/tree/`` URL.

        Args:
            spec: Shorthand or URL
            branch: Branch override
            tag: Tag override
            subdir: Subdirectory override

        Returns:
            GitSource ready for fetching

        Raises:
            InvalidSourceError: If the string is empty or both branch and tag
                are given
        """
        spec = spec.strip()
        if not spec:
            raise InvalidSourceError(spec, "Source must not be empty")

        if _SHORTHAND.match(spec) and "://" not in spec:
            owner, repo = spec.split("/", 1)
            return cls(
                url=f"https://github.com/{owner}/{repo.removesuffix('.git')}.git",
                branch=branch,
                tag=tag,
                subdir=subdir,
            )

        parsed = urlparse(spec)
        if parsed.netloc in ("github.com", "www.github.com"):
            path_parts = [p for p in parsed.path.split("/") if p]

            # /owner/repo/tree/<ref>/<path...>
            if len(path_parts) >= 4 and path_parts[2] == "tree":
                owner, repo = path_parts[0], path_parts[1]
                url_subdir = "/".join(path_parts[4:]) or None
                return cls(
                    url=f"https://github.com/{owner}/{repo}.git",
                    branch=branch if (branch or tag) else path_parts[3],
                    tag=tag,
                    subdir=subdir or url_subdir,
                )

        return cls(url=spec, branch=branch, tag=tag, subdir=subdir)
