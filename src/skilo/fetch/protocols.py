"""Abstract interface for fetching skill sources."""

from typing import Protocol

from skilo.core.source import GitSource
from skilo.fetch.git import FetchResult


class SourceFetcher(Protocol):
    """Anything that can materialize a source into a temporary directory."""

    def fetch(self, source: GitSource) -> FetchResult:
        """Fetch a source and return a FetchResult.

        Args:
            source: Repository, ref and optional subdirectory to fetch

        Returns:
            FetchResult whose ``root`` points at the usable tree; the caller
            must release it with ``cleanup()`` or a ``with`` block

        Raises:
            SkiloError: If the source cannot be fetched
        """
        ...
