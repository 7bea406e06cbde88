"""Fetching skill repositories from git remotes."""

from skilo.fetch.credentials import CredentialCallbacks, resolve_credential
from skilo.fetch.git import FetchResult, GitFetcher, classify_clone_error
from skilo.fetch.protocols import SourceFetcher

__all__ = [
    "CredentialCallbacks",
    "FetchResult",
    "GitFetcher",
    "SourceFetcher",
    "classify_clone_error",
    "resolve_credential",
]
