"""Core source descriptors and errors."""

from skilo.core.errors import (
    ConfigError,
    GitError,
    InvalidSourceError,
    NetworkError,
    RepoNotFoundError,
    SkiloError,
)
from skilo.core.source import GitSource

__all__ = [
    "ConfigError",
    "GitError",
    "GitSource",
    "InvalidSourceError",
    "NetworkError",
    "RepoNotFoundError",
    "SkiloError",
]
