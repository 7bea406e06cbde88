"""Exception classes for cache and fetch operations.

Filesystem failures are not wrapped: they surface as the built-in
``OSError`` raised by the underlying call.
"""


class SkiloError(Exception):
    """Base exception for all skilo errors."""

    #: Whether a caller may reasonably retry the failed operation.
    retryable = False


class ConfigError(SkiloError):
    """Raised when configuration is invalid or the cache root is unknown."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"Configuration error: {message}")


class NetworkError(SkiloError):
    """Raised when a fetch fails because the remote could not be reached."""

    retryable = True

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"Network error: {message}")


class RepoNotFoundError(SkiloError):
    """Raised when the remote reports that the repository does not exist."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Repository not found: {url}")


class GitError(SkiloError):
    """Raised for any other failure reported by the git backend."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"Git error: {message}")


class InvalidSourceError(SkiloError):
    """Raised when a source descriptor cannot be satisfied."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Invalid source '{url}': {reason}")
