"""Credential negotiation for git remotes.

Providers are tried in a fixed order and the first one that produces a
credential wins:

1. SSH agent, when the server accepts SSH keys and the URL names a user
2. ``git credential fill``, when the server accepts username/password
3. The transport's default credential, when the server allows it
"""

import enum
import logging
import os
import subprocess
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence
from urllib.parse import urlparse

import pygit2
from pygit2.enums import CredentialType

logger = logging.getLogger(__name__)

NO_CREDENTIALS_MESSAGE = "no valid credentials available"


class CredentialStatus(enum.Enum):
    """Outcome of asking a single provider for a credential."""

    NOT_APPLICABLE = "not_applicable"
    FAILED = "failed"
    SUCCEEDED = "succeeded"


# Marker credential: let libgit2 use the transport's default credential.
ANONYMOUS = object()


@dataclass(frozen=True)
class CredentialOutcome:
    status: CredentialStatus
    credential: Any = None
    reason: Optional[str] = None

    @classmethod
    def not_applicable(cls) -> "CredentialOutcome":
        return cls(CredentialStatus.NOT_APPLICABLE)

    @classmethod
    def failed(cls, reason: str) -> "CredentialOutcome":
        return cls(CredentialStatus.FAILED, reason=reason)

    @classmethod
    def succeeded(cls, credential: Any) -> "CredentialOutcome":
        return cls(CredentialStatus.SUCCEEDED, credential=credential)


CredentialProvider = Callable[[str, Optional[str], CredentialType], CredentialOutcome]


def ssh_agent_provider(
    url: str, username_from_url: Optional[str], allowed_types: CredentialType
) -> CredentialOutcome:
    """Use a key held by the running SSH agent."""
    if not allowed_types & CredentialType.SSH_KEY:
        return CredentialOutcome.not_applicable()
    if not username_from_url:
        return CredentialOutcome.not_applicable()
    return CredentialOutcome.succeeded(pygit2.KeypairFromAgent(username_from_url))


def _credential_helper_request(url: str, username: Optional[str]) -> str:
    parsed = urlparse(url)
    lines = [f"protocol={parsed.scheme}", f"host={parsed.netloc.rpartition('@')[2]}"]
    if parsed.path.strip("/"):
        lines.append(f"path={parsed.path.lstrip('/')}")
    if username:
        lines.append(f"username={username}")
    return "\n".join(lines) + "\n\n"


def credential_helper_provider(
    url: str, username_from_url: Optional[str], allowed_types: CredentialType
) -> CredentialOutcome:
    """Ask the configured git credential helper for a username/password."""
    if not allowed_types & CredentialType.USERPASS_PLAINTEXT:
        return CredentialOutcome.not_applicable()

    env = dict(os.environ, GIT_TERMINAL_PROMPT="0")
    try:
        proc = subprocess.run(
            ["git", "credential", "fill"],
            input=_credential_helper_request(url, username_from_url),
            capture_output=True,
            text=True,
            env=env,
            check=False,
        )
    except OSError as e:
        return CredentialOutcome.failed(f"could not run git credential helper: {e}")

    if proc.returncode != 0:
        return CredentialOutcome.failed(proc.stderr.strip() or "credential helper failed")

    values = {}
    for line in proc.stdout.splitlines():
        key, sep, value = line.partition("=")
        if sep:
            values[key] = value

    username = values.get("username")
    password = values.get("password")
    if not username or password is None:
        return CredentialOutcome.failed("credential helper returned no credentials")
    return CredentialOutcome.succeeded(pygit2.UserPass(username, password))


def default_provider(
    url: str, username_from_url: Optional[str], allowed_types: CredentialType
) -> CredentialOutcome:
    """Fall back to the transport default, used for public repositories."""
    if not allowed_types & CredentialType.DEFAULT:
        return CredentialOutcome.not_applicable()
    return CredentialOutcome.succeeded(ANONYMOUS)


DEFAULT_PROVIDERS: tuple[CredentialProvider, ...] = (
    ssh_agent_provider,
    credential_helper_provider,
    default_provider,
)


def resolve_credential(
    url: str,
    username_from_url: Optional[str],
    allowed_types: CredentialType,
    providers: Sequence[CredentialProvider] = DEFAULT_PROVIDERS,
) -> Any:
    """Return the credential from the first provider that succeeds.

    Raises:
        pygit2.GitError: If no provider produced a credential
    """
    for provider in providers:
        outcome = provider(url, username_from_url, allowed_types)
        if outcome.status is CredentialStatus.SUCCEEDED:
            logger.debug("Using credentials from %s for %s", provider.__name__, url)
            return outcome.credential
        if outcome.status is CredentialStatus.FAILED:
            logger.debug("%s failed for %s: %s", provider.__name__, url, outcome.reason)

    raise pygit2.GitError(NO_CREDENTIALS_MESSAGE)


class CredentialCallbacks(pygit2.RemoteCallbacks):
    """Remote callbacks that negotiate credentials through a provider chain."""

    def __init__(self, providers: Sequence[CredentialProvider] = DEFAULT_PROVIDERS):
        super().__init__()
        self._providers = tuple(providers)

    def credentials(
        self,
        url: str,
        username_from_url: Optional[str],
        allowed_types: CredentialType,
    ):
        credential = resolve_credential(url, username_from_url, allowed_types, self._providers)
        if credential is ANONYMOUS:
            raise pygit2.Passthrough
        return credential
