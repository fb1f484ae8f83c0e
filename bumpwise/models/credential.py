"""
Credentials for private sources.

Credentials are always passed in explicitly; bumpwise never reads them
from the environment or from a global Composer ``auth.json``.
"""

from __future__ import annotations

from enum import Enum
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional
from urllib.parse import urlsplit

from bumpwise.exceptions import ConfigError


class CredentialType(str, Enum):
    GIT_SOURCE = "git_source"
    COMPOSER_REPOSITORY = "composer_repository"


def _host_of(value: str) -> str:
    """Return the host part of a URL, or *value* itself if it is a bare host."""
    if "://" in value:
        return (urlsplit(value).hostname or "").lower()
    return value.split("/", 1)[0].lower()


@dataclass(frozen=True)
class Credential:
    """
    A username/password pair scoped to one host.

    Attributes:
        type: Git host or Composer repository credential.
        host: Host name for ``git_source`` credentials (``github.com``).
        registry: Host name for ``composer_repository`` credentials
            (``php.fury.io``).
        username: User name or token name.
        password: Password or token.
    """

    type: CredentialType
    username: str
    password: str
    host: Optional[str] = None
    registry: Optional[str] = None

    @property
    def target(self) -> str:
        return (self.host if self.type is CredentialType.GIT_SOURCE else self.registry) or ""

    def matches(self, url_or_host: str) -> bool:
        """Return True if this credential applies to *url_or_host*."""
        if not self.target:
            return False
        return _host_of(self.target) == _host_of(url_or_host)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Credential":
        try:
            kind = CredentialType(data["type"])
            return cls(
                type=kind,
                username=str(data.get("username", "")),
                password=str(data.get("password", "")),
                host=data.get("host"),
                registry=data.get("registry"),
            )
        except (KeyError, ValueError) as exc:
            raise ConfigError(f"Invalid credential entry: {exc}", option="type") from exc

    def __repr__(self) -> str:
        # Never render the password
        return (
            f"Credential(type={self.type.value!r}, target={self.target!r}, "
            f"username={self.username!r})"
        )


def find_credential(
    credentials: Iterable[Credential],
    kind: CredentialType,
    url_or_host: str,
) -> Optional[Credential]:
    """Return the first credential of *kind* matching *url_or_host*."""
    for credential in credentials:
        if credential.type is kind and credential.matches(url_or_host):
            return credential
    return None
