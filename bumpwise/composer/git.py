"""
Git remote lookups over the smart-HTTP protocol.

Only the ref advertisement (``info/refs?service=git-upload-pack``) is
fetched, which is enough to learn what a branch or tag currently points to
without cloning.
"""

from __future__ import annotations

import re
from typing import Dict, Optional, Sequence

from bumpwise.utils.http import HTTPClient, redact_url
from bumpwise.utils.logger import get_logger
from bumpwise.exceptions import GitDependenciesNotReachable, NetworkError
from bumpwise.models.credential import Credential, CredentialType, find_credential

logger = get_logger("composer.git")

_REF_LINE = re.compile(r"([0-9a-f]{40}) (refs/[^\s\x00]+|HEAD)")
_SCP_LIKE = re.compile(r"^(?:[\w.-]+@)?(?P<host>[\w.-]+):(?P<path>(?!//)[^\s]+)$")
_SSH_URL = re.compile(r"^(?:git\+)?ssh://(?:[\w.-]+@)?(?P<host>[\w.-]+)(?::\d+)?/(?P<path>.+)$")


def to_https(url: str) -> str:
    """Rewrite ``git@host:org/repo`` and ``ssh://`` URLs to HTTPS."""
    url = url.strip()
    if url.startswith(("http://", "https://")):
        return url
    if url.startswith("git://"):
        return "https://" + url[len("git://"):]

    for pattern in (_SSH_URL, _SCP_LIKE):
        match = pattern.match(url)
        if match:
            return f"https://{match.group('host')}/{match.group('path')}"
    return url


def parse_advertisement(body: str) -> Dict[str, str]:
    """Map ref names (and ``HEAD``) to the commits they point at."""
    refs: Dict[str, str] = {}
    for commit, name in _REF_LINE.findall(body):
        refs.setdefault(name, commit)
    return refs


class GitRemote:
    """Reads branch and tag heads from git remotes.

    Args:
        http_client: Shared :class:`HTTPClient`.
        credentials: ``git_source`` credentials are used for basic auth
            against the matching host.
    """

    def __init__(
        self,
        http_client: HTTPClient,
        credentials: Sequence[Credential] = (),
    ) -> None:
        self.http_client = http_client
        self.credentials = list(credentials)
        self._refs: Dict[str, Dict[str, str]] = {}

    async def refs(self, url: str) -> Dict[str, str]:
        """Return the ref advertisement of *url*.

        Raises:
            GitDependenciesNotReachable: The remote could not be read.
        """
        if url in self._refs:
            return self._refs[url]

        https_url = to_https(url).rstrip("/")
        credential = find_credential(self.credentials, CredentialType.GIT_SOURCE, https_url)
        auth = (credential.username, credential.password) if credential else None

        try:
            response = await self.http_client.get(
                f"{https_url}/info/refs",
                params={"service": "git-upload-pack"},
                auth=auth,
            )
        except NetworkError as exc:
            logger.warning("Git remote %s is not reachable: %s", redact_url(url), exc.message)
            raise GitDependenciesNotReachable([url]) from exc

        refs = parse_advertisement(response.text)
        if not refs:
            raise GitDependenciesNotReachable([url])

        self._refs[url] = refs
        return refs

    async def ref_commit(self, url: str, ref: Optional[str] = None) -> Optional[str]:
        """Return the commit *ref* points to on *url*, or None if it is unknown.

        *ref* may be a branch, a tag, a full ref name or ``None`` for ``HEAD``.
        """
        refs = await self.refs(url)

        if not ref or ref == "HEAD":
            return refs.get("HEAD")

        for name in (
            ref,
            f"refs/heads/{ref}",
            f"refs/tags/{ref}^{{}}",
            f"refs/tags/{ref}",
        ):
            if name in refs:
                return refs[name]

        logger.debug("Ref %s not advertised by %s", ref, redact_url(url))
        return None
