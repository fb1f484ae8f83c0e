"""Composer registry client for bumpwise.

Looks up the published versions of a package on Packagist and on any
``composer``-type repositories declared in the manifest. Each package name
triggers at most one lookup per client: results are cached, and a
per-package lock keeps concurrent callers from fetching the same package
twice while a semaphore bounds the fetches in flight.

Typical usage::

    async with HTTPClient() as client:
        registry = RegistryClient(client)
        versions = await registry.get_versions("monolog/monolog")
        # ["1.0.0", "1.0.1", ..., "1.22.1"] or None when unknown
"""

from __future__ import annotations

import asyncio
from urllib.parse import urljoin, urlsplit
from typing import Any, Dict, Iterable, List, Optional, Sequence

from bumpwise.utils.http import HTTPClient, redact_url
from bumpwise.utils.logger import get_logger
from bumpwise.models.credential import Credential, CredentialType, find_credential
from bumpwise.exceptions import (
    NetworkError,
    RegistryError,
    PrivateSourceAuthenticationFailure,
)
from bumpwise.constants import (
    PACKAGIST_URL,
    PACKAGIST_P2_PATH,
    COMPOSER_REPOSITORY_INDEX,
)

logger = get_logger("composer.registry")

__all__ = ["RegistryClient", "extract_versions"]

_AUTH_FAILURES = (401, 403)


def _is_dev_version(version: str) -> bool:
    lowered = version.lower()
    return lowered.startswith("dev-") or lowered.endswith("-dev")


def extract_versions(payload: Dict[str, Any], name: str) -> Optional[List[str]]:
    """Pull version strings for *name* out of a registry response.

    Understands the Composer 2 layout (a list of release objects) and the
    legacy layout (an object keyed by version). Development branches are
    dropped.

    Returns:
        The versions, ``[]`` for an empty listing, or ``None`` when the
        payload does not mention the package.
    """
    packages = payload.get("packages")
    if isinstance(packages, list):
        # ``{"packages": []}`` is how an empty listing is served
        return [] if not packages else None
    if not isinstance(packages, dict):
        return None

    entries = None
    for key, value in packages.items():
        if key.lower() == name.lower():
            entries = value
            break
    if entries is None:
        return None

    if isinstance(entries, dict):
        raw_versions: Iterable[Any] = (
            entry.get("version", key) if isinstance(entry, dict) else key
            for key, entry in entries.items()
        )
    elif isinstance(entries, list):
        raw_versions = (entry.get("version") for entry in entries if isinstance(entry, dict))
    else:
        return None

    versions: List[str] = []
    for raw in raw_versions:
        if not isinstance(raw, str) or _is_dev_version(raw):
            continue
        if raw not in versions:
            versions.append(raw)
    return versions


class RegistryClient:
    """Async-safe, per-check cache of registry version listings.

    Args:
        http_client: Shared :class:`HTTPClient`.
        repositories: URLs of ``composer``-type repositories, searched in
            order before Packagist.
        credentials: Credentials; ``composer_repository`` entries are used
            for basic auth against the matching repository host.
        packagist_url: Base URL of Packagist (overridable for mirrors).
        use_packagist: False when the manifest disables Packagist.
        concurrent_limit: Maximum registry fetches in flight.
    """

    def __init__(
        self,
        http_client: HTTPClient,
        *,
        repositories: Sequence[str] = (),
        credentials: Sequence[Credential] = (),
        packagist_url: str = PACKAGIST_URL,
        use_packagist: bool = True,
        concurrent_limit: int = 10,
    ) -> None:
        self.http_client = http_client
        self.repositories = [url.rstrip("/") for url in repositories]
        self.credentials = list(credentials)
        self.packagist_url = packagist_url.rstrip("/")
        self.use_packagist = use_packagist

        self._semaphore = asyncio.Semaphore(concurrent_limit)
        self._versions: Dict[str, Optional[List[str]]] = {}
        self._indexes: Dict[str, Optional[Dict[str, Any]]] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def get_versions(self, name: str) -> Optional[List[str]]:
        """Return every published version of *name*.

        Returns:
            Version strings as published, ``[]`` when a registry lists the
            package without any release, or ``None`` when no registry
            knows it.

        Raises:
            PrivateSourceAuthenticationFailure: A private repository
                rejected the request (401/403).
            NetworkError: A registry could not be reached.
        """
        key = name.lower()
        if key in self._versions:
            return self._versions[key]

        async with self._locks.setdefault(key, asyncio.Lock()):
            if key in self._versions:
                return self._versions[key]

            async with self._semaphore:
                versions = await self._lookup(name)
            self._versions[key] = versions
            return versions

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def _lookup(self, name: str) -> Optional[List[str]]:
        found: Optional[List[str]] = None

        for url in self.repositories:
            versions = await self._from_composer_repository(url, name)
            if versions:
                return versions
            if versions is not None:
                found = versions

        if self.use_packagist:
            versions = await self._from_packagist(name)
            if versions is not None:
                return versions

        if found is None:
            logger.debug("No registry knows %s", name)
        return found

    async def _from_packagist(self, name: str) -> Optional[List[str]]:
        url = self.packagist_url + PACKAGIST_P2_PATH.format(package=name.lower())
        payload = await self._fetch(url)
        if payload is None:
            return None
        return extract_versions(payload, name)

    async def _from_composer_repository(
        self, base_url: str, name: str
    ) -> Optional[List[str]]:
        index = await self._index(base_url)
        if index is None:
            return None

        inline = extract_versions(index, name)
        if inline:
            return inline

        # An absolute metadata-url is rooted at the host, the default at the repository
        template = index.get("metadata-url") or PACKAGIST_P2_PATH.replace(
            "{package}", "%package%"
        ).lstrip("/")
        url = urljoin(base_url + "/", str(template)).replace("%package%", name.lower())
        payload = await self._fetch(url)
        if payload is None:
            return None
        return extract_versions(payload, name)

    async def _index(self, base_url: str) -> Optional[Dict[str, Any]]:
        if base_url not in self._indexes:
            # A missing index is remembered too
            self._indexes[base_url] = await self._fetch(base_url + COMPOSER_REPOSITORY_INDEX)
        return self._indexes[base_url]

    async def _fetch(self, url: str) -> Optional[Dict[str, Any]]:
        """GET *url* as JSON; 404 yields None and 401/403 an auth failure."""
        credential = find_credential(
            self.credentials, CredentialType.COMPOSER_REPOSITORY, url
        )
        auth = (credential.username, credential.password) if credential else None

        try:
            return await self.http_client.get_json(url, auth=auth)
        except RegistryError as exc:
            if exc.status_code == 404:
                logger.debug("Not found: %s", redact_url(url))
                return None
            raise
        except NetworkError as exc:
            if exc.status_code in _AUTH_FAILURES:
                host = urlsplit(url).hostname or url
                raise PrivateSourceAuthenticationFailure(host) from exc
            raise
