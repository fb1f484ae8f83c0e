"""
Resolver contract and the Composer-backed implementation.

The dependency solver is an oracle: given a manifest, a lockfile, a
requirement override and an unlock level it either reports the version the
dependency resolved to, or a classified failure. bumpwise never reasons
about the graph itself.

:class:`ComposerProcessResolver` runs ``composer update`` in a private
temporary directory per call, so concurrent checks never share state.
"""

from __future__ import annotations

import os
import re
import copy
import json
import asyncio
import tempfile
from enum import Enum
from pathlib import Path
from urllib.parse import urlsplit
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Tuple, Union

from bumpwise.utils.logger import get_logger
from bumpwise.exceptions import ResolverError
from bumpwise.models.strategy import UnlockLevel
from bumpwise.models.credential import Credential
from bumpwise.composer.manifest import ComposerFiles, resolved_version
from bumpwise.constants import (
    LOCKFILE_FILENAME,
    MANIFEST_FILENAME,
    DEFAULT_COMPOSER_BINARY,
    DEFAULT_COMPOSER_TIMEOUT,
)

logger = get_logger("composer.resolver")


class FailureReason(str, Enum):
    CONFLICT = "conflict"
    MISSING_PLATFORM_REQUIREMENT = "missing_platform_requirement"
    UNREACHABLE_SOURCE = "unreachable_source"
    AUTHENTICATION_FAILED = "authentication_failed"


@dataclass(frozen=True)
class ResolutionRequest:
    """
    One question for the resolver.

    Attributes:
        dependency_name: Package whose resolved version is wanted.
        files: Parsed manifest and optional lockfile.
        credentials: Passed to the resolver untouched.
        requirement: Constraint to substitute for the dependency's own,
            or ``None`` to keep the manifest as written.
        unlock: How far the update may ripple through the graph.
        platform: ``config.platform`` entries to add.
    """

    dependency_name: str
    files: ComposerFiles
    credentials: Tuple[Credential, ...] = ()
    requirement: Optional[str] = None
    unlock: UnlockLevel = UnlockLevel.OWN
    platform: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Resolution:
    """Successful resolution; ``version`` is None if the package dropped out."""

    version: Optional[str]


@dataclass(frozen=True)
class ResolutionFailure:
    reason: FailureReason
    detail: str = ""
    urls: Tuple[str, ...] = ()
    host: Optional[str] = None


ResolutionResult = Union[Resolution, ResolutionFailure]


class Resolver(Protocol):
    async def resolve(self, request: ResolutionRequest) -> ResolutionResult:
        ...


# ---------------------------------------------------------------------------
# Output classification
# ---------------------------------------------------------------------------

_UNREACHABLE = (
    re.compile(r"Failed to execute git clone --(?:mirror|no-checkout) '(?P<url>[^']+)'"),
    re.compile(r"Failed to clone (?P<url>\S+?) via"),
    re.compile(r"Failed to clone (?P<url>\S+), git was not found"),
)

_AUTH_HOST = re.compile(r"Authentication required \((?P<host>[^)\s]+)\)")
_AUTH_URL = (
    re.compile(r"The \"(?P<url>[^\"]+)\" file could not be downloaded \(HTTP/[\d.]+ 40[13]"),
    re.compile(r"Invalid credentials for '(?P<url>[^']+)'"),
)

_MISSING_PLATFORM = (
    re.compile(r"requires (?:ext|lib)-[\w.-]+"),
    re.compile(r"PHP extension [\w.-]+ is missing"),
    re.compile(r"your php version \([^)]*\) does not satisfy"),
)

_CONFLICT = (
    re.compile(r"Your requirements could not be resolved"),
    re.compile(r"could not be found in any version"),
    re.compile(r"could not be found"),
)


def _host(url: str) -> str:
    return urlsplit(url).hostname or url


def classify_output(output: str) -> Optional[ResolutionFailure]:
    """Map Composer's error output to a :class:`ResolutionFailure`.

    Returns None when the output matches no known failure.
    """
    urls: List[str] = []
    for pattern in _UNREACHABLE:
        urls.extend(match.group("url") for match in pattern.finditer(output))
    if urls:
        return ResolutionFailure(
            FailureReason.UNREACHABLE_SOURCE,
            detail=output,
            urls=tuple(dict.fromkeys(urls)),
        )

    auth = _AUTH_HOST.search(output)
    if auth:
        return ResolutionFailure(
            FailureReason.AUTHENTICATION_FAILED, detail=output, host=auth.group("host")
        )
    for pattern in _AUTH_URL:
        match = pattern.search(output)
        if match:
            return ResolutionFailure(
                FailureReason.AUTHENTICATION_FAILED,
                detail=output,
                host=_host(match.group("url")),
            )

    if any(pattern.search(output) for pattern in _MISSING_PLATFORM):
        return ResolutionFailure(FailureReason.MISSING_PLATFORM_REQUIREMENT, detail=output)

    if any(pattern.search(output) for pattern in _CONFLICT):
        return ResolutionFailure(FailureReason.CONFLICT, detail=output)

    return None


# ---------------------------------------------------------------------------
# Composer process resolver
# ---------------------------------------------------------------------------


def prepared_manifest(request: ResolutionRequest) -> Dict[str, Any]:
    """The manifest as the resolver should see it for *request*."""
    manifest = copy.deepcopy(request.files.manifest)

    if request.requirement is not None:
        target = "require"
        for key in ("require", "require-dev"):
            table = manifest.get(key)
            if isinstance(table, dict) and any(
                name.lower() == request.dependency_name.lower() for name in table
            ):
                target = key
                break

        table = manifest.setdefault(target, {})
        for name in list(table):
            if name.lower() == request.dependency_name.lower():
                del table[name]
        table[request.dependency_name] = request.requirement

    if request.platform:
        config = manifest.setdefault("config", {})
        platform = config.setdefault("platform", {})
        for name, version in request.platform.items():
            platform.setdefault(name, version)

    return manifest


def auth_config(credentials: Tuple[Credential, ...]) -> Dict[str, Any]:
    """Build an ``auth.json`` document from explicit credentials."""
    basic: Dict[str, Dict[str, str]] = {}
    for credential in credentials:
        if not credential.target:
            continue
        host = _host(credential.target) if "://" in credential.target else credential.target
        basic.setdefault(
            host, {"username": credential.username, "password": credential.password}
        )
    return {"http-basic": basic} if basic else {}


class ComposerProcessResolver:
    """Resolves by running the ``composer`` binary.

    Args:
        binary: Composer executable.
        timeout: Seconds a single run may take.
    """

    def __init__(
        self,
        binary: str = DEFAULT_COMPOSER_BINARY,
        *,
        timeout: int = DEFAULT_COMPOSER_TIMEOUT,
    ) -> None:
        self.binary = binary
        self.timeout = timeout

    def command(self, request: ResolutionRequest) -> List[str]:
        ripple = (
            "--with-all-dependencies"
            if request.unlock is UnlockLevel.ALL
            else "--with-dependencies"
        )
        return [
            self.binary,
            "update",
            request.dependency_name,
            ripple,
            "--no-install",
            "--no-scripts",
            "--no-plugins",
            "--no-interaction",
            "--no-progress",
            "--no-ansi",
        ]

    async def resolve(self, request: ResolutionRequest) -> ResolutionResult:
        with tempfile.TemporaryDirectory(prefix="bumpwise-composer-") as temp_dir:
            workdir = Path(temp_dir)
            self._write_files(workdir, request)

            command = self.command(request)
            exit_code, output = await self._run(command, workdir)

            if exit_code == 0:
                lock_path = workdir / LOCKFILE_FILENAME
                try:
                    lockfile = json.loads(lock_path.read_text(encoding="utf-8"))
                except (OSError, json.JSONDecodeError) as exc:
                    raise ResolverError(
                        "Composer succeeded but wrote no readable lockfile",
                        command=" ".join(command),
                        exit_code=exit_code,
                        output=output,
                    ) from exc
                version = resolved_version(lockfile, request.dependency_name)
                logger.debug("%s resolved to %s", request.dependency_name, version)
                return Resolution(version)

        failure = classify_output(output)
        if failure is None:
            raise ResolverError(
                "Composer failed with unrecognised output",
                command=" ".join(command),
                exit_code=exit_code,
                output=output,
            )
        logger.debug("Resolution of %s failed: %s", request.dependency_name, failure.reason.value)
        return failure

    def _write_files(self, workdir: Path, request: ResolutionRequest) -> None:
        (workdir / MANIFEST_FILENAME).write_text(
            json.dumps(prepared_manifest(request), indent=4), encoding="utf-8"
        )
        if request.files.lockfile is not None:
            (workdir / LOCKFILE_FILENAME).write_text(
                json.dumps(request.files.lockfile, indent=4), encoding="utf-8"
            )
        for extra in request.files.extra_files:
            target = (workdir / extra.name).resolve()
            if workdir.resolve() not in target.parents:
                logger.warning("Skipping supporting file outside the project: %s", extra.name)
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(extra.content, encoding="utf-8")

        auth = auth_config(request.credentials)
        if auth:
            (workdir / "auth.json").write_text(json.dumps(auth), encoding="utf-8")

    async def _run(self, command: List[str], workdir: Path) -> Tuple[int, str]:
        env = dict(os.environ)
        env.update(
            {
                "COMPOSER_NO_INTERACTION": "1",
                "COMPOSER_ALLOW_SUPERUSER": "1",
                "COMPOSER_HOME": str(workdir / ".composer"),
            }
        )

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                cwd=str(workdir),
                env=env,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except FileNotFoundError as exc:
            raise ResolverError(
                f"Composer executable not found: {self.binary}",
                command=" ".join(command),
            ) from exc

        try:
            stdout, _ = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            process.kill()
            await process.wait()
            raise ResolverError(
                f"Composer timed out after {self.timeout}s",
                command=" ".join(command),
            ) from exc

        return process.returncode or 0, stdout.decode("utf-8", errors="replace")
