"""
Candidate walks against the resolver.

:class:`VersionResolver` turns "what is the newest version that resolves?"
and "what is the lowest fix that resolves?" into a series of resolver
requests, and turns resolver failures into bumpwise's error taxonomy:

* a conflict means the bump is not possible (``None``);
* an unreachable git source raises :class:`GitDependenciesNotReachable`;
* a rejected private registry raises :class:`PrivateSourceAuthenticationFailure`;
* a platform requirement still missing after relaxation counts as a conflict.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence

from bumpwise.utils.logger import get_logger
from bumpwise.models.strategy import UnlockLevel
from bumpwise.models.credential import Credential
from bumpwise.composer.manifest import ComposerFiles
from bumpwise.composer.version import ComposerVersion
from bumpwise.utils.version_utils import is_commit_sha
from bumpwise.composer.platform import (
    DEFAULT_POLICIES,
    RelaxationPolicy,
    platform_overrides,
)
from bumpwise.composer.resolver import (
    FailureReason,
    Resolution,
    ResolutionFailure,
    ResolutionRequest,
    ResolutionResult,
    Resolver,
)
from bumpwise.exceptions import (
    DependencyFileNotResolvable,
    GitDependenciesNotReachable,
    PrivateSourceAuthenticationFailure,
)
from bumpwise.constants import MAX_RESOLUTION_ATTEMPTS, MAX_SECURITY_FIX_CANDIDATES

logger = get_logger("composer.version_resolver")


class VersionResolver:
    """Asks the resolver about one dependency.

    Args:
        dependency_name: Package under evaluation.
        files: Manifest and optional lockfile.
        resolver: The resolution oracle.
        credentials: Forwarded to every request.
        policies: Platform relaxation policies, applied once before the
            first request.
    """

    def __init__(
        self,
        dependency_name: str,
        files: ComposerFiles,
        resolver: Resolver,
        *,
        credentials: Sequence[Credential] = (),
        policies: Sequence[RelaxationPolicy] = DEFAULT_POLICIES,
    ) -> None:
        self.dependency_name = dependency_name
        self.files = files
        self.resolver = resolver
        self.credentials = tuple(credentials)
        self.policies = list(policies)
        self._platform: Optional[Dict[str, str]] = None
        self.attempts = 0

    @property
    def platform(self) -> Dict[str, str]:
        if self._platform is None:
            self._platform = platform_overrides(self.files, self.policies)
        return self._platform

    async def attempt(
        self,
        requirement: Optional[str],
        unlock: UnlockLevel = UnlockLevel.OWN,
    ) -> Optional[str]:
        """Resolve once; return the resolved version or None.

        ``None`` covers both a conflict and a resolution the package is
        absent from; :meth:`resolve` tells them apart.
        """
        result = await self.resolve(requirement, unlock)
        if isinstance(result, Resolution):
            return result.version
        return None

    async def resolve(
        self,
        requirement: Optional[str],
        unlock: UnlockLevel = UnlockLevel.OWN,
    ) -> ResolutionResult:
        """Resolve once and return the raw outcome.

        Raises:
            GitDependenciesNotReachable: A git source could not be fetched.
            PrivateSourceAuthenticationFailure: A private registry refused
                the credentials.
        """
        request = ResolutionRequest(
            dependency_name=self.dependency_name,
            files=self.files,
            credentials=self.credentials,
            requirement=requirement,
            unlock=unlock,
            platform=self.platform,
        )
        self.attempts += 1
        logger.debug(
            "Resolving %s with requirement %r (unlock=%s)",
            self.dependency_name,
            requirement,
            unlock.value,
        )
        result = await self.resolver.resolve(request)

        if isinstance(result, ResolutionFailure):
            self._interpret(result)
        return result

    def _interpret(self, failure: ResolutionFailure) -> None:
        if failure.reason is FailureReason.UNREACHABLE_SOURCE:
            raise GitDependenciesNotReachable(failure.urls)
        if failure.reason is FailureReason.AUTHENTICATION_FAILED:
            raise PrivateSourceAuthenticationFailure(failure.host or "unknown")
        if failure.reason is FailureReason.MISSING_PLATFORM_REQUIREMENT:
            logger.warning(
                "%s: platform requirement still missing after relaxation; "
                "treating as a conflict",
                self.dependency_name,
            )

    async def check_current_files(self) -> None:
        """Resolve the files as written.

        A resolution that leaves the package out (it is replaced or
        provided by another package) still counts as resolvable.

        Raises:
            DependencyFileNotResolvable: The current files do not resolve.
        """
        if isinstance(await self.resolve(None), ResolutionFailure):
            raise DependencyFileNotResolvable(
                "The current composer.json could not be resolved",
                dependency_name=self.dependency_name,
            )

    async def latest_resolvable(
        self,
        candidates: Sequence[ComposerVersion],
        lower_bound: Optional[str],
        is_ignored: Callable[[str], bool],
    ) -> Optional[str]:
        """Walk *candidates* (newest first) until one resolves.

        Each candidate becomes the upper bound of a range starting at
        *lower_bound*, so the resolver may settle below it. A result that is
        ignored moves the walk to the candidates below that result.
        """
        remaining: List[ComposerVersion] = sorted(candidates, reverse=True)
        tries = 0

        while remaining and tries < MAX_RESOLUTION_ATTEMPTS:
            candidate = remaining[0]
            tries += 1

            requirement = f"<={candidate.raw}"
            if lower_bound:
                requirement = f">={lower_bound}, {requirement}"

            resolved = await self.attempt(requirement)
            if resolved is None:
                return None
            if is_commit_sha(resolved) or not ComposerVersion.is_correct(resolved):
                return resolved
            if not is_ignored(resolved):
                return resolved

            logger.debug("%s resolved to ignored version %s", self.dependency_name, resolved)
            below = ComposerVersion(resolved)
            remaining = [version for version in remaining if version < below]

        if remaining:
            logger.warning(
                "%s: gave up after %d resolution attempts", self.dependency_name, tries
            )
        return None

    async def lowest_resolvable(
        self,
        candidates: Sequence[ComposerVersion],
    ) -> Optional[str]:
        """Return the first of *candidates* (oldest first) that resolves exactly."""
        for candidate in sorted(candidates)[:MAX_SECURITY_FIX_CANDIDATES]:
            resolved = await self.attempt(candidate.raw)
            if resolved is None or not ComposerVersion.is_correct(resolved):
                continue
            if ComposerVersion(resolved) == candidate:
                return resolved
        return None
