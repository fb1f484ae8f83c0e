"""
Update checker for Composer dependencies.

Registry dependencies are looked up on Packagist (and any ``composer``
repositories the manifest declares); git dependencies are looked up on
their remote; path dependencies and packages replaced by another package
are never updated. Resolution is delegated to a :class:`Resolver`.

Example::

    async with HTTPClient() as client:
        checker = ComposerUpdateChecker.create(dependency, files, client)
        if await checker.can_update(UnlockLevel.OWN):
            [updated] = await checker.updated_dependencies(UnlockLevel.OWN)
"""

from __future__ import annotations

from typing import Any, List, Optional, Sequence, Type, Union

from bumpwise.utils.http import HTTPClient
from bumpwise.utils.logger import get_logger
from bumpwise.core.update_checker import UpdateChecker
from bumpwise.core.filters import filter_ignored, is_vulnerable, lowest_fix
from bumpwise.models.update import RequirementsUpdate
from bumpwise.models.strategy import UnlockLevel, UpdateStrategy
from bumpwise.models.credential import Credential
from bumpwise.models.advisory import SecurityAdvisory
from bumpwise.models.dependency import Dependency, DependencyFile
from bumpwise.composer.git import GitRemote
from bumpwise.composer.manifest import ComposerFiles
from bumpwise.composer.registry import RegistryClient
from bumpwise.composer.platform import DEFAULT_POLICIES, RelaxationPolicy
from bumpwise.composer.resolver import ComposerProcessResolver, Resolver
from bumpwise.composer.version_resolver import VersionResolver
from bumpwise.composer.requirements_updater import RequirementsUpdater
from bumpwise.composer.source import (
    SourceKind,
    classify_dependency,
    git_source_of,
    is_replaced,
)
from bumpwise.utils.version_utils import is_commit_sha
from bumpwise.composer.version import ComposerRequirement, ComposerVersion
from bumpwise.constants import PACKAGIST_URL, MAX_SECURITY_FIX_CANDIDATES
from bumpwise.exceptions import AllVersionsIgnored, BumpwiseError

logger = get_logger("composer.update_checker")

VersionLike = Union[ComposerVersion, str]


class ComposerUpdateChecker(UpdateChecker):
    """Update checker for one Composer dependency.

    Args:
        dependency: Dependency under evaluation.
        dependency_files: ``composer.json`` and optionally ``composer.lock``.
        registry: Registry client.
        git_remote: Git remote client.
        resolver: Resolution oracle.
        policies: Platform relaxation policies.
        **kwargs: Forwarded to :class:`~bumpwise.core.update_checker.UpdateChecker`.
    """

    def __init__(
        self,
        dependency: Dependency,
        dependency_files: Sequence[DependencyFile],
        *,
        registry: RegistryClient,
        git_remote: GitRemote,
        resolver: Resolver,
        policies: Sequence[RelaxationPolicy] = DEFAULT_POLICIES,
        **kwargs: Any,
    ) -> None:
        super().__init__(dependency, dependency_files, **kwargs)

        self.files = ComposerFiles(dependency_files)
        self.registry = registry
        self.git_remote = git_remote
        self.source_kind = classify_dependency(dependency)
        self.version_resolver = VersionResolver(
            dependency.name,
            self.files,
            resolver,
            credentials=self.credentials,
            policies=policies,
        )

    @classmethod
    def create(
        cls,
        dependency: Dependency,
        dependency_files: Sequence[DependencyFile],
        http_client: HTTPClient,
        *,
        credentials: Sequence[Credential] = (),
        resolver: Optional[Resolver] = None,
        packagist_url: str = PACKAGIST_URL,
        **kwargs: Any,
    ) -> "ComposerUpdateChecker":
        """Build a checker whose clients share *http_client*."""
        files = ComposerFiles(dependency_files)
        registry = RegistryClient(
            http_client,
            repositories=files.composer_repository_urls(),
            credentials=credentials,
            packagist_url=packagist_url,
            use_packagist=not files.packagist_disabled,
        )
        return cls(
            dependency,
            dependency_files,
            registry=registry,
            git_remote=GitRemote(http_client, credentials),
            resolver=resolver or ComposerProcessResolver(),
            credentials=credentials,
            **kwargs,
        )

    # ------------------------------------------------------------------
    # Capabilities
    # ------------------------------------------------------------------

    @property
    def version_class(self) -> Type[ComposerVersion]:
        return ComposerVersion

    @property
    def requirement_class(self) -> Type[ComposerRequirement]:
        return ComposerRequirement

    @property
    def skipped(self) -> bool:
        """Path and replaced dependencies are never looked up."""
        if self.source_kind in (SourceKind.PATH, SourceKind.UNRECOGNIZED):
            return True
        return is_replaced(self.dependency.name, self.files.manifest, self.files.lockfile)

    @property
    def default_strategy(self) -> UpdateStrategy:
        if self.files.is_library:
            return UpdateStrategy.WIDEN_RANGES
        return UpdateStrategy.BUMP_VERSIONS_IF_NECESSARY

    # ------------------------------------------------------------------
    # Version lookups
    # ------------------------------------------------------------------

    async def latest_version(self) -> Optional[VersionLike]:
        return await self._memoize("latest_version", self._fetch_latest_version)

    async def _fetch_latest_version(self) -> Optional[VersionLike]:
        if self.skipped:
            logger.debug("%s is path-sourced or replaced; skipping", self.dependency.name)
            return None
        if self.source_kind is SourceKind.GIT:
            return await self._latest_git_commit()

        versions = await self._registry_versions()
        if versions is None:
            return None
        if not versions:
            logger.info(
                "%s has no published releases; using the latest resolvable version",
                self.dependency.name,
            )
            return await self.latest_resolvable_version()

        candidates = self._acceptable(versions)
        allowed = self._not_ignored(candidates)

        if self.raise_on_ignored and self._newer(candidates) and not self._newer(allowed):
            raise AllVersionsIgnored(self.dependency.name)

        return max(allowed) if allowed else None

    async def latest_resolvable_version(self) -> Optional[VersionLike]:
        return await self._memoize(
            "latest_resolvable_version", self._fetch_latest_resolvable_version
        )

    async def _fetch_latest_resolvable_version(self) -> Optional[VersionLike]:
        if self.skipped:
            return None

        if self.source_kind is SourceKind.GIT:
            resolved = await self.version_resolver.attempt(None)
        else:
            versions = await self._registry_versions()
            if versions is None:
                return None
            resolved = await self._walk_candidates(versions)

        if resolved is None and self.files.lockfile is None:
            await self.version_resolver.check_current_files()
        return self._as_version(resolved)

    async def _walk_candidates(self, versions: List[ComposerVersion]) -> Optional[str]:
        if not versions:
            return await self.version_resolver.attempt(None)

        candidates = self._newer(self._not_ignored(self._acceptable(versions)))
        if not candidates:
            if self.dependency.version is not None:
                return self.dependency.version
            return await self.version_resolver.attempt(None)

        return await self.version_resolver.latest_resolvable(
            candidates,
            lower_bound=self._lower_bound(),
            is_ignored=lambda version: not self._not_ignored([version]),
        )

    async def latest_resolvable_version_with_no_unlock(self) -> Optional[VersionLike]:
        return await self._memoize(
            "latest_resolvable_version_with_no_unlock", self._fetch_no_unlock
        )

    async def _fetch_no_unlock(self) -> Optional[VersionLike]:
        if self.skipped or self.files.lockfile is None:
            return None
        resolved = await self.version_resolver.attempt(None, UnlockLevel.NONE)
        return self._as_version(resolved)

    async def lowest_security_fix_version(self) -> Optional[ComposerVersion]:
        """Lowest non-vulnerable release above the current one, ignoring the graph."""
        return await self._memoize("lowest_security_fix_version", self._fetch_lowest_fix)

    async def _fetch_lowest_fix(self) -> Optional[ComposerVersion]:
        current = self.current_version
        if self.skipped or current is None:
            return None
        versions = await self._registry_versions()
        if not versions:
            return None
        return lowest_fix(
            current,
            self._acceptable(versions),
            self.security_advisories,
            self.ignored_versions,
            requirement_class=ComposerRequirement,
        )

    async def lowest_resolvable_security_fix_version(self) -> Optional[VersionLike]:
        if not self.vulnerable():
            raise BumpwiseError(
                "Dependency is not vulnerable; there is no security fix to find",
                {"dependency": self.dependency.name},
            )
        return await self._memoize(
            "lowest_resolvable_security_fix_version", self._fetch_lowest_resolvable_fix
        )

    async def _fetch_lowest_resolvable_fix(self) -> Optional[VersionLike]:
        if self.skipped or self.source_kind is SourceKind.GIT:
            return None
        versions = await self._registry_versions()
        if not versions:
            return None

        fixes = [
            version
            for version in sorted(
                self._newer(self._not_ignored(self._acceptable(versions)))
            )
            if not is_vulnerable(
                version, self.security_advisories, requirement_class=ComposerRequirement
            )
        ]
        resolved = await self.version_resolver.lowest_resolvable(
            fixes[:MAX_SECURITY_FIX_CANDIDATES]
        )
        return self._as_version(resolved)

    async def updated_requirements(self) -> RequirementsUpdate:
        return await self._memoize("updated_requirements", self._compute_requirements)

    async def _compute_requirements(self) -> RequirementsUpdate:
        target = await self.preferred_resolvable_version()
        strategy = self.requirements_update_strategy or self.default_strategy
        return RequirementsUpdater(
            self.dependency.requirements,
            str(target) if target is not None else None,
            strategy,
        ).updated_requirements()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _registry_versions(self) -> Optional[List[ComposerVersion]]:
        raw_versions = await self.registry.get_versions(self.dependency.name)
        if raw_versions is None:
            return None

        parsed: List[ComposerVersion] = []
        for raw in raw_versions:
            if ComposerVersion.is_correct(raw):
                parsed.append(ComposerVersion(raw))
            else:
                logger.debug("Skipping unparseable version %r of %s", raw, self.dependency.name)
        return parsed

    async def _latest_git_commit(self) -> Optional[str]:
        source = git_source_of(self.dependency)
        if not source or not source["url"]:
            return None

        commit = await self.git_remote.ref_commit(source["url"], source["branch"])
        if commit is None and source["branch"]:
            logger.info(
                "Branch %s no longer exists on %s; falling back to HEAD",
                source["branch"],
                source["url"],
            )
            commit = await self.git_remote.ref_commit(source["url"], None)
        return commit

    def _not_ignored(self, versions: List[Any]) -> List[Any]:
        return filter_ignored(
            versions, self.ignored_versions, requirement_class=ComposerRequirement
        )

    def _acceptable(self, versions: List[ComposerVersion]) -> List[ComposerVersion]:
        """Drop pre-releases unless the dependency is already on one."""
        current = self.current_version
        if current is not None and current.is_prerelease:
            return list(versions)
        return [version for version in versions if not version.is_prerelease]

    def _newer(self, versions: List[ComposerVersion]) -> List[ComposerVersion]:
        current = self.current_version
        if current is None:
            bounds = self._requirement_lower_bounds()
            if not bounds:
                return list(versions)
            floor = max(bounds)
            return [version for version in versions if version >= floor]
        return [version for version in versions if version > current]

    def _lower_bound(self) -> Optional[str]:
        if self.dependency.version is not None and not is_commit_sha(self.dependency.version):
            return self.dependency.version
        bounds = self._requirement_lower_bounds()
        return max(bounds).raw if bounds else None

    @staticmethod
    def _as_version(resolved: Optional[str]) -> Optional[VersionLike]:
        if resolved is None:
            return None
        if is_commit_sha(resolved):
            return resolved
        if ComposerVersion.is_correct(resolved):
            return ComposerVersion(resolved)
        return None
