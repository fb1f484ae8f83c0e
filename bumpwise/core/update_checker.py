"""
Ecosystem-neutral update decision logic.

:class:`UpdateChecker` answers three questions about one dependency:

* is it up to date?
* can it be updated at a given :class:`~bumpwise.models.UnlockLevel`?
* what does the updated dependency look like?

Subclasses supply the ecosystem capabilities (registry lookups, resolver
calls, requirement rewriting and the version/constraint classes); the
decision rules here are shared by every ecosystem.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    List,
    Optional,
    Sequence,
    Type,
    TypeVar,
)

from bumpwise.exceptions import ParseError
from bumpwise.utils.logger import get_logger
from bumpwise.models.update import Unfixable, Updated, RequirementsUpdate
from bumpwise.models.strategy import UnlockLevel, UpdateStrategy
from bumpwise.models.credential import Credential
from bumpwise.models.advisory import SecurityAdvisory
from bumpwise.models.dependency import Dependency, DependencyFile
from bumpwise.utils.version_utils import is_commit_sha, sha_matches
from bumpwise.core.filters import ignores_all, is_vulnerable, relevant_advisories

logger = get_logger("update_checker")

T = TypeVar("T")


class UpdateChecker(ABC):
    """Base class for per-ecosystem update checkers.

    Args:
        dependency: The dependency under evaluation.
        dependency_files: Manifest and optional lockfile.
        credentials: Credentials for private sources, in priority order.
        ignored_versions: Version ranges that must never be proposed.
        security_advisories: Known advisories; ones for other packages are dropped.
        raise_on_ignored: Raise instead of returning ``None`` when every
            newer version is ignored.
        requirements_update_strategy: Overrides the ecosystem default.
    """

    def __init__(
        self,
        dependency: Dependency,
        dependency_files: Sequence[DependencyFile],
        *,
        credentials: Sequence[Credential] = (),
        ignored_versions: Sequence[str] = (),
        security_advisories: Sequence[SecurityAdvisory] = (),
        raise_on_ignored: bool = False,
        requirements_update_strategy: Optional[UpdateStrategy] = None,
    ) -> None:
        self.dependency = dependency
        self.dependency_files = list(dependency_files)
        self.credentials = list(credentials)
        self.ignored_versions = list(ignored_versions)
        self.security_advisories = relevant_advisories(
            security_advisories, dependency.name, dependency.package_manager
        )
        self.raise_on_ignored = raise_on_ignored
        self.requirements_update_strategy = requirements_update_strategy

        self._cache: Dict[str, Any] = {}
        self._cache_locks: Dict[str, asyncio.Lock] = {}

    # ------------------------------------------------------------------
    # Ecosystem capabilities
    # ------------------------------------------------------------------

    @property
    @abstractmethod
    def version_class(self) -> Type[Any]:
        """Class used to parse versions."""

    @property
    @abstractmethod
    def requirement_class(self) -> Type[Any]:
        """Class used to parse constraints."""

    @abstractmethod
    async def latest_version(self) -> Optional[Any]:
        """Newest acceptable version, ignoring the dependency graph."""

    @abstractmethod
    async def latest_resolvable_version(self) -> Optional[Any]:
        """Newest version the whole graph resolves with."""

    @abstractmethod
    async def latest_resolvable_version_with_no_unlock(self) -> Optional[Any]:
        """Newest version reachable without touching any requirement string."""

    @abstractmethod
    async def lowest_resolvable_security_fix_version(self) -> Optional[Any]:
        """Lowest non-vulnerable version the graph resolves with."""

    @abstractmethod
    async def updated_requirements(self) -> RequirementsUpdate:
        """Requirement set rewritten for the preferred version."""

    async def latest_version_resolvable_with_full_unlock(self) -> bool:
        return False

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    async def _memoize(self, key: str, compute: Callable[[], Awaitable[T]]) -> T:
        """Compute a value once per checker; failures are not cached."""
        if key in self._cache:
            return self._cache[key]

        lock = self._cache_locks.setdefault(key, asyncio.Lock())
        async with lock:
            if key not in self._cache:
                self._cache[key] = await compute()
        return self._cache[key]

    @property
    def current_version(self) -> Optional[Any]:
        """The locked version parsed with :attr:`version_class`, if numeric."""
        raw = self.dependency.version
        if raw is None or is_commit_sha(raw) or not self.version_class.is_correct(raw):
            return None
        return self.version_class(raw)

    def ignores_all_versions(self) -> bool:
        return ignores_all(self.ignored_versions, requirement_class=self.requirement_class)

    def vulnerable(self) -> bool:
        if not self.security_advisories:
            return False
        current = self.current_version
        if current is None:
            return False
        return is_vulnerable(
            current,
            self.security_advisories,
            requirement_class=self.requirement_class,
        )

    async def preferred_resolvable_version(self) -> Optional[Any]:
        if self.vulnerable():
            return await self.lowest_resolvable_security_fix_version()
        return await self.latest_resolvable_version()

    def _is_newer(self, candidate: Optional[Any]) -> bool:
        """Return True if *candidate* is an upgrade over the current version."""
        if candidate is None:
            return False

        current_raw = self.dependency.version
        if is_commit_sha(current_raw) or is_commit_sha(str(candidate)):
            return not sha_matches(current_raw, str(candidate))

        current = self.current_version
        if current is None:
            return False
        return candidate > current

    # ------------------------------------------------------------------
    # Decisions
    # ------------------------------------------------------------------

    async def up_to_date(self) -> bool:
        """Return True if no newer version is worth proposing."""
        if self.dependency.version is None:
            return await self._requirements_up_to_date()
        if is_commit_sha(self.dependency.version):
            return await self._sha_up_to_date()
        return await self._numeric_version_up_to_date()

    async def _numeric_version_up_to_date(self) -> bool:
        current = self.current_version
        if current is None:
            return False

        latest = await self.latest_version()
        if latest is None:
            return False
        # The dependency moved to a git source
        if is_commit_sha(str(latest)):
            return True
        return latest <= current

    async def _sha_up_to_date(self) -> bool:
        current = self.dependency.version

        latest = await self.latest_version()
        if latest is not None and sha_matches(current, str(latest)):
            return True

        resolvable = await self.latest_resolvable_version()
        return resolvable is not None and sha_matches(current, str(resolvable))

    async def _requirements_up_to_date(self) -> bool:
        latest = await self.latest_version()
        if latest is not None and not is_commit_sha(str(latest)):
            bounds = self._requirement_lower_bounds()
            if bounds and max(bounds) >= latest:
                return True

        updated = await self.updated_requirements()
        return isinstance(updated, Updated) and updated.requirements == self.dependency.requirements

    def _requirement_lower_bounds(self) -> List[Any]:
        bounds: List[Any] = []
        for requirement in self.dependency.requirements:
            if not requirement.requirement:
                continue
            try:
                parsed = self.requirement_class(requirement.requirement)
            except ParseError:
                logger.debug("Cannot compare requirement %r", requirement.requirement)
                continue
            bounds.extend(parsed.lower_bounds())
        return bounds

    async def can_update(self, unlock: UnlockLevel = UnlockLevel.OWN) -> bool:
        """Return True if an update is possible at the given unlock level."""
        if self.ignores_all_versions():
            logger.debug("All versions of %s are ignored", self.dependency.name)
            return False
        # Without a resolved version nothing can move while requirements stay put
        if self.dependency.version is None and unlock is UnlockLevel.NONE:
            return False
        if await self.up_to_date():
            return False

        if self.dependency.version is None:
            return await self._requirements_changed()

        if unlock is UnlockLevel.NONE:
            return self._is_newer(await self.latest_resolvable_version_with_no_unlock())

        if unlock is UnlockLevel.OWN:
            if not self._is_newer(await self.preferred_resolvable_version()):
                return False
            return not isinstance(await self.updated_requirements(), Unfixable)

        if self._is_newer(await self.latest_resolvable_version()):
            return True
        return await self.latest_version_resolvable_with_full_unlock()

    async def _requirements_changed(self) -> bool:
        updated = await self.updated_requirements()
        if isinstance(updated, Unfixable):
            return False
        return updated.requirements != self.dependency.requirements

    async def updated_dependencies(
        self, unlock: UnlockLevel = UnlockLevel.OWN
    ) -> List[Dependency]:
        """Return the updated dependency, or an empty list if none is possible."""
        if not await self.can_update(unlock):
            return []

        if unlock is UnlockLevel.NONE:
            version = await self.latest_resolvable_version_with_no_unlock()
            requirements = self.dependency.requirements
        else:
            if unlock is UnlockLevel.OWN:
                version = await self.preferred_resolvable_version()
            else:
                version = await self.latest_resolvable_version()

            updated = await self.updated_requirements()
            requirements = (
                updated.requirements
                if isinstance(updated, Updated)
                else self.dependency.requirements
            )

        new_version = str(version) if version is not None else None
        logger.info(
            "%s: %s -> %s",
            self.dependency.name,
            self.dependency.version or "(unlocked)",
            new_version or "(unlocked)",
        )
        return [self.dependency.updated(new_version, requirements)]
