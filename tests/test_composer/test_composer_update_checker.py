from __future__ import annotations

import pytest
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

from bumpwise.models.update import Unfixable, Updated
from bumpwise.models.advisory import SecurityAdvisory
from bumpwise.models.dependency import DependencyFile
from bumpwise.models.strategy import UnlockLevel, UpdateStrategy
from bumpwise.composer.manifest import ComposerFiles
from bumpwise.composer.registry import RegistryClient
from bumpwise.composer.version import ComposerRequirement, ComposerVersion
from bumpwise.composer.update_checker import ComposerUpdateChecker
from bumpwise.composer.resolver import FailureReason, Resolution, ResolutionFailure
from bumpwise.exceptions import (
    AllVersionsIgnored,
    BumpwiseError,
    DependencyFileNotResolvable,
    PrivateSourceAuthenticationFailure,
)

CURRENT_SHA = "b704c49a3051536f67f2d39f13568f74615b9922"
NEWER_SHA = "303b8a83c87d5c6d749926cf02620465a5dcd0f2"


def _solver(available: List[str], unconstrained: str):
    """Answer like Composer: the highest available version the override admits."""

    def answer(request):
        if request.requirement is None:
            return Resolution(unconstrained)
        requirement = ComposerRequirement(request.requirement)
        matching = [version for version in available if requirement.satisfied_by(version)]
        if not matching:
            return ResolutionFailure(FailureReason.CONFLICT)
        return Resolution(max(matching, key=ComposerVersion))

    return answer


def _registry(versions: Optional[List[str]] = None, **kwargs: Any) -> MagicMock:
    registry = MagicMock(spec=RegistryClient)
    registry.get_versions = AsyncMock(return_value=versions, **kwargs)
    return registry


def _git_remote(*commits: Optional[str]) -> MagicMock:
    remote = MagicMock()
    remote.ref_commit = AsyncMock(side_effect=list(commits))
    return remote


@pytest.fixture
def build_checker(scripted_resolver):
    """Build a checker for one dependency with doubles for every collaborator."""

    def build(
        files: List[DependencyFile],
        name: str = "monolog/monolog",
        *,
        registry: Optional[MagicMock] = None,
        git_remote: Optional[MagicMock] = None,
        resolver=None,
        **kwargs: Any,
    ) -> ComposerUpdateChecker:
        dependency = ComposerFiles(files).dependency(name)
        return ComposerUpdateChecker(
            dependency,
            files,
            registry=registry or _registry([]),
            git_remote=git_remote or _git_remote(),
            resolver=resolver or scripted_resolver(version=None),
            **kwargs,
        )

    return build


@pytest.fixture
def monolog_files(make_files, monolog_manifest, monolog_lockfile) -> List[DependencyFile]:
    return make_files(monolog_manifest, monolog_lockfile)


@pytest.fixture
def monolog_solver(monolog_versions, scripted_resolver):
    numeric = [version for version in monolog_versions if ComposerVersion.is_correct(version)]
    return scripted_resolver(_solver(numeric, unconstrained="1.0.2"))


@pytest.fixture
def git_files(make_files) -> List[DependencyFile]:
    lockfile: Dict[str, Any] = {
        "packages": [
            {
                "name": "acme/widget",
                "version": "dev-main",
                "source": {
                    "type": "git",
                    "url": "https://github.com/acme/widget.git",
                    "reference": CURRENT_SHA,
                },
            }
        ]
    }
    manifest = {
        "require": {"acme/widget": "dev-main"},
        "repositories": [{"type": "vcs", "url": "https://github.com/acme/widget.git"}],
    }
    return make_files(manifest, lockfile)


@pytest.mark.unit
class TestLatestVersion:
    """Newest acceptable version, ignoring the dependency graph."""

    @pytest.mark.asyncio
    async def test_newest_stable_release(self, build_checker, monolog_files, monolog_versions) -> None:
        checker = build_checker(monolog_files, registry=_registry(monolog_versions))

        assert await checker.latest_version() == ComposerVersion("1.22.1")

    @pytest.mark.asyncio
    async def test_prereleases_allowed_when_current_is_one(
        self, build_checker, make_files, monolog_manifest, monolog_lockfile, monolog_versions
    ) -> None:
        monolog_lockfile["packages"][0]["version"] = "2.0.0-alpha1"
        checker = build_checker(
            make_files(monolog_manifest, monolog_lockfile), registry=_registry(monolog_versions)
        )

        assert await checker.latest_version() == ComposerVersion("2.0.0-beta1")

    @pytest.mark.asyncio
    async def test_ignored_versions_are_skipped(self, build_checker, monolog_files, monolog_versions) -> None:
        checker = build_checker(
            monolog_files,
            registry=_registry(monolog_versions),
            ignored_versions=[">= 1.22.0.a, < 1.23"],
        )

        assert await checker.latest_version() == ComposerVersion("1.21.0")

    @pytest.mark.asyncio
    async def test_all_newer_versions_ignored_raises(
        self, build_checker, monolog_files, monolog_versions
    ) -> None:
        checker = build_checker(
            monolog_files,
            registry=_registry(monolog_versions),
            ignored_versions=[">= 1.0.2"],
            raise_on_ignored=True,
        )

        with pytest.raises(AllVersionsIgnored):
            await checker.latest_version()

    @pytest.mark.asyncio
    async def test_all_newer_versions_ignored_without_raising(
        self, build_checker, monolog_files, monolog_versions
    ) -> None:
        checker = build_checker(
            monolog_files, registry=_registry(monolog_versions), ignored_versions=[">= 1.0.2"]
        )

        assert await checker.latest_version() == ComposerVersion("1.0.1")

    @pytest.mark.asyncio
    async def test_unknown_package(self, build_checker, monolog_files, scripted_resolver) -> None:
        resolver = scripted_resolver(version="1.0.2")
        checker = build_checker(monolog_files, registry=_registry(None), resolver=resolver)

        assert await checker.latest_version() is None
        assert await checker.latest_resolvable_version() is None
        assert resolver.requests == []

    @pytest.mark.asyncio
    async def test_empty_listing_falls_back_to_resolution(
        self, build_checker, monolog_files, scripted_resolver
    ) -> None:
        resolver = scripted_resolver(version="1.0.2")
        checker = build_checker(monolog_files, registry=_registry([]), resolver=resolver)

        assert await checker.latest_version() == ComposerVersion("1.0.2")
        [request] = resolver.requests
        assert request.requirement is None

    @pytest.mark.asyncio
    async def test_lookup_is_memoized(self, build_checker, monolog_files, monolog_versions) -> None:
        registry = _registry(monolog_versions)
        checker = build_checker(monolog_files, registry=registry)

        await checker.latest_version()
        await checker.latest_version()

        registry.get_versions.assert_awaited_once_with("monolog/monolog")

    @pytest.mark.asyncio
    async def test_authentication_failure_names_host(self, build_checker, monolog_files) -> None:
        registry = _registry(side_effect=PrivateSourceAuthenticationFailure("php.fury.io"))
        checker = build_checker(monolog_files, registry=registry)

        with pytest.raises(PrivateSourceAuthenticationFailure) as exc_info:
            await checker.latest_version()
        assert exc_info.value.source == "php.fury.io"


@pytest.mark.unit
class TestLatestResolvableVersion:
    @pytest.mark.asyncio
    async def test_walks_from_newest_candidate(
        self, build_checker, monolog_files, monolog_versions, monolog_solver
    ) -> None:
        checker = build_checker(
            monolog_files, registry=_registry(monolog_versions), resolver=monolog_solver
        )

        assert await checker.latest_resolvable_version() == ComposerVersion("1.22.1")
        assert monolog_solver.requests[0].requirement == ">=1.0.1, <=1.22.1"

    @pytest.mark.asyncio
    async def test_no_newer_candidate_skips_resolver(
        self, build_checker, make_files, monolog_manifest, monolog_lockfile, scripted_resolver
    ) -> None:
        monolog_lockfile["packages"][0]["version"] = "1.22.1"
        resolver = scripted_resolver(version="1.0.0")
        checker = build_checker(
            make_files(monolog_manifest, monolog_lockfile),
            registry=_registry(["1.0.0", "1.22.1"]),
            resolver=resolver,
        )

        assert await checker.latest_resolvable_version() == ComposerVersion("1.22.1")
        assert resolver.requests == []

    @pytest.mark.asyncio
    async def test_with_no_unlock(self, build_checker, monolog_files, monolog_versions, monolog_solver) -> None:
        checker = build_checker(
            monolog_files, registry=_registry(monolog_versions), resolver=monolog_solver
        )

        assert await checker.latest_resolvable_version_with_no_unlock() == ComposerVersion("1.0.2")
        [request] = monolog_solver.requests
        assert request.requirement is None
        assert request.unlock is UnlockLevel.NONE

    @pytest.mark.asyncio
    async def test_with_no_unlock_needs_lockfile(
        self, build_checker, make_files, monolog_manifest, monolog_solver
    ) -> None:
        checker = build_checker(make_files(monolog_manifest), resolver=monolog_solver)

        assert await checker.latest_resolvable_version_with_no_unlock() is None
        assert monolog_solver.requests == []


@pytest.mark.unit
class TestWithoutLockfile:
    """Manifest-only projects: a failed walk checks the manifest as written."""

    @pytest.fixture
    def files(self, make_files, monolog_manifest) -> List[DependencyFile]:
        return make_files(monolog_manifest)

    @pytest.mark.asyncio
    async def test_unresolvable_manifest_raises(
        self, build_checker, files, monolog_versions, scripted_resolver
    ) -> None:
        resolver = scripted_resolver(lambda request: ResolutionFailure(FailureReason.CONFLICT))
        checker = build_checker(files, registry=_registry(monolog_versions), resolver=resolver)

        with pytest.raises(DependencyFileNotResolvable):
            await checker.latest_resolvable_version()
        assert resolver.requests[-1].requirement is None

    @pytest.mark.asyncio
    async def test_blocked_bump_is_none(
        self, build_checker, files, monolog_versions, scripted_resolver
    ) -> None:
        def answer(request):
            if request.requirement is None:
                return Resolution("1.0.2")
            return ResolutionFailure(FailureReason.CONFLICT)

        resolver = scripted_resolver(answer)
        checker = build_checker(files, registry=_registry(monolog_versions), resolver=resolver)

        assert await checker.latest_resolvable_version() is None
        assert resolver.requests[-1].requirement is None

    @pytest.mark.asyncio
    async def test_package_absent_from_resolution_is_none(
        self, build_checker, files, monolog_versions, scripted_resolver
    ) -> None:
        resolver = scripted_resolver(version=None)
        checker = build_checker(files, registry=_registry(monolog_versions), resolver=resolver)

        assert await checker.latest_resolvable_version() is None

    @pytest.mark.asyncio
    async def test_no_unlock_cannot_update(
        self, build_checker, files, monolog_versions, monolog_solver
    ) -> None:
        checker = build_checker(
            files, registry=_registry(monolog_versions), resolver=monolog_solver
        )

        assert not await checker.can_update(UnlockLevel.NONE)
        assert monolog_solver.requests == []


@pytest.mark.unit
class TestSkippedDependencies:
    """Path-sourced and replaced packages are never looked up."""

    @pytest.mark.asyncio
    async def test_path_dependency(self, build_checker, make_files, scripted_resolver) -> None:
        lockfile = {
            "packages": [
                {
                    "name": "acme/local",
                    "version": "1.0.0",
                    "dist": {"type": "path", "url": "packages/local"},
                }
            ]
        }
        files = make_files({"require": {"acme/local": "*"}}, lockfile)
        registry = _registry(["1.0.0", "2.0.0"])
        resolver = scripted_resolver(version="2.0.0")
        checker = build_checker(files, "acme/local", registry=registry, resolver=resolver)

        assert checker.skipped
        assert await checker.latest_version() is None
        assert await checker.latest_resolvable_version() is None
        assert not await checker.can_update(UnlockLevel.ALL)
        registry.get_versions.assert_not_awaited()
        assert resolver.requests == []

    @pytest.mark.asyncio
    async def test_replaced_dependency(self, build_checker, make_files) -> None:
        manifest = {"require": {"psr/log": "^1.0"}, "replace": {"psr/log": "self.version"}}
        registry = _registry(["1.0.0", "1.1.0"])
        checker = build_checker(make_files(manifest), "psr/log", registry=registry)

        assert checker.skipped
        assert await checker.latest_version() is None
        registry.get_versions.assert_not_awaited()


@pytest.mark.unit
class TestGitDependencies:
    @pytest.mark.asyncio
    async def test_latest_is_branch_head(self, build_checker, git_files) -> None:
        remote = _git_remote(NEWER_SHA)
        checker = build_checker(git_files, "acme/widget", git_remote=remote)

        assert await checker.latest_version() == NEWER_SHA
        remote.ref_commit.assert_awaited_once_with("https://github.com/acme/widget.git", "main")

    @pytest.mark.asyncio
    async def test_missing_branch_falls_back_to_head(self, build_checker, git_files) -> None:
        remote = _git_remote(None, NEWER_SHA)
        checker = build_checker(git_files, "acme/widget", git_remote=remote)

        assert await checker.latest_version() == NEWER_SHA
        assert remote.ref_commit.await_args.args == ("https://github.com/acme/widget.git", None)

    @pytest.mark.asyncio
    async def test_up_to_date_when_head_matches(self, build_checker, git_files, scripted_resolver) -> None:
        resolver = scripted_resolver(version=NEWER_SHA)
        checker = build_checker(
            git_files, "acme/widget", git_remote=_git_remote(CURRENT_SHA), resolver=resolver
        )

        assert await checker.up_to_date()
        assert resolver.requests == []

    @pytest.mark.asyncio
    async def test_up_to_date_when_resolution_keeps_commit(
        self, build_checker, git_files, scripted_resolver
    ) -> None:
        resolver = scripted_resolver(version=CURRENT_SHA)
        checker = build_checker(
            git_files, "acme/widget", git_remote=_git_remote(NEWER_SHA), resolver=resolver
        )

        assert await checker.up_to_date()

    @pytest.mark.asyncio
    async def test_update_to_new_commit(self, build_checker, git_files, scripted_resolver) -> None:
        resolver = scripted_resolver(version=NEWER_SHA)
        checker = build_checker(
            git_files, "acme/widget", git_remote=_git_remote(NEWER_SHA), resolver=resolver
        )

        assert await checker.can_update(UnlockLevel.OWN)
        [updated] = await checker.updated_dependencies(UnlockLevel.OWN)
        assert updated.version == NEWER_SHA
        assert updated.previous_version == CURRENT_SHA
        assert updated.requirements[0].requirement == "dev-main"


@pytest.mark.unit
class TestSecurityFixes:
    ADVISORY = SecurityAdvisory(
        dependency_name="monolog/monolog", vulnerable_versions=("<= 1.15.0",)
    )

    @pytest.mark.asyncio
    async def test_vulnerable(self, build_checker, monolog_files) -> None:
        checker = build_checker(monolog_files, security_advisories=[self.ADVISORY])
        assert checker.vulnerable()

    @pytest.mark.asyncio
    async def test_advisories_for_other_packages_are_dropped(self, build_checker, monolog_files) -> None:
        advisory = SecurityAdvisory(dependency_name="psr/log", vulnerable_versions=("*",))
        checker = build_checker(monolog_files, security_advisories=[advisory])

        assert checker.security_advisories == []
        assert not checker.vulnerable()

    @pytest.mark.asyncio
    async def test_lowest_security_fix_version(
        self, build_checker, monolog_files, monolog_versions
    ) -> None:
        checker = build_checker(
            monolog_files,
            registry=_registry(monolog_versions),
            security_advisories=[self.ADVISORY],
        )

        assert await checker.lowest_security_fix_version() == ComposerVersion("1.16.0")

    @pytest.mark.asyncio
    async def test_preferred_is_lowest_resolvable_fix(
        self, build_checker, monolog_files, monolog_versions, scripted_resolver
    ) -> None:
        def answer(request):
            if request.requirement == "1.16.0":
                return ResolutionFailure(FailureReason.CONFLICT)
            return Resolution(request.requirement)

        resolver = scripted_resolver(answer)
        checker = build_checker(
            monolog_files,
            registry=_registry(monolog_versions),
            resolver=resolver,
            security_advisories=[self.ADVISORY],
        )

        assert await checker.preferred_resolvable_version() == ComposerVersion("1.17.0")
        assert [r.requirement for r in resolver.requests] == ["1.16.0", "1.17.0"]

    @pytest.mark.asyncio
    async def test_not_vulnerable_raises(self, build_checker, monolog_files) -> None:
        checker = build_checker(monolog_files)

        with pytest.raises(BumpwiseError):
            await checker.lowest_resolvable_security_fix_version()


@pytest.mark.unit
class TestCanUpdate:
    """Update decisions at each unlock level."""

    @pytest.fixture
    def checker(self, build_checker, monolog_files, monolog_versions, monolog_solver):
        return build_checker(
            monolog_files, registry=_registry(monolog_versions), resolver=monolog_solver
        )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("unlock", [UnlockLevel.NONE, UnlockLevel.OWN, UnlockLevel.ALL])
    async def test_outdated_dependency(self, checker, unlock: UnlockLevel) -> None:
        assert not await checker.up_to_date()
        assert await checker.can_update(unlock)

    @pytest.mark.asyncio
    async def test_up_to_date_makes_no_resolver_call(
        self, build_checker, make_files, monolog_manifest, monolog_lockfile, monolog_versions,
        monolog_solver,
    ) -> None:
        monolog_lockfile["packages"][0]["version"] = "1.22.1"
        checker = build_checker(
            make_files(monolog_manifest, monolog_lockfile),
            registry=_registry(monolog_versions),
            resolver=monolog_solver,
        )

        assert await checker.up_to_date()
        assert not await checker.can_update(UnlockLevel.ALL)
        assert monolog_solver.requests == []

    @pytest.mark.asyncio
    async def test_everything_ignored(self, build_checker, monolog_files, monolog_versions) -> None:
        checker = build_checker(
            monolog_files, registry=_registry(monolog_versions), ignored_versions=["*"]
        )

        assert checker.ignores_all_versions()
        assert not await checker.can_update(UnlockLevel.ALL)

    @pytest.mark.asyncio
    async def test_unfixable_requirements_block_own_unlock(
        self, build_checker, make_files, monolog_lockfile, monolog_versions, monolog_solver
    ) -> None:
        manifest = {"require": {"monolog/monolog": "1.0.* !=1.22.1"}}
        checker = build_checker(
            make_files(manifest, monolog_lockfile),
            registry=_registry(monolog_versions),
            resolver=monolog_solver,
            requirements_update_strategy=UpdateStrategy.BUMP_VERSIONS,
        )

        assert isinstance(await checker.updated_requirements(), Unfixable)
        assert not await checker.can_update(UnlockLevel.OWN)

    @pytest.mark.asyncio
    async def test_unlocked_satisfied_requirement_is_up_to_date(
        self, build_checker, make_files, monolog_versions, monolog_solver
    ) -> None:
        checker = build_checker(
            make_files({"require": {"monolog/monolog": "^1.0"}}),
            registry=_registry(monolog_versions),
            resolver=monolog_solver,
        )

        assert await checker.up_to_date()
        assert monolog_solver.requests[0].requirement == ">=1.0, <=1.22.1"


@pytest.mark.unit
class TestUpdatedDependencies:
    @pytest.fixture
    def checker(self, build_checker, monolog_files, monolog_versions, monolog_solver):
        return build_checker(
            monolog_files, registry=_registry(monolog_versions), resolver=monolog_solver
        )

    @pytest.mark.asyncio
    async def test_own_unlock_bumps_requirement(self, checker) -> None:
        [updated] = await checker.updated_dependencies(UnlockLevel.OWN)

        assert updated.version == "1.22.1"
        assert updated.previous_version == "1.0.1"
        assert updated.requirements[0].requirement == "1.22.*"
        assert updated.previous_requirements[0].requirement == "1.0.*"

    @pytest.mark.asyncio
    async def test_no_unlock_keeps_requirements(self, checker) -> None:
        [updated] = await checker.updated_dependencies(UnlockLevel.NONE)

        assert updated.version == "1.0.2"
        assert updated.requirements == checker.dependency.requirements

    @pytest.mark.asyncio
    async def test_nothing_when_up_to_date(
        self, build_checker, make_files, monolog_manifest, monolog_lockfile, monolog_versions
    ) -> None:
        monolog_lockfile["packages"][0]["version"] = "1.22.1"
        checker = build_checker(
            make_files(monolog_manifest, monolog_lockfile), registry=_registry(monolog_versions)
        )

        assert await checker.updated_dependencies(UnlockLevel.OWN) == []

    @pytest.mark.asyncio
    async def test_explicit_strategy(self, build_checker, monolog_files, monolog_versions, monolog_solver) -> None:
        checker = build_checker(
            monolog_files,
            registry=_registry(monolog_versions),
            resolver=monolog_solver,
            requirements_update_strategy=UpdateStrategy.LOCKFILE_ONLY,
        )

        updated = await checker.updated_requirements()
        assert isinstance(updated, Updated)
        assert updated.requirements == checker.dependency.requirements


@pytest.mark.unit
class TestDefaultStrategy:
    def test_library_widens(self, build_checker, make_files) -> None:
        files = make_files({"type": "library", "require": {"psr/log": "^1.0"}})
        assert build_checker(files, "psr/log").default_strategy is UpdateStrategy.WIDEN_RANGES

    def test_project_bumps_if_necessary(self, build_checker, make_files) -> None:
        files = make_files({"type": "project", "require": {"psr/log": "^1.0"}})
        assert (
            build_checker(files, "psr/log").default_strategy
            is UpdateStrategy.BUMP_VERSIONS_IF_NECESSARY
        )


@pytest.mark.unit
def test_create_wires_registry_from_manifest(make_files) -> None:
    manifest = {
        "require": {"acme/private": "^1.0"},
        "repositories": [
            {"type": "composer", "url": "https://php.fury.io/acme/"},
            {"packagist.org": False},
        ],
    }
    files = make_files(manifest)
    dependency = ComposerFiles(files).dependency("acme/private")

    checker = ComposerUpdateChecker.create(
        dependency, files, MagicMock(), packagist_url="https://mirror.example.com"
    )

    assert checker.registry.repositories == ["https://php.fury.io/acme"]
    assert checker.registry.use_packagist is False
    assert checker.registry.packagist_url == "https://mirror.example.com"
