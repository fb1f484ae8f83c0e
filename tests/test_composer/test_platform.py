from __future__ import annotations

import pytest
from typing import Dict

from bumpwise.composer.manifest import ComposerFiles
from bumpwise.composer.platform import (
    ManifestPhpPolicy,
    MissingExtensionsPolicy,
    RelaxationPolicy,
    platform_overrides,
)


class _FixedPolicy(RelaxationPolicy):
    def __init__(self, overrides: Dict[str, str]) -> None:
        self.overrides = overrides

    def platform_overrides(self, files: ComposerFiles) -> Dict[str, str]:
        return dict(self.overrides)


@pytest.mark.unit
class TestManifestPhpPolicy:
    def test_newest_known_release_satisfying_requirement(self, make_files) -> None:
        files = ComposerFiles(make_files({"require": {"php": "^7.1"}}))
        policy = ManifestPhpPolicy(known_versions=["8.1.0", "7.4.0", "7.1.0"])

        assert policy.platform_overrides(files) == {"php": "7.4.0"}

    def test_configured_platform_wins(self, make_files) -> None:
        manifest = {"require": {"php": "^7.1"}, "config": {"platform": {"php": "7.2.0"}}}
        assert ManifestPhpPolicy().platform_overrides(ComposerFiles(make_files(manifest))) == {}

    def test_no_php_requirement(self, make_files) -> None:
        assert ManifestPhpPolicy().platform_overrides(ComposerFiles(make_files({}))) == {}

    def test_unsatisfiable_requirement(self, make_files) -> None:
        files = ComposerFiles(make_files({"require": {"php": "^99.0"}}))
        assert ManifestPhpPolicy().platform_overrides(files) == {}


@pytest.mark.unit
class TestMissingExtensionsPolicy:
    def test_declares_required_extensions(self, make_files, monolog_manifest, monolog_lockfile) -> None:
        monolog_manifest["require"]["ext-intl"] = "*"
        files = ComposerFiles(make_files(monolog_manifest, monolog_lockfile))

        assert MissingExtensionsPolicy().platform_overrides(files) == {
            "ext-intl": "0.0.1",
            "ext-json": "0.0.1",
        }

    def test_skips_configured_extensions(self, make_files) -> None:
        manifest = {"require": {"ext-intl": "*"}, "config": {"platform": {"ext-intl": "1.0"}}}
        assert MissingExtensionsPolicy().platform_overrides(ComposerFiles(make_files(manifest))) == {}


@pytest.mark.unit
def test_earlier_policies_win(make_files) -> None:
    files = ComposerFiles(make_files({}))
    policies = [_FixedPolicy({"php": "8.0.0"}), _FixedPolicy({"php": "7.0.0", "ext-gd": "1.0"})]

    assert platform_overrides(files, policies) == {"php": "8.0.0", "ext-gd": "1.0"}


@pytest.mark.unit
def test_default_policies(make_files, monolog_manifest, monolog_lockfile) -> None:
    overrides = platform_overrides(ComposerFiles(make_files(monolog_manifest, monolog_lockfile)))

    assert overrides["php"] == "8.3.0"
    assert overrides["ext-json"] == "0.0.1"


@pytest.mark.unit
def test_policy_must_define_overrides() -> None:
    class Nameless(RelaxationPolicy):
        name = "nameless"

    with pytest.raises(TypeError):
        Nameless()  # type: ignore[abstract]
