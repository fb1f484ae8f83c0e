from __future__ import annotations

import pytest

from bumpwise.exceptions import ParseError
from bumpwise.composer.version import ComposerRequirement, ComposerVersion

SHA = "b704c49a3051536f67f2d39f13568f74615b9922"


@pytest.mark.unit
class TestComposerVersion:
    """Parsing, ordering and rendering of Composer versions."""

    def test_leading_v_is_dropped(self) -> None:
        assert ComposerVersion("v1.2.3") == ComposerVersion("1.2.3")

    def test_short_versions_render_with_three_segments(self) -> None:
        assert str(ComposerVersion("1.2")) == "1.2.0"
        assert str(ComposerVersion("2")) == "2.0.0"

    def test_four_segment_versions_are_kept(self) -> None:
        assert str(ComposerVersion("1.2.3.4")) == "1.2.3.4"

    @pytest.mark.parametrize(
        "raw, rendered",
        [
            ("2.0.0-alpha1", "2.0.0-alpha1"),
            ("2.0.0-beta2", "2.0.0-beta2"),
            ("2.0.0-RC1", "2.0.0-RC1"),
            ("2.0.0-rc.3", "2.0.0-RC3"),
            ("1.0.0-patch1", "1.0.0-patch1"),
        ],
    )
    def test_stability_suffixes(self, raw: str, rendered: str) -> None:
        assert str(ComposerVersion(raw)) == rendered

    def test_stability_ordering(self) -> None:
        ordered = [
            "2.0.0-dev",
            "2.0.0-alpha1",
            "2.0.0-beta1",
            "2.0.0-RC1",
            "2.0.0",
            "2.0.0-patch1",
        ]
        parsed = [ComposerVersion(raw) for raw in ordered]
        assert sorted(reversed(parsed)) == parsed

    def test_prerelease_flag(self) -> None:
        assert ComposerVersion("2.0.0-beta1").is_prerelease
        assert not ComposerVersion("2.0.0").is_prerelease

    def test_stability_flag_is_stripped(self) -> None:
        assert ComposerVersion("1.5.0@stable") == ComposerVersion("1.5.0")

    def test_compares_with_strings(self) -> None:
        assert ComposerVersion("1.22.1") > "1.21.0"
        assert ComposerVersion("1.0") == "1.0.0"

    def test_hash_follows_equality(self) -> None:
        assert len({ComposerVersion("1.0"), ComposerVersion("1.0.0")}) == 1

    def test_components(self) -> None:
        version = ComposerVersion("3.4.5")
        assert (version.major, version.minor, version.micro) == (3, 4, 5)

    @pytest.mark.parametrize("raw", ["dev-master", "latest", "", "1.x-dev", SHA])
    def test_invalid_versions(self, raw: str) -> None:
        assert ComposerVersion.is_correct(raw) is False
        with pytest.raises(ParseError):
            ComposerVersion(raw)

    def test_is_correct_rejects_non_strings(self) -> None:
        assert ComposerVersion.is_correct(None) is False
        assert ComposerVersion.is_correct(1) is False


@pytest.mark.unit
class TestComposerRequirement:
    """Constraint evaluation."""

    @pytest.mark.parametrize(
        "constraint, inside, outside",
        [
            ("^1.2", ["1.2.0", "1.9.9"], ["1.1.9", "2.0.0"]),
            ("^0.3", ["0.3.0", "0.3.9"], ["0.4.0"]),
            ("^0.0.3", ["0.0.3"], ["0.0.4"]),
            ("~1.2", ["1.2.0", "1.9.0"], ["2.0.0"]),
            ("~1.2.3", ["1.2.3", "1.2.9"], ["1.3.0"]),
            ("1.0.*", ["1.0.0", "1.0.9"], ["1.1.0"]),
            ("1.2.3", ["1.2.3"], ["1.2.4"]),
            (">=1.0 <2.0", ["1.0.0", "1.99.0"], ["2.0.0"]),
            (">=1.0, <2.0", ["1.5.0"], ["0.9.0"]),
            ("1.0 - 2.0", ["1.0.0", "2.0.5"], ["2.1.0"]),
            ("1.0.0 - 2.1.0", ["2.1.0"], ["2.1.1"]),
            ("^1.2 || ^2.0", ["1.5.0", "2.3.0"], ["3.0.0"]),
            ("*", ["0.0.1", "9.0.0"], []),
            ("!=1.5.0", ["1.4.0"], ["1.5.0"]),
        ],
    )
    def test_satisfied_by(self, constraint, inside, outside) -> None:
        requirement = ComposerRequirement(constraint)
        for version in inside:
            assert requirement.satisfied_by(version), (constraint, version)
        for version in outside:
            assert not requirement.satisfied_by(version), (constraint, version)

    def test_ignore_range_with_prerelease_bound(self) -> None:
        requirement = ComposerRequirement(">= 1.22.0.a, < 1.23")
        assert requirement.satisfied_by("1.22.1")
        assert not requirement.satisfied_by("1.21.0")

    def test_branch_constraint_matches_no_version(self) -> None:
        requirement = ComposerRequirement("dev-master")
        assert requirement.is_branch
        assert not requirement.satisfied_by("1.0.0")

    def test_branch_alias_is_a_branch(self) -> None:
        assert ComposerRequirement("dev-main as 1.0.x-dev").is_branch

    def test_unparseable_version_is_not_satisfied(self) -> None:
        assert not ComposerRequirement("^1.0").satisfied_by("dev-master")

    def test_lower_bounds(self) -> None:
        bounds = ComposerRequirement("^1.2 || ~2.3.1").lower_bounds()
        assert [str(bound) for bound in bounds] == ["1.2.0", "2.3.1"]

    def test_upper_bound_only_has_no_lower_bound(self) -> None:
        assert ComposerRequirement("<2.0").lower_bounds() == []

    @pytest.mark.parametrize("constraint", ["*", ">=0", ">= 0.0.0", "^1.0 || *"])
    def test_unbounded(self, constraint: str) -> None:
        assert ComposerRequirement(constraint).is_unbounded()

    @pytest.mark.parametrize("constraint", ["^1.0", ">=0.1", "<5"])
    def test_bounded(self, constraint: str) -> None:
        assert not ComposerRequirement(constraint).is_unbounded()

    @pytest.mark.parametrize("constraint", ["", "   ", ">=banana"])
    def test_invalid_constraints(self, constraint: str) -> None:
        with pytest.raises(ParseError):
            ComposerRequirement(constraint)

    def test_equality_by_text(self) -> None:
        assert ComposerRequirement("^1.0") == ComposerRequirement("^1.0")
        assert str(ComposerRequirement("^1.0")) == "^1.0"
