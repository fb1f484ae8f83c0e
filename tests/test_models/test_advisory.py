from __future__ import annotations

import pytest

from bumpwise.models.advisory import SecurityAdvisory


@pytest.mark.unit
class TestSecurityAdvisory:
    def test_ranges_are_tuples(self) -> None:
        advisory = SecurityAdvisory("monolog/monolog", vulnerable_versions=["<1.16"])

        assert advisory.vulnerable_versions == ("<1.16",)
        assert advisory.safe_versions == ()
        assert advisory.package_manager == "composer"

    def test_applies_to_is_case_insensitive(self) -> None:
        advisory = SecurityAdvisory("Monolog/Monolog")

        assert advisory.applies_to("monolog/monolog", "composer")
        assert not advisory.applies_to("monolog/monolog", "npm")
        assert not advisory.applies_to("psr/log", "composer")

    def test_from_dict(self) -> None:
        advisory = SecurityAdvisory.from_dict(
            {
                "dependency_name": "monolog/monolog",
                "vulnerable_versions": ["<= 1.15.0"],
                "safe_versions": [">= 1.16.0"],
            }
        )

        assert advisory == SecurityAdvisory(
            "monolog/monolog",
            vulnerable_versions=("<= 1.15.0",),
            safe_versions=(">= 1.16.0",),
        )

    def test_from_dict_requires_name(self) -> None:
        with pytest.raises(KeyError):
            SecurityAdvisory.from_dict({"vulnerable_versions": []})
