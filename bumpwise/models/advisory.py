"""
Security advisory data model for bumpwise.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Tuple

from bumpwise.constants import COMPOSER_PACKAGE_MANAGER


@dataclass(frozen=True)
class SecurityAdvisory:
    """
    A published vulnerability affecting a range of versions.

    A version is vulnerable when it matches one of ``vulnerable_versions``.
    If no vulnerable ranges are given, a version is vulnerable when it
    matches none of ``safe_versions``. With neither, nothing is vulnerable.

    Attributes:
        dependency_name: Affected package.
        package_manager: Ecosystem tag.
        vulnerable_versions: Constraint strings of affected versions.
        safe_versions: Constraint strings of patched versions.
    """

    dependency_name: str
    package_manager: str = COMPOSER_PACKAGE_MANAGER
    vulnerable_versions: Tuple[str, ...] = ()
    safe_versions: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "vulnerable_versions", tuple(self.vulnerable_versions))
        object.__setattr__(self, "safe_versions", tuple(self.safe_versions))

    def applies_to(self, dependency_name: str, package_manager: str) -> bool:
        return (
            self.dependency_name.lower() == dependency_name.lower()
            and self.package_manager == package_manager
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SecurityAdvisory":
        return cls(
            dependency_name=data["dependency_name"],
            package_manager=data.get("package_manager", COMPOSER_PACKAGE_MANAGER),
            vulnerable_versions=tuple(data.get("vulnerable_versions", ())),
            safe_versions=tuple(data.get("safe_versions", ())),
        )
