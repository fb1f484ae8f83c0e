"""
Dependency data model for bumpwise.

A :class:`Dependency` is one package as seen in a manifest/lockfile pair:
its locked version (if any) and every requirement string that declares it.
Instances are immutable; an update produces a new value that remembers the
previous version and requirements.
"""

from __future__ import annotations

from enum import Enum
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, Optional, Tuple

from bumpwise.constants import COMPOSER_PACKAGE_MANAGER


class SourceType(str, Enum):
    """Where a requirement is fetched from."""

    REGISTRY = "registry"
    GIT = "git"
    PATH = "path"


@dataclass(frozen=True)
class Source:
    """
    Origin of a requirement.

    Attributes:
        type: Registry, git or path.
        url: Repository URL (git) or directory (path).
        branch: Branch the requirement tracks, for git sources.
        ref: Pinned commit or tag, for git sources.
    """

    type: SourceType
    url: Optional[str] = None
    branch: Optional[str] = None
    ref: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Source":
        return cls(
            type=SourceType(data.get("type", SourceType.REGISTRY.value)),
            url=data.get("url"),
            branch=data.get("branch"),
            ref=data.get("ref"),
        )

    def to_json(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.type.value}
        for key in ("url", "branch", "ref"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data


@dataclass(frozen=True)
class Requirement:
    """
    A single declaration of a dependency in a manifest.

    Attributes:
        file: Name of the declaring file (``composer.json``).
        requirement: Raw constraint string, or ``None`` when only locked.
        groups: Manifest sections the requirement appears in.
        source: Non-registry origin, if any.
    """

    file: str
    requirement: Optional[str]
    groups: Tuple[str, ...] = ()
    source: Optional[Source] = None

    def with_requirement(self, requirement: Optional[str]) -> "Requirement":
        """Return a copy with a new constraint string; metadata is kept."""
        return replace(self, requirement=requirement)

    def to_json(self) -> Dict[str, Any]:
        return {
            "file": self.file,
            "requirement": self.requirement,
            "groups": list(self.groups),
            "source": self.source.to_json() if self.source else None,
        }


@dataclass(frozen=True)
class Dependency:
    """
    A dependency under evaluation.

    Attributes:
        name: Package name (``vendor/package``).
        version: Locked version, a commit SHA, or ``None`` without a lockfile.
        requirements: Declarations of the dependency in the manifest.
        package_manager: Ecosystem tag.
        previous_version: Version before an update, if this value is one.
        previous_requirements: Requirements before an update.
    """

    name: str
    version: Optional[str] = None
    requirements: Tuple[Requirement, ...] = ()
    package_manager: str = COMPOSER_PACKAGE_MANAGER
    previous_version: Optional[str] = None
    previous_requirements: Optional[Tuple[Requirement, ...]] = field(
        default=None, compare=False
    )

    def __post_init__(self) -> None:
        # Accept lists from callers but store an immutable tuple
        if not isinstance(self.requirements, tuple):
            object.__setattr__(self, "requirements", tuple(self.requirements))

    @property
    def sources(self) -> Tuple[Optional[Source], ...]:
        return tuple(req.source for req in self.requirements)

    def updated(
        self,
        version: Optional[str],
        requirements: Iterable[Requirement],
    ) -> "Dependency":
        """Return the updated dependency, remembering the current state."""
        return Dependency(
            name=self.name,
            version=version,
            requirements=tuple(requirements),
            package_manager=self.package_manager,
            previous_version=self.version,
            previous_requirements=self.requirements,
        )

    def to_json(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version,
            "package_manager": self.package_manager,
            "requirements": [req.to_json() for req in self.requirements],
            "previous_version": self.previous_version,
            "previous_requirements": (
                [req.to_json() for req in self.previous_requirements]
                if self.previous_requirements is not None
                else None
            ),
        }


@dataclass(frozen=True)
class DependencyFile:
    """A manifest or lockfile, held in memory."""

    name: str
    content: str
