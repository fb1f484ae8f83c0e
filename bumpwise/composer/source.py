"""
Classification of where a Composer dependency comes from.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional

from bumpwise.models.dependency import Dependency, Requirement, SourceType


class SourceKind(str, Enum):
    REGISTRY = "registry"
    GIT = "git"
    PATH = "path"
    UNRECOGNIZED = "unrecognized"


_KIND_BY_TYPE = {
    SourceType.REGISTRY: SourceKind.REGISTRY,
    SourceType.GIT: SourceKind.GIT,
    SourceType.PATH: SourceKind.PATH,
}


def classify(requirement: Requirement) -> SourceKind:
    """Return the kind of source a single requirement is fetched from."""
    if requirement.source is None:
        return SourceKind.REGISTRY
    return _KIND_BY_TYPE.get(requirement.source.type, SourceKind.UNRECOGNIZED)


def classify_dependency(dependency: Dependency) -> SourceKind:
    """Return the source kind of a dependency.

    A dependency is path- or git-sourced as soon as one of its requirements
    is; otherwise it comes from a registry.
    """
    kinds = {classify(requirement) for requirement in dependency.requirements}
    for kind in (SourceKind.PATH, SourceKind.GIT, SourceKind.UNRECOGNIZED):
        if kind in kinds:
            return kind
    return SourceKind.REGISTRY


def _replace_table(package: Mapping[str, Any]) -> Iterable[str]:
    replace = package.get("replace")
    if isinstance(replace, dict):
        return (name.lower() for name in replace)
    return ()


def is_replaced(
    name: str,
    manifest: Mapping[str, Any],
    lockfile: Optional[Mapping[str, Any]] = None,
) -> bool:
    """Return True if another package (or the root package) replaces *name*."""
    target = name.lower()
    if target in set(_replace_table(manifest)):
        return True

    if not lockfile:
        return False

    for key in ("packages", "packages-dev"):
        for package in lockfile.get(key) or ():
            if not isinstance(package, dict):
                continue
            if package.get("name", "").lower() == target:
                continue
            if target in set(_replace_table(package)):
                return True
    return False


def git_source_of(dependency: Dependency) -> Optional[Dict[str, Optional[str]]]:
    """Return ``url``/``branch``/``ref`` of the first git requirement, if any."""
    for requirement in dependency.requirements:
        if classify(requirement) is SourceKind.GIT and requirement.source is not None:
            return {
                "url": requirement.source.url,
                "branch": requirement.source.branch,
                "ref": requirement.source.ref,
            }
    return None
