"""
Read-only access to ``composer.json`` and ``composer.lock``.

Only the parts of the files bumpwise needs are interpreted: requirement
tables, ``repositories``, ``replace``, ``config.platform`` and the locked
package list. Everything else is passed to the resolver untouched.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from bumpwise.utils.logger import get_logger
from bumpwise.exceptions import ParseError
from bumpwise.models.dependency import (
    Dependency,
    DependencyFile,
    Requirement,
    Source,
    SourceType,
)
from bumpwise.constants import (
    LOCKFILE_FILENAME,
    MANIFEST_FILENAME,
    COMPOSER_PACKAGE_MANAGER,
)

logger = get_logger("composer.manifest")

#: Requirement tables and the group name each one maps to.
REQUIREMENT_GROUPS: Tuple[Tuple[str, str], ...] = (
    ("require", "runtime"),
    ("require-dev", "development"),
)


def is_platform_package(name: str) -> bool:
    """Return True for ``php``, ``ext-*``, ``lib-*`` and Composer's own API packages."""
    lowered = name.lower()
    return (
        lowered in ("php", "php-64bit", "hhvm", "composer", "composer-plugin-api")
        or lowered.startswith(("ext-", "lib-"))
    )


def _root_file(files: Sequence[DependencyFile], name: str) -> Optional[DependencyFile]:
    for file in files:
        if file.name.lstrip("./") == name:
            return file
    return None


def _load_json(file: DependencyFile) -> Dict[str, Any]:
    try:
        data = json.loads(file.content)
    except json.JSONDecodeError as exc:
        raise ParseError(
            f"{file.name} is not valid JSON: {exc.msg} (line {exc.lineno})",
            file_path=file.name,
        ) from exc

    if not isinstance(data, dict):
        raise ParseError(f"{file.name} must contain a JSON object", file_path=file.name)
    return data


class ComposerFiles:
    """A parsed manifest plus optional lockfile.

    Args:
        dependency_files: Files to read; the manifest is required.

    Raises:
        ParseError: If the manifest is missing or either file is not a JSON object.
    """

    def __init__(self, dependency_files: Sequence[DependencyFile]) -> None:
        files = list(dependency_files)
        manifest_file = _root_file(files, MANIFEST_FILENAME)
        if manifest_file is None:
            raise ParseError(f"No {MANIFEST_FILENAME} supplied", file_path=MANIFEST_FILENAME)

        self.manifest_file: DependencyFile = manifest_file
        self.lockfile_file: Optional[DependencyFile] = _root_file(files, LOCKFILE_FILENAME)
        #: Supporting files such as the manifests of path repositories
        self.extra_files: List[DependencyFile] = [
            file for file in files if file not in (self.manifest_file, self.lockfile_file)
        ]

        self.manifest: Dict[str, Any] = _load_json(manifest_file)
        self.lockfile: Optional[Dict[str, Any]] = (
            _load_json(self.lockfile_file) if self.lockfile_file else None
        )

    # ------------------------------------------------------------------
    # Manifest
    # ------------------------------------------------------------------

    @property
    def is_library(self) -> bool:
        return self.manifest.get("type") == "library"

    def requirement_table(self, key: str) -> Dict[str, str]:
        table = self.manifest.get(key)
        return table if isinstance(table, dict) else {}

    def declared_requirement(self, name: str) -> Optional[Tuple[str, str]]:
        """Return ``(group, constraint)`` for *name*, or None if undeclared."""
        for key, group in REQUIREMENT_GROUPS:
            for declared, constraint in self.requirement_table(key).items():
                if declared.lower() == name.lower():
                    return group, constraint
        return None

    @property
    def php_requirement(self) -> Optional[str]:
        return self.requirement_table("require").get("php")

    @property
    def platform_config(self) -> Dict[str, Any]:
        config = self.manifest.get("config")
        if not isinstance(config, dict):
            return {}
        platform = config.get("platform")
        return dict(platform) if isinstance(platform, dict) else {}

    def repositories(self) -> List[Dict[str, Any]]:
        """Declared repositories, whether written as a list or an object."""
        raw = self.manifest.get("repositories") or []
        entries: Iterable[Any] = raw.values() if isinstance(raw, dict) else raw
        return [entry for entry in entries if isinstance(entry, dict)]

    @property
    def packagist_disabled(self) -> bool:
        """True when the manifest switches off the public Packagist repository."""
        raw = self.manifest.get("repositories")
        if isinstance(raw, dict) and raw.get("packagist.org") is False:
            return True
        for entry in self.repositories():
            if entry.get("packagist.org") is False or entry.get("packagist") is False:
                return True
        return False

    def composer_repository_urls(self) -> List[str]:
        return [
            str(entry["url"]).rstrip("/")
            for entry in self.repositories()
            if entry.get("type") == "composer" and entry.get("url")
        ]

    # ------------------------------------------------------------------
    # Lockfile
    # ------------------------------------------------------------------

    def locked_packages(self) -> List[Dict[str, Any]]:
        if not self.lockfile:
            return []
        packages: List[Dict[str, Any]] = []
        for key in ("packages", "packages-dev"):
            packages.extend(
                package
                for package in self.lockfile.get(key) or ()
                if isinstance(package, dict)
            )
        return packages

    def locked_package(self, name: str) -> Optional[Dict[str, Any]]:
        return locked_package(self.lockfile, name)

    def platform_requirements(self) -> Set[str]:
        """Every ``ext-*``/``lib-*`` name required by the manifest or a locked package."""
        tables: List[Dict[str, Any]] = [
            self.requirement_table(key) for key, _ in REQUIREMENT_GROUPS
        ]
        for package in self.locked_packages():
            require = package.get("require")
            if isinstance(require, dict):
                tables.append(require)

        return {
            name.lower()
            for table in tables
            for name in table
            if name.lower().startswith(("ext-", "lib-"))
        }

    # ------------------------------------------------------------------
    # Dependencies
    # ------------------------------------------------------------------

    def dependency(self, name: str) -> Dependency:
        """Build a :class:`Dependency` for *name* from the manifest and lockfile."""
        declared = self.declared_requirement(name)
        package = self.locked_package(name)

        version: Optional[str] = None
        source: Optional[Source] = None

        if package is not None:
            version, source = _version_and_source(package)

        requirements: Tuple[Requirement, ...] = ()
        if declared is not None:
            group, constraint = declared
            requirements = (
                Requirement(
                    file=MANIFEST_FILENAME,
                    requirement=constraint,
                    groups=(group,),
                    source=source,
                ),
            )
        elif source is not None:
            # Locked only; keep the origin so the dependency is classified
            requirements = (Requirement(file=MANIFEST_FILENAME, requirement=None, source=source),)

        if declared is None and package is None:
            logger.warning("%s is neither declared nor locked", name)

        canonical = package.get("name", name) if package is not None else name
        return Dependency(
            name=canonical,
            version=version,
            requirements=requirements,
            package_manager=COMPOSER_PACKAGE_MANAGER,
        )


def locked_package(
    lockfile: Optional[Dict[str, Any]], name: str
) -> Optional[Dict[str, Any]]:
    """Return the lockfile entry for *name*, if locked."""
    if not lockfile:
        return None
    target = name.lower()
    for key in ("packages", "packages-dev"):
        for package in lockfile.get(key) or ():
            if isinstance(package, dict) and str(package.get("name", "")).lower() == target:
                return package
    return None


def resolved_version(lockfile: Optional[Dict[str, Any]], name: str) -> Optional[str]:
    """Version of *name* in a resolved lockfile; dev branches report their commit."""
    package = locked_package(lockfile, name)
    if package is None:
        return None
    version, _ = _version_and_source(package)
    return version


def _version_and_source(package: Dict[str, Any]) -> Tuple[Optional[str], Optional[Source]]:
    raw_version = str(package.get("version") or "")
    dist = package.get("dist") if isinstance(package.get("dist"), dict) else {}
    vcs = package.get("source") if isinstance(package.get("source"), dict) else {}

    if dist.get("type") == "path":
        return raw_version.lstrip("v") or None, Source(
            type=SourceType.PATH, url=dist.get("url")
        )

    if raw_version.startswith("dev-"):
        reference = vcs.get("reference")
        if vcs.get("type") == "git":
            return reference, Source(
                type=SourceType.GIT,
                url=vcs.get("url"),
                branch=raw_version[len("dev-"):],
                ref=reference,
            )
        return reference, None

    if raw_version.startswith("v") and raw_version[1:2].isdigit():
        raw_version = raw_version[1:]
    return raw_version or None, None
