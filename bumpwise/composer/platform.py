"""
Platform relaxation policies.

The resolver runs on a machine whose PHP version and extensions have
nothing to do with the project's production platform. Before the first
resolver call, an ordered list of policies computes ``config.platform``
overrides from the file set so that resolution depends only on the
manifest and lockfile. Every policy is a pure function of the files.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Sequence

from bumpwise.exceptions import ParseError
from bumpwise.utils.logger import get_logger
from bumpwise.composer.manifest import ComposerFiles
from bumpwise.composer.version import ComposerRequirement
from bumpwise.constants import ASSUMED_EXTENSION_VERSION, KNOWN_PHP_VERSIONS

logger = get_logger("composer.platform")


class RelaxationPolicy(ABC):
    """Base class: a named source of platform overrides."""

    name = "policy"

    @abstractmethod
    def platform_overrides(self, files: ComposerFiles) -> Dict[str, str]:
        """Return ``config.platform`` entries to add for *files*."""


class ManifestPhpPolicy(RelaxationPolicy):
    """Pin ``php`` to the newest known release that satisfies ``require.php``.

    Nothing is emitted when the manifest already sets ``config.platform.php``
    or when no known release satisfies the requirement.
    """

    name = "manifest-php"

    def __init__(self, known_versions: Sequence[str] = KNOWN_PHP_VERSIONS) -> None:
        self.known_versions = list(known_versions)

    def platform_overrides(self, files: ComposerFiles) -> Dict[str, str]:
        if "php" in files.platform_config:
            return {}

        constraint = files.php_requirement
        if not constraint:
            return {}

        try:
            requirement = ComposerRequirement(constraint)
        except ParseError:
            logger.warning("Cannot interpret PHP requirement %r", constraint)
            return {}

        for version in self.known_versions:
            if requirement.satisfied_by(version):
                return {"php": version}

        logger.info("No known PHP release satisfies %r", constraint)
        return {}


class MissingExtensionsPolicy(RelaxationPolicy):
    """Declare every required ``ext-*``/``lib-*`` package as installed."""

    name = "missing-extensions"

    def platform_overrides(self, files: ComposerFiles) -> Dict[str, str]:
        configured = {name.lower() for name in files.platform_config}
        return {
            name: ASSUMED_EXTENSION_VERSION
            for name in sorted(files.platform_requirements())
            if name not in configured
        }


DEFAULT_POLICIES: Sequence[RelaxationPolicy] = (
    ManifestPhpPolicy(),
    MissingExtensionsPolicy(),
)


def platform_overrides(
    files: ComposerFiles,
    policies: Sequence[RelaxationPolicy] = DEFAULT_POLICIES,
) -> Dict[str, str]:
    """Apply *policies* in order; earlier policies win on conflicting keys."""
    merged: Dict[str, str] = {}
    for policy in policies:
        for key, value in policy.platform_overrides(files).items():
            merged.setdefault(key, value)
    if merged:
        logger.debug("Platform overrides: %s", merged)
    return merged
