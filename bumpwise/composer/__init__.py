"""
Composer (PHP) support for bumpwise.

Example:
    >>> from bumpwise.composer import ComposerVersion, RequirementsUpdater
    >>> from bumpwise.composer.update_checker import ComposerUpdateChecker
"""

from __future__ import annotations

from bumpwise.composer.version import ComposerRequirement, ComposerVersion
from bumpwise.composer.source import SourceKind, classify, is_replaced
from bumpwise.composer.manifest import ComposerFiles
from bumpwise.composer.registry import RegistryClient
from bumpwise.composer.git import GitRemote
from bumpwise.composer.platform import (
    DEFAULT_POLICIES,
    ManifestPhpPolicy,
    MissingExtensionsPolicy,
)
from bumpwise.composer.resolver import (
    ComposerProcessResolver,
    FailureReason,
    Resolution,
    ResolutionFailure,
    ResolutionRequest,
    Resolver,
)
from bumpwise.composer.requirements_updater import RequirementsUpdater

__all__ = [
    "ComposerVersion",
    "ComposerRequirement",
    "SourceKind",
    "classify",
    "is_replaced",
    "ComposerFiles",
    "RegistryClient",
    "GitRemote",
    "DEFAULT_POLICIES",
    "ManifestPhpPolicy",
    "MissingExtensionsPolicy",
    "ComposerProcessResolver",
    "FailureReason",
    "Resolution",
    "ResolutionFailure",
    "ResolutionRequest",
    "Resolver",
    "RequirementsUpdater",
]
