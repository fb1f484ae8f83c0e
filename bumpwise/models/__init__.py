"""
Unified data model exports for bumpwise.

This module re-exports the core data models so users can import them
directly from ``bumpwise.models`` instead of individual submodules.

Example:
    >>> from bumpwise.models import Dependency, Requirement, UpdateStrategy
"""

from __future__ import annotations

from bumpwise.models.advisory import SecurityAdvisory
from bumpwise.models.strategy import UnlockLevel, UpdateStrategy
from bumpwise.models.update import RequirementsUpdate, Unfixable, Updated
from bumpwise.models.credential import Credential, CredentialType, find_credential
from bumpwise.models.dependency import (
    Dependency,
    DependencyFile,
    Requirement,
    Source,
    SourceType,
)

__all__ = [
    "Dependency",
    "DependencyFile",
    "Requirement",
    "Source",
    "SourceType",
    "Credential",
    "CredentialType",
    "find_credential",
    "SecurityAdvisory",
    "UpdateStrategy",
    "UnlockLevel",
    "Updated",
    "Unfixable",
    "RequirementsUpdate",
]
