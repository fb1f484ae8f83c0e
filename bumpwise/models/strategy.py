"""
Enumerations controlling how an update is chosen and written.
"""

from __future__ import annotations

from enum import Enum


class UpdateStrategy(str, Enum):
    """How declared requirement strings are rewritten."""

    BUMP_VERSIONS = "bump_versions"
    BUMP_VERSIONS_IF_NECESSARY = "bump_versions_if_necessary"
    WIDEN_RANGES = "widen_ranges"
    LOCKFILE_ONLY = "lockfile_only"


class UnlockLevel(str, Enum):
    """How much of the dependency graph may move during an update.

    ``NONE`` keeps every requirement string, ``OWN`` lets the dependency's
    own requirements change, ``ALL`` also lets its dependencies move.
    """

    NONE = "none"
    OWN = "own"
    ALL = "all"
