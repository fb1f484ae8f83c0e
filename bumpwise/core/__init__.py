"""
Core, ecosystem-neutral functionality for bumpwise.

    from bumpwise.core import UpdateChecker, filter_ignored
"""

from __future__ import annotations

from bumpwise.core.update_checker import UpdateChecker
from bumpwise.core.filters import (
    filter_ignored,
    ignores_all,
    is_vulnerable,
    lowest_fix,
    relevant_advisories,
)

__all__ = [
    "UpdateChecker",
    "filter_ignored",
    "ignores_all",
    "is_vulnerable",
    "lowest_fix",
    "relevant_advisories",
]
