"""
Result types for requirement rewriting.

A rewrite either succeeds with a full requirement set (:class:`Updated`)
or cannot be expressed (:class:`Unfixable`). Neither is an exception.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple, Union

from bumpwise.models.dependency import Requirement


@dataclass(frozen=True)
class Updated:
    """Rewritten requirements, one for each original, in the same order."""

    requirements: Tuple[Requirement, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "requirements", tuple(self.requirements))


@dataclass(frozen=True)
class Unfixable:
    """No requirement set admits the target version."""

    reason: str = ""


RequirementsUpdate = Union[Updated, Unfixable]
