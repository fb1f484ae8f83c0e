"""
Ignore and security filters over candidate versions.

These helpers are ecosystem-neutral: the constraint type used to evaluate
ignore ranges and advisory ranges is passed in as ``requirement_class``
(any class constructed from a string that exposes ``satisfied_by``).
"""

from __future__ import annotations

from typing import Any, Iterable, List, Optional, Sequence, Type, TypeVar

from bumpwise.exceptions import ParseError
from bumpwise.utils.logger import get_logger
from bumpwise.models.advisory import SecurityAdvisory

logger = get_logger("filters")

V = TypeVar("V")


def _parse_ranges(ranges: Iterable[str], requirement_class: Type[Any]) -> List[Any]:
    parsed = []
    for raw in ranges:
        try:
            parsed.append(requirement_class(raw))
        except ParseError:
            logger.warning("Skipping unparseable version range %r", raw)
    return parsed


def filter_ignored(
    candidates: Iterable[V],
    ignored: Sequence[str],
    *,
    requirement_class: Type[Any],
) -> List[V]:
    """Remove every candidate matched by any ignored range, keeping order.

    Example:
        >>> filter_ignored(
        ...     ["1.21.0", "1.22.1"],
        ...     [">= 1.22.0.a, < 1.23"],
        ...     requirement_class=ComposerRequirement,
        ... )
        ['1.21.0']
    """
    ranges = _parse_ranges(ignored, requirement_class)
    if not ranges:
        return list(candidates)
    return [
        candidate
        for candidate in candidates
        if not any(rng.satisfied_by(candidate) for rng in ranges)
    ]


def ignores_all(
    ignored: Sequence[str],
    *,
    requirement_class: Type[Any],
) -> bool:
    """Return True if an ignored range matches every version (``*``, ``>= 0``)."""
    return any(rng.is_unbounded() for rng in _parse_ranges(ignored, requirement_class))


def is_vulnerable(
    version: Any,
    advisories: Iterable[SecurityAdvisory],
    *,
    requirement_class: Type[Any],
) -> bool:
    """Return True if *version* is affected by any of *advisories*."""
    for advisory in advisories:
        vulnerable = _parse_ranges(advisory.vulnerable_versions, requirement_class)
        safe = _parse_ranges(advisory.safe_versions, requirement_class)

        if vulnerable:
            if any(rng.satisfied_by(version) for rng in vulnerable):
                return True
        elif safe:
            if not any(rng.satisfied_by(version) for rng in safe):
                return True
    return False


def relevant_advisories(
    advisories: Iterable[SecurityAdvisory],
    dependency_name: str,
    package_manager: str,
) -> List[SecurityAdvisory]:
    """Advisories that concern the given dependency."""
    return [
        advisory
        for advisory in advisories
        if advisory.applies_to(dependency_name, package_manager)
    ]


def lowest_fix(
    current: V,
    candidates: Iterable[V],
    advisories: Sequence[SecurityAdvisory],
    ignored: Sequence[str] = (),
    *,
    requirement_class: Type[Any],
) -> Optional[V]:
    """Return the lowest candidate above *current* that is not vulnerable.

    Candidates are scanned in ascending order; ignored ones are skipped.
    """
    allowed = filter_ignored(
        sorted(candidates), ignored, requirement_class=requirement_class
    )
    for candidate in allowed:
        if candidate <= current:
            continue
        if not is_vulnerable(candidate, advisories, requirement_class=requirement_class):
            return candidate
    return None
