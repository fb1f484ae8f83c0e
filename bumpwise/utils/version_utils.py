"""
Version comparison utilities for bumpwise.

Classifies the change between two versions so the CLI can
colour it, and recognizes commit SHAs, which are compared by prefix
rather than by version precedence.
"""

from __future__ import annotations

import re
from typing import Any, Optional, Tuple, Type

_COMMIT_SHA = re.compile(r"^[0-9a-f]{7,40}$")


def is_commit_sha(value: Optional[str]) -> bool:
    """Return True if *value* is a commit SHA, full or abbreviated.

    Seven to forty lowercase hex characters with at least one letter; an
    all-digit string is a version number.
    """
    return (
        isinstance(value, str)
        and bool(_COMMIT_SHA.match(value))
        and not value.isdigit()
    )


def sha_matches(left: Optional[str], right: Optional[str]) -> bool:
    """Compare two commit references by prefix.

    A short SHA matches the full SHA it abbreviates.
    """
    if not left or not right:
        return False
    return left.startswith(right) or right.startswith(left)


def get_update_type(
    current_version: Optional[str],
    target_version: Optional[str],
    *,
    version_class: Type[Any],
) -> str:
    """Determine the semantic update type between two versions.

    Args:
        current_version: Locked version, or ``None`` without a lockfile.
        target_version: Proposed version.
        version_class: Parses versions; needs ``is_correct``, ordering and
            ``major``/``minor``/``micro``.

    Returns:
        One of ``"new"``, ``"same"``, ``"downgrade"``, ``"major"``,
        ``"minor"``, ``"patch"``, ``"update"``, ``"commit"`` or ``"unknown"``.

    Examples:
        >>> get_update_type("1.0.1", "1.22.1", version_class=ComposerVersion)
        'minor'
        >>> get_update_type(None, "1.0.0", version_class=ComposerVersion)
        'new'
    """
    if target_version is None:
        return "unknown"

    if current_version is None:
        return "new"

    if is_commit_sha(current_version) or is_commit_sha(target_version):
        return "same" if sha_matches(current_version, target_version) else "commit"

    if not (version_class.is_correct(current_version) and version_class.is_correct(target_version)):
        return "unknown"

    current = version_class(current_version)
    target = version_class(target_version)

    if target == current:
        return "same"
    if target < current:
        return "downgrade"

    for label, before, after in zip(
        ("major", "minor", "patch"), _release(current), _release(target)
    ):
        if before != after:
            return label

    # Pre-release to release, or a fourth segment
    return "update"


def _release(version: Any) -> Tuple[int, int, int]:
    return version.major, version.minor, version.micro
