"""
Filesystem utilities for bumpwise.

bumpwise never writes to a project: it reads ``composer.json``, the
sibling ``composer.lock`` and the manifests of local path repositories
into memory as :class:`~bumpwise.models.DependencyFile` values. All
filesystem errors are normalized to ``FileOperationError``.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional, Union

from bumpwise.utils.logger import get_logger
from bumpwise.exceptions import FileOperationError
from bumpwise.models.dependency import DependencyFile
from bumpwise.constants import LOCKFILE_FILENAME, MANIFEST_FILENAME, MAX_FILE_SIZE

logger = get_logger("filesystem")

PathLike = Union[str, Path]


def _validated_file(path: Path) -> Path:
    """Ensure *path* exists and is a regular file, and resolve it."""
    if not path.exists():
        raise FileOperationError(
            f"File not found: {path}",
            file_path=str(path),
            operation="read",
        )
    if not path.is_file():
        raise FileOperationError(
            f"Not a file: {path}",
            file_path=str(path),
            operation="read",
        )
    return path.resolve()


def safe_read_file(
    file_path: PathLike,
    *,
    max_size: Optional[int] = MAX_FILE_SIZE,
    encoding: str = "utf-8",
) -> str:
    """Safely read a text file with optional size limits.

    Args:
        file_path: Path to the file.
        max_size: Maximum allowed file size in bytes (None disables limit).
        encoding: Text encoding.

    Returns:
        File contents as a string.

    Raises:
        FileOperationError: The file is missing, too large or unreadable.
    """
    path = _validated_file(Path(file_path))
    size = path.stat().st_size

    if max_size is not None and size > max_size:
        raise FileOperationError(
            f"File too large: {size} bytes (max {max_size})",
            file_path=str(path),
            operation="read",
        )

    try:
        return path.read_text(encoding=encoding)
    except (OSError, UnicodeDecodeError) as exc:
        raise FileOperationError(
            f"Failed to read file: {exc}",
            file_path=str(path),
            operation="read",
            original_error=exc,
        ) from exc


def resolve_manifest_path(path: PathLike) -> Path:
    """Accept a project directory or a manifest path; return the manifest path."""
    candidate = Path(path)
    if candidate.is_dir():
        candidate = candidate / MANIFEST_FILENAME
    return _validated_file(candidate)


def _path_repository_manifests(project: Path, manifest_text: str) -> List[DependencyFile]:
    """Read the manifests of ``path`` repositories that live inside *project*."""
    try:
        manifest = json.loads(manifest_text)
    except json.JSONDecodeError:
        # Reported with file context when the manifest itself is parsed
        return []

    repositories = manifest.get("repositories") if isinstance(manifest, dict) else None
    if isinstance(repositories, dict):
        repositories = list(repositories.values())
    if not isinstance(repositories, list):
        return []

    files: List[DependencyFile] = []
    for repository in repositories:
        if not isinstance(repository, dict) or repository.get("type") != "path":
            continue
        url = str(repository.get("url") or "")
        if not url or any(char in url for char in "*?["):
            logger.debug("Skipping path repository %r", url)
            continue

        location = (project / url / MANIFEST_FILENAME).resolve()
        if project not in location.parents or not location.is_file():
            logger.debug("Path repository manifest not available: %s", location)
            continue

        files.append(
            DependencyFile(
                name=location.relative_to(project).as_posix(),
                content=safe_read_file(location),
            )
        )
    return files


def load_dependency_files(path: PathLike) -> List[DependencyFile]:
    """Load the manifest, its lockfile (if any) and path-repository manifests.

    Args:
        path: Project directory or path to ``composer.json``.

    Returns:
        Files named relative to the project root, manifest first.
    """
    manifest_path = resolve_manifest_path(path)
    project = manifest_path.parent

    manifest_text = safe_read_file(manifest_path)
    files = [DependencyFile(name=MANIFEST_FILENAME, content=manifest_text)]

    lock_path = project / LOCKFILE_FILENAME
    if lock_path.is_file():
        files.append(DependencyFile(name=LOCKFILE_FILENAME, content=safe_read_file(lock_path)))
    else:
        logger.info("No %s next to %s", LOCKFILE_FILENAME, manifest_path)

    files.extend(_path_repository_manifests(project, manifest_text))
    return files
