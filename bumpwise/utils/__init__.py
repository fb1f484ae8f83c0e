"""
Utility helpers for bumpwise.

This package provides reusable utilities used across bumpwise, including:

- Console output helpers (Rich-based)
- Logging configuration and retrieval
- Filesystem helpers for loading Composer files
- Async HTTP client utilities
- Version comparison helpers

Only symbols listed in ``__all__`` are considered part of the public API.
"""

from __future__ import annotations

from bumpwise.utils.filesystem import (
    load_dependency_files,
    resolve_manifest_path,
    safe_read_file,
)
from bumpwise.utils.logger import (
    disable_logging,
    get_logger,
    is_logging_configured,
    setup_logging,
    verbosity_to_level,
)
from bumpwise.utils.console import (
    colorize_update_type,
    get_raw_console,
    print_error,
    print_json,
    print_success,
    print_table,
    print_warning,
    reconfigure_console,
)
from bumpwise.utils.http import HTTPClient, redact_url
from bumpwise.utils.version_utils import get_update_type

__all__ = [
    # Console
    "print_error",
    "print_json",
    "print_table",
    "print_success",
    "print_warning",
    "get_raw_console",
    "reconfigure_console",
    "colorize_update_type",
    # Logging
    "get_logger",
    "setup_logging",
    "disable_logging",
    "is_logging_configured",
    "verbosity_to_level",
    # Filesystem
    "safe_read_file",
    "load_dependency_files",
    "resolve_manifest_path",
    # HTTP
    "HTTPClient",
    "redact_url",
    # Version utilities
    "get_update_type",
]
