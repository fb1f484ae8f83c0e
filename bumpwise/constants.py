"""
Centralized constants for bumpwise.

This module defines immutable configuration values used across bumpwise,
including registry endpoints, network settings, Composer invocation
defaults, and logging formats. All values are intended to be treated as
read-only.
"""

from typing import Final, Sequence

# ---------------------------------------------------------------------------
# Project metadata
# ---------------------------------------------------------------------------

#: HTTP User-Agent template used for outbound requests.
USER_AGENT_TEMPLATE: Final[str] = "bumpwise/{version} (+https://pypi.org/project/bumpwise/)"

#: Package-manager tag carried by every Composer dependency.
COMPOSER_PACKAGE_MANAGER: Final[str] = "composer"

# ---------------------------------------------------------------------------
# Registry endpoints
# ---------------------------------------------------------------------------

#: Base URL of the public Packagist repository.
PACKAGIST_URL: Final[str] = "https://repo.packagist.org"

#: Metadata endpoint (Composer v2 layout) relative to a repository URL.
PACKAGIST_P2_PATH: Final[str] = "/p2/{package}.json"

#: Root index of a private ``composer`` repository.
COMPOSER_REPOSITORY_INDEX: Final[str] = "/packages.json"

# ---------------------------------------------------------------------------
# HTTP configuration
# ---------------------------------------------------------------------------

#: Default network timeout in seconds.
DEFAULT_TIMEOUT: Final[int] = 30

#: Maximum number of retries for failed HTTP requests.
DEFAULT_MAX_RETRIES: Final[int] = 3

# ---------------------------------------------------------------------------
# Composer invocation
# ---------------------------------------------------------------------------

#: Executable used by the process resolver.
DEFAULT_COMPOSER_BINARY: Final[str] = "composer"

#: Seconds a single ``composer update`` run may take.
DEFAULT_COMPOSER_TIMEOUT: Final[int] = 600

#: PHP releases tried (newest first) when pinning the platform version.
KNOWN_PHP_VERSIONS: Final[Sequence[str]] = (
    "8.3.0",
    "8.2.0",
    "8.1.0",
    "8.0.0",
    "7.4.0",
    "7.3.0",
    "7.2.0",
    "7.1.0",
    "7.0.0",
    "5.6.0",
    "5.5.0",
    "5.4.0",
    "5.3.0",
)

#: Version reported for platform extensions declared as present.
ASSUMED_EXTENSION_VERSION: Final[str] = "0.0.1"

# ---------------------------------------------------------------------------
# Candidate search limits
# ---------------------------------------------------------------------------

#: Maximum number of candidates probed when looking for a security fix.
MAX_SECURITY_FIX_CANDIDATES: Final[int] = 25

#: Maximum number of resolver calls made while walking down candidates.
MAX_RESOLUTION_ATTEMPTS: Final[int] = 10

# ---------------------------------------------------------------------------
# Manifest defaults
# ---------------------------------------------------------------------------

#: Manifest file name.
MANIFEST_FILENAME: Final[str] = "composer.json"

#: Lockfile name.
LOCKFILE_FILENAME: Final[str] = "composer.lock"

#: Maximum allowed file size (in bytes) when reading manifest files.
MAX_FILE_SIZE: Final[int] = 10 * 1024 * 1024  # 10 MB

# ---------------------------------------------------------------------------
# Logging configuration
# ---------------------------------------------------------------------------

#: Timestamp format for verbose logging.
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

#: Default log format (non-verbose).
LOG_DEFAULT_FORMAT: Final[str] = "%(levelname)s: %(message)s"

#: Verbose log format including timestamp and logger name.
LOG_VERBOSE_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
