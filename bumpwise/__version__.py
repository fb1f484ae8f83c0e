"""
Single source of truth for the bumpwise version.
"""

from __future__ import annotations

from packaging.version import Version

__version__ = "0.3.0"

_parsed = Version(__version__)

#: ``(major, minor, micro)`` of the running release.
VERSION_INFO = (_parsed.major, _parsed.minor, _parsed.micro)

VERSION_STRING = f"bumpwise {__version__}"
