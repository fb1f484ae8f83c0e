"""Configuration file loader for bumpwise.

Handles discovery, loading, parsing, and validation of configuration files.
Supports two formats:

- ``bumpwise.toml``: settings under a ``[bumpwise]`` table
- ``pyproject.toml``: settings under a ``[tool.bumpwise]`` table

Discovery order:

1. Explicit path from ``--config`` or ``BUMPWISE_CONFIG``
2. ``bumpwise.toml`` in the current directory
3. ``pyproject.toml`` with a ``[tool.bumpwise]`` section

Configuration precedence: defaults < config file < CLI args.

Example (``bumpwise.toml``)::

    [bumpwise]
    update_strategy = "widen_ranges"
    raise_on_ignored = false
    composer_binary = "/usr/local/bin/composer"

    [bumpwise.ignored_versions]
    "monolog/monolog" = [">= 2.0.0, < 3"]
"""

from __future__ import annotations


import tomli
from pathlib import Path
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from bumpwise.exceptions import ConfigError
from bumpwise.utils.logger import get_logger
from bumpwise.models.strategy import UpdateStrategy
from bumpwise.constants import DEFAULT_COMPOSER_BINARY, PACKAGIST_URL

logger = get_logger("config")

CONFIG_FILENAME = "bumpwise.toml"
PYPROJECT_FILENAME = "pyproject.toml"

_KNOWN_KEYS = {
    "update_strategy",
    "ignored_versions",
    "raise_on_ignored",
    "composer_binary",
    "packagist_url",
}


@dataclass
class BumpwiseConfig:
    """Parsed and validated bumpwise configuration.

    Every field has a default, so an empty section is valid.

    Attributes:
        update_strategy: Requirement rewrite strategy. ``None`` lets the
            checker pick one from the manifest type.
        ignored_versions: Ranges never proposed, keyed by package name.
        raise_on_ignored: Fail instead of reporting nothing when every
            newer version is ignored.
        composer_binary: Composer executable used for resolution.
        packagist_url: Base URL of the public registry.
        source_path: Path of the loaded file, or ``None`` for defaults.
    """

    update_strategy: Optional[UpdateStrategy] = None
    ignored_versions: Dict[str, List[str]] = field(default_factory=dict)
    raise_on_ignored: bool = False
    composer_binary: str = DEFAULT_COMPOSER_BINARY
    packagist_url: str = PACKAGIST_URL

    source_path: Optional[Path] = field(default=None, repr=False)

    def ignored_for(self, name: str) -> List[str]:
        """Return the ignore ranges for *name* (case-insensitive)."""
        lowered = name.lower()
        for key, ranges in self.ignored_versions.items():
            if key.lower() == lowered:
                return list(ranges)
        return []

    def to_log_dict(self) -> Dict[str, Any]:
        return {
            "update_strategy": self.update_strategy.value if self.update_strategy else None,
            "ignored_versions": self.ignored_versions,
            "raise_on_ignored": self.raise_on_ignored,
            "composer_binary": self.composer_binary,
            "packagist_url": self.packagist_url,
        }


def discover_config_file(explicit_path: Optional[Path] = None) -> Optional[Path]:
    """Find the configuration file to load.

    Args:
        explicit_path: Explicit config path. If provided, it must exist.

    Returns:
        Resolved path to the config file, or ``None`` if there is none.

    Raises:
        ConfigError: *explicit_path* does not exist.
    """
    if explicit_path is not None:
        resolved = explicit_path.resolve()
        if not resolved.is_file():
            raise ConfigError(
                f"Configuration file not found: {explicit_path}",
                config_path=str(explicit_path),
            )
        logger.debug("Using explicit config: %s", resolved)
        return resolved

    cwd = Path.cwd()

    own_file = cwd / CONFIG_FILENAME
    if own_file.is_file():
        logger.debug("Found %s: %s", CONFIG_FILENAME, own_file)
        return own_file

    pyproject = cwd / PYPROJECT_FILENAME
    if pyproject.is_file() and _pyproject_has_section(pyproject):
        logger.debug("Found [tool.bumpwise] in %s", pyproject)
        return pyproject

    logger.debug("No configuration file found")
    return None


def _pyproject_has_section(path: Path) -> bool:
    """Return True if *path* has a ``[tool.bumpwise]`` table.

    An unreadable pyproject is treated as having none.
    """
    try:
        raw = _read_toml(path)
    except ConfigError:
        return False
    return "bumpwise" in raw.get("tool", {})


def load_config(config_path: Optional[Path] = None) -> BumpwiseConfig:
    """Load and validate the bumpwise configuration.

    Args:
        config_path: Explicit path. ``None`` triggers discovery.

    Returns:
        Validated :class:`BumpwiseConfig`, with defaults if no file exists.

    Raises:
        ConfigError: Invalid TOML, unknown keys or wrongly typed values.
    """
    resolved = discover_config_file(config_path)
    if resolved is None:
        return BumpwiseConfig()

    logger.info("Loading configuration from %s", resolved)
    raw = _read_toml(resolved)

    if resolved.name == PYPROJECT_FILENAME:
        section = raw.get("tool", {}).get("bumpwise", {})
    else:
        section = raw.get("bumpwise", {})

    if not section:
        logger.debug("Config file has no bumpwise section; using defaults")
        return BumpwiseConfig(source_path=resolved)

    config = _parse_section(section, config_path=str(resolved))
    config.source_path = resolved

    logger.debug("Loaded configuration: %s", config.to_log_dict())
    return config


def _read_toml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "rb") as fh:
            return tomli.load(fh)
    except tomli.TOMLDecodeError as exc:
        raise ConfigError(
            f"Invalid TOML in {path.name}: {exc}",
            config_path=str(path),
        ) from exc
    except OSError as exc:
        raise ConfigError(
            f"Cannot read configuration file {path}: {exc}",
            config_path=str(path),
        ) from exc


def _type_error(option: str, expected: str, value: Any, config_path: str) -> ConfigError:
    return ConfigError(
        f"{option} must be {expected}, got {type(value).__name__}",
        config_path=config_path,
        option=option,
    )


def _parse_section(section: Dict[str, Any], *, config_path: str) -> BumpwiseConfig:
    """Validate a ``[bumpwise]`` table and build the config from it.

    Raises:
        ConfigError: Unknown keys or incorrect types.
    """
    config = BumpwiseConfig()

    if not isinstance(section, dict):
        raise _type_error("bumpwise", "a table", section, config_path)

    unknown = set(section.keys()) - _KNOWN_KEYS
    if unknown:
        raise ConfigError(
            f"Unknown configuration keys: {', '.join(sorted(unknown))}",
            config_path=config_path,
        )

    if "update_strategy" in section:
        value = section["update_strategy"]
        if not isinstance(value, str):
            raise _type_error("update_strategy", "a string", value, config_path)
        try:
            config.update_strategy = UpdateStrategy(value)
        except ValueError as exc:
            choices = ", ".join(strategy.value for strategy in UpdateStrategy)
            raise ConfigError(
                f"update_strategy must be one of {choices}, got {value!r}",
                config_path=config_path,
                option="update_strategy",
            ) from exc

    if "ignored_versions" in section:
        value = section["ignored_versions"]
        if not isinstance(value, dict):
            raise _type_error("ignored_versions", "a table", value, config_path)
        for name, ranges in value.items():
            if not isinstance(ranges, list) or not all(isinstance(r, str) for r in ranges):
                raise ConfigError(
                    f"ignored_versions.{name} must be a list of strings",
                    config_path=config_path,
                    option="ignored_versions",
                )
        config.ignored_versions = {name: list(ranges) for name, ranges in value.items()}

    if "raise_on_ignored" in section:
        value = section["raise_on_ignored"]
        if not isinstance(value, bool):
            raise _type_error("raise_on_ignored", "a boolean", value, config_path)
        config.raise_on_ignored = value

    for option in ("composer_binary", "packagist_url"):
        if option in section:
            value = section[option]
            if not isinstance(value, str) or not value:
                raise _type_error(option, "a non-empty string", value, config_path)
            setattr(config, option, value)

    return config
