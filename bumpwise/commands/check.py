"""Check command implementation for bumpwise.

Evaluates one dependency of a Composer project: its latest release, the
latest version the dependency graph resolves with, whether it is up to
date, whether it can be updated at the chosen unlock level, and how its
requirement strings would be rewritten.

Typical usage::

    # Check monolog in the current project
    $ bumpwise check monolog/monolog

    # Let the dependency's own dependencies move too
    $ bumpwise check monolog/monolog ./app --unlock all

    # Machine-readable output with private credentials and advisories
    $ bumpwise check acme/private --credentials creds.json \\
        --advisories advisories.json --json
"""

from __future__ import annotations

import sys
import json
import click
import asyncio
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from bumpwise.utils.http import HTTPClient
from bumpwise.utils.logger import get_logger
from bumpwise.config import BumpwiseConfig
from bumpwise.context import BumpwiseContext, pass_context
from bumpwise.utils.filesystem import load_dependency_files, safe_read_file
from bumpwise.utils.version_utils import get_update_type
from bumpwise.composer.version import ComposerVersion
from bumpwise.composer.resolver import ComposerProcessResolver
from bumpwise.composer.manifest import ComposerFiles, is_platform_package
from bumpwise.composer.update_checker import ComposerUpdateChecker
from bumpwise.models.advisory import SecurityAdvisory
from bumpwise.models.credential import Credential
from bumpwise.models.dependency import Dependency
from bumpwise.models.strategy import UnlockLevel, UpdateStrategy
from bumpwise.models.update import Unfixable
from bumpwise.exceptions import BumpwiseError, ConfigError, ParseError
from bumpwise.utils.console import (
    colorize_update_type,
    get_raw_console,
    print_error,
    print_json,
    print_success,
    print_table,
    print_warning,
)

logger = get_logger("commands.check")


@click.command()
@click.argument("dependency_name")
@click.argument(
    "path",
    type=click.Path(exists=True, path_type=Path),
    default=".",
)
@click.option(
    "--unlock",
    type=click.Choice([level.value for level in UnlockLevel], case_sensitive=False),
    default=UnlockLevel.OWN.value,
    show_default=True,
    help="How much of the dependency graph may move.",
)
@click.option(
    "--strategy",
    type=click.Choice([strategy.value for strategy in UpdateStrategy], case_sensitive=False),
    default=None,
    help="Requirement rewrite strategy (default depends on the project type).",
)
@click.option(
    "--ignore",
    "ignored",
    multiple=True,
    metavar="RANGE",
    help="Version range never to propose (repeatable).",
)
@click.option(
    "--credentials",
    "credentials_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON file with a list of credentials for private sources.",
)
@click.option(
    "--advisories",
    "advisories_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON file with a list of security advisories.",
)
@click.option(
    "--raise-on-ignored/--no-raise-on-ignored",
    default=None,
    help="Fail when every newer version is ignored.",
)
@click.option(
    "--composer-binary",
    default=None,
    help="Composer executable used for resolution.",
)
@click.option("--json", "as_json", is_flag=True, help="Emit JSON instead of a table.")
@pass_context
def check(
    ctx: BumpwiseContext,
    dependency_name: str,
    path: Path,
    unlock: str,
    strategy: Optional[str],
    ignored: Tuple[str, ...],
    credentials_file: Optional[Path],
    advisories_file: Optional[Path],
    raise_on_ignored: Optional[bool],
    composer_binary: Optional[str],
    as_json: bool,
) -> None:
    """Check whether DEPENDENCY_NAME in the project at PATH can be updated.

    PATH is a project directory or a ``composer.json``; a ``composer.lock``
    next to it is used when present.

    Exits with 1 when an update is available or an error occurred, and
    with 0 otherwise.
    """
    config = ctx.config

    try:
        if is_platform_package(dependency_name):
            raise BumpwiseError(
                f"{dependency_name} is a platform package and cannot be updated",
                {"dependency": dependency_name},
            )

        options = _CheckOptions(
            unlock=UnlockLevel(unlock.lower()),
            strategy=UpdateStrategy(strategy.lower()) if strategy else config.update_strategy,
            ignored=list(config.ignored_for(dependency_name)) + list(ignored),
            credentials=load_credentials(credentials_file) if credentials_file else [],
            advisories=load_advisories(advisories_file) if advisories_file else [],
            raise_on_ignored=(
                config.raise_on_ignored if raise_on_ignored is None else raise_on_ignored
            ),
            composer_binary=composer_binary or config.composer_binary,
        )
        report = asyncio.run(_check_async(dependency_name, path, options, config))

    except BumpwiseError as exc:
        print_error(str(exc))
        logger.debug("Check failed: %s", exc.details or "<none>", exc_info=True)
        sys.exit(1)

    if as_json:
        print_json(report)
    else:
        _display_report(report)

    sys.exit(1 if report["can_update"] else 0)


class _CheckOptions:
    __slots__ = (
        "unlock",
        "strategy",
        "ignored",
        "credentials",
        "advisories",
        "raise_on_ignored",
        "composer_binary",
    )

    def __init__(
        self,
        *,
        unlock: UnlockLevel,
        strategy: Optional[UpdateStrategy],
        ignored: List[str],
        credentials: List[Credential],
        advisories: List[SecurityAdvisory],
        raise_on_ignored: bool,
        composer_binary: str,
    ) -> None:
        self.unlock = unlock
        self.strategy = strategy
        self.ignored = ignored
        self.credentials = credentials
        self.advisories = advisories
        self.raise_on_ignored = raise_on_ignored
        self.composer_binary = composer_binary


# ---------------------------------------------------------------------------
# Input files
# ---------------------------------------------------------------------------


def _load_json_list(path: Path, what: str) -> List[Dict[str, Any]]:
    text = safe_read_file(path)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ParseError(f"Invalid JSON in {what} file: {exc}", file_path=str(path)) from exc

    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        raise ConfigError(f"The {what} file must contain a list of objects", config_path=str(path))
    return data


def load_credentials(path: Path) -> List[Credential]:
    """Read an ordered list of credentials from a JSON file."""
    return [Credential.from_dict(item) for item in _load_json_list(path, "credentials")]


def load_advisories(path: Path) -> List[SecurityAdvisory]:
    """Read security advisories from a JSON file."""
    advisories = []
    for item in _load_json_list(path, "advisories"):
        try:
            advisories.append(SecurityAdvisory.from_dict(item))
        except KeyError as exc:
            raise ConfigError(
                f"Advisory entry is missing {exc}", config_path=str(path)
            ) from exc
    return advisories


# ---------------------------------------------------------------------------
# Async orchestration
# ---------------------------------------------------------------------------


async def _check_async(
    dependency_name: str,
    path: Path,
    options: _CheckOptions,
    config: BumpwiseConfig,
) -> Dict[str, Any]:
    """Run every decision for one dependency and collect a report.

    Raises:
        BumpwiseError: Files cannot be read or a source cannot be reached.
    """
    dependency_files = load_dependency_files(path)
    dependency = ComposerFiles(dependency_files).dependency(dependency_name)
    logger.info("Checking %s (current: %s)", dependency.name, dependency.version or "unlocked")

    async with HTTPClient() as http:
        checker = ComposerUpdateChecker.create(
            dependency,
            dependency_files,
            http,
            credentials=options.credentials,
            resolver=ComposerProcessResolver(options.composer_binary),
            packagist_url=config.packagist_url,
            ignored_versions=options.ignored,
            security_advisories=options.advisories,
            raise_on_ignored=options.raise_on_ignored,
            requirements_update_strategy=options.strategy,
        )

        latest = await checker.latest_version()
        up_to_date = await checker.up_to_date()
        can_update = await checker.can_update(options.unlock)

        resolvable = None
        preferred = None
        requirements_update = None
        updated: List[Dependency] = []
        if not up_to_date and not checker.skipped:
            resolvable = await checker.latest_resolvable_version()
            preferred = await checker.preferred_resolvable_version()
            requirements_update = await checker.updated_requirements()
        if can_update:
            updated = await checker.updated_dependencies(options.unlock)

    return _build_report(
        dependency,
        unlock=options.unlock,
        latest=latest,
        resolvable=resolvable,
        preferred=preferred,
        vulnerable=checker.vulnerable(),
        up_to_date=up_to_date,
        can_update=can_update,
        unfixable=isinstance(requirements_update, Unfixable),
        updated=updated,
    )


def _as_text(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _build_report(
    dependency: Dependency,
    *,
    unlock: UnlockLevel,
    latest: Any,
    resolvable: Any,
    preferred: Any,
    vulnerable: bool,
    up_to_date: bool,
    can_update: bool,
    unfixable: bool,
    updated: Sequence[Dependency],
) -> Dict[str, Any]:
    new_dependency = updated[0] if updated else None
    target = new_dependency.version if new_dependency else None

    return {
        "name": dependency.name,
        "current_version": dependency.version,
        "latest_version": _as_text(latest),
        "latest_resolvable_version": _as_text(resolvable),
        "preferred_version": _as_text(preferred),
        "vulnerable": vulnerable,
        "up_to_date": up_to_date,
        "can_update": can_update,
        "unlock": unlock.value,
        "unfixable": unfixable,
        "update_type": (
            get_update_type(dependency.version, target, version_class=ComposerVersion)
            if target
            else None
        ),
        "requirements": [r.to_json() for r in dependency.requirements],
        "updated_dependency": new_dependency.to_json() if new_dependency else None,
    }


# ---------------------------------------------------------------------------
# Display
# ---------------------------------------------------------------------------


def _yes_no(value: bool) -> str:
    return "[green]yes[/green]" if value else "[red]no[/red]"


def _requirement_changes(report: Dict[str, Any]) -> List[str]:
    before = [r.get("requirement") for r in report["requirements"]]
    updated = report["updated_dependency"]
    after = [r.get("requirement") for r in updated["requirements"]] if updated else before

    changes = []
    for old, new in zip(before, after):
        if old == new:
            changes.append(str(old))
        else:
            changes.append(f"{old} -> [bold green]{new}[/bold green]")
    return changes


def _display_report(report: Dict[str, Any]) -> None:
    """Render a report as a two-column Rich table plus a summary line."""
    rows = [
        {"Field": "Current", "Value": report["current_version"] or "-"},
        {"Field": "Latest", "Value": report["latest_version"] or "-"},
        {"Field": "Latest resolvable", "Value": report["latest_resolvable_version"] or "-"},
        {"Field": "Preferred", "Value": report["preferred_version"] or "-"},
        {"Field": "Vulnerable", "Value": _yes_no(report["vulnerable"])},
        {"Field": "Up to date", "Value": _yes_no(report["up_to_date"])},
        {"Field": f"Can update ({report['unlock']})", "Value": _yes_no(report["can_update"])},
        {"Field": "Requirements", "Value": "\n".join(_requirement_changes(report)) or "-"},
    ]
    if report["update_type"]:
        rows.append({"Field": "Update type", "Value": colorize_update_type(report["update_type"])})

    print_table(
        rows,
        title=report["name"],
        column_styles={"Field": {"style": "bold cyan", "no_wrap": True}},
    )

    console = get_raw_console()
    console.print("")
    if report["can_update"]:
        target = report["updated_dependency"]["version"] or "new requirements"
        print_warning(f"{report['name']} can be updated to {target}")
    elif report["unfixable"]:
        print_warning(f"{report['name']} cannot be updated without breaking its requirements")
    elif report["up_to_date"]:
        print_success(f"{report['name']} is up to date")
    else:
        print_warning(f"No update found for {report['name']}")
