"""
Command-line interface for bumpwise.

Handles global options, configuration loading and command registration.
"""

from __future__ import annotations

import os
import sys
import logging
from pathlib import Path
from typing import Optional

import click

from bumpwise.config import load_config
from bumpwise.__version__ import __version__
from bumpwise.context import BumpwiseContext
from bumpwise.commands.check import check
from bumpwise.exceptions import BumpwiseError, ConfigError
from bumpwise.utils.logger import get_logger, setup_logging, verbosity_to_level
from bumpwise.utils.console import print_error, print_warning, reconfigure_console

logger = get_logger("cli")


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file.",
    envvar="BUMPWISE_CONFIG",
)
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Increase verbosity (can be repeated: -v, -vv).",
)
@click.option(
    "--color/--no-color",
    default=True,
    help="Enable or disable colored output.",
    envvar="BUMPWISE_COLOR",
)
@click.version_option(
    version=__version__,
    prog_name="bumpwise",
    message="%(prog)s %(version)s",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config: Optional[Path],
    verbose: int,
    color: bool,
) -> None:
    """bumpwise: find safe updates for Composer dependencies.

    \b
    Examples:
      bumpwise check monolog/monolog
      bumpwise check monolog/monolog path/to/project --unlock all
      bumpwise -v check acme/private --credentials creds.json --json
    """
    level = verbosity_to_level(verbose)
    setup_logging(level=level, verbose=verbose >= 2)
    logger.debug("Logging initialized at %s level", logging.getLevelName(level))

    try:
        loaded_config = load_config(config)
    except ConfigError as exc:
        print_error(str(exc))
        raise SystemExit(1) from exc

    bumpwise_ctx = BumpwiseContext()
    bumpwise_ctx.config_path = config or loaded_config.source_path
    bumpwise_ctx.config = loaded_config
    bumpwise_ctx.color = color
    bumpwise_ctx.verbose = verbose
    ctx.obj = bumpwise_ctx

    if color:
        os.environ.pop("NO_COLOR", None)
    else:
        os.environ["NO_COLOR"] = "1"
    reconfigure_console()

    logger.debug("bumpwise v%s", __version__)
    logger.debug("Config path: %s", bumpwise_ctx.config_path)


cli.add_command(check)


def main() -> int:
    """Entry point for the ``bumpwise`` script.

    Returns:
        Exit code: 0 on success, 1 on error, 2 on usage error and 130
        when interrupted.
    """
    try:
        result = cli(standalone_mode=False)
        return result if isinstance(result, int) else 0

    except click.exceptions.Exit as exc:
        return exc.exit_code

    except click.ClickException as exc:
        exc.show()
        return exc.exit_code

    except click.exceptions.Abort:
        print_warning("\nOperation cancelled by user")
        return 130

    except BumpwiseError as exc:
        print_error(str(exc))
        logger.debug("BumpwiseError details: %s", exc.details or "<none>", exc_info=True)
        return 1

    except KeyboardInterrupt:
        print_warning("\nOperation cancelled by user")
        return 130

    except Exception as exc:
        print_error(f"Unexpected error: {exc}")
        logger.exception("Unhandled exception in CLI")
        return 1


if __name__ == "__main__":
    sys.exit(main())
