"""
Shared context object for bumpwise CLI commands.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from bumpwise.config import BumpwiseConfig


class BumpwiseContext:
    """Per-invocation state handed to subcommands through Click.

    Attributes:
        config_path: Configuration file in use, if any.
        config: Loaded configuration (defaults when no file exists).
        verbose: Verbosity level (0=WARNING, 1=INFO, 2+=DEBUG).
        color: Whether colored terminal output is enabled.
    """

    __slots__ = ("config_path", "config", "verbose", "color")

    def __init__(self) -> None:
        self.config_path: Optional[Path] = None
        self.config: BumpwiseConfig = BumpwiseConfig()
        self.verbose: int = 0
        self.color: bool = True


pass_context = click.make_pass_decorator(BumpwiseContext, ensure=True)
