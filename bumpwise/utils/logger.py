"""
Logging utilities for bumpwise.

Every bumpwise module obtains its logger through :func:`get_logger`, which
keeps all records under the ``bumpwise`` namespace. The package stays
silent until an application (usually the CLI) calls :func:`setup_logging`.
"""

from __future__ import annotations

import os
import sys
import logging
import threading
from typing import IO, Iterable, Optional

from bumpwise.constants import (
    LOG_DATE_FORMAT,
    LOG_DEFAULT_FORMAT,
    LOG_VERBOSE_FORMAT,
)

_ROOT = "bumpwise"

#: Chatty libraries whose INFO output would drown ours (httpx logs every request).
_NOISY_LOGGERS = ("httpx", "httpcore", "hpack")

_logging_configured: bool = False
_lock = threading.Lock()


class ColoredFormatter(logging.Formatter):
    """Formatter that colours the level name when writing to a terminal."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(
        self,
        fmt: str,
        *,
        datefmt: Optional[str] = None,
        use_color: bool = True,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname)
        if not (color and self.use_color and self._should_use_color()):
            return super().format(record)

        # Work on a copy so other handlers see the plain level name
        colored = logging.makeLogRecord(record.__dict__)
        colored.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(colored)

    @staticmethod
    def _should_use_color() -> bool:
        if os.environ.get("NO_COLOR") or os.environ.get("CI"):
            return False
        try:
            return sys.stderr.isatty()
        except (AttributeError, OSError):
            return False


def verbosity_to_level(verbose: int) -> int:
    """Map a ``-v`` count to a logging level (0=WARNING, 1=INFO, 2+=DEBUG)."""
    if verbose <= 0:
        return logging.WARNING
    if verbose == 1:
        return logging.INFO
    return logging.DEBUG


def setup_logging(
    *,
    level: int = logging.INFO,
    verbose: bool = False,
    stream: Optional[IO[str]] = None,
    quiet_libraries: Iterable[str] = _NOISY_LOGGERS,
) -> None:
    """Configure the ``bumpwise`` logger hierarchy.

    Safe to call repeatedly; the previous handler is replaced.

    Args:
        level: Logging level for bumpwise records.
        verbose: Use the timestamped format.
        stream: Output stream; defaults to ``sys.stderr``.
        quiet_libraries: Third-party loggers capped at WARNING unless
            *level* is DEBUG.
    """
    global _logging_configured

    with _lock:
        root_logger = logging.getLogger(_ROOT)
        root_logger.handlers.clear()
        root_logger.setLevel(level)

        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setLevel(level)
        handler.setFormatter(
            ColoredFormatter(
                LOG_VERBOSE_FORMAT if verbose else LOG_DEFAULT_FORMAT,
                datefmt=LOG_DATE_FORMAT,
                use_color=not os.environ.get("NO_COLOR"),
            )
        )

        root_logger.addHandler(handler)
        root_logger.propagate = False

        library_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
        for name in quiet_libraries:
            logging.getLogger(name).setLevel(library_level)

        _logging_configured = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger within the bumpwise namespace.

    ``get_logger("composer.registry")`` and
    ``get_logger("bumpwise.composer.registry")`` return the same logger.
    """
    if not name or name == _ROOT:
        logger = logging.getLogger(_ROOT)
    elif name.startswith(_ROOT + "."):
        logger = logging.getLogger(name)
    else:
        logger = logging.getLogger(f"{_ROOT}.{name}")

    if not logger.handlers and (not logger.parent or not logger.parent.handlers):
        logger.addHandler(logging.NullHandler())

    return logger


def is_logging_configured() -> bool:
    """Return True if bumpwise logging has been configured."""
    return _logging_configured


def disable_logging() -> None:
    """Silence all bumpwise logging output."""
    global _logging_configured

    with _lock:
        root_logger = logging.getLogger(_ROOT)
        root_logger.handlers.clear()
        root_logger.addHandler(logging.NullHandler())
        root_logger.setLevel(logging.NOTSET)
        _logging_configured = False
