"""Unified logging configuration for the decision core.

Library modules only ever call ``logging.getLogger(__name__)`` and never
configure handlers themselves. :func:`setup_logging` is for the process
that embeds the decision core: the launcher that talks to the arbiter (or a
tournament/benchmark script) calls it once at start-up, before creating any
AI, to attach a console handler with one of the standard formats.

Usage:
    from tablut_ai.core.logging_config import setup_logging

    logger = setup_logging("tablut_ai", level="DEBUG")
"""

from __future__ import annotations

import logging
import sys
from typing import IO

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
COMPACT_FORMAT = "%(levelname)s %(name)s: %(message)s"
DETAILED_FORMAT = (
    "%(asctime)s - %(name)s - %(levelname)s - "
    "%(filename)s:%(lineno)d - %(message)s"
)

# Marks handlers installed here so repeated setup calls stay idempotent.
_HANDLER_ATTR = "_tablut_console_handler"


def _coerce_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return resolved


def setup_logging(
    name: str = "tablut_ai",
    level: int | str = logging.INFO,
    fmt: str = DEFAULT_FORMAT,
    stream: IO[str] | None = None,
) -> logging.Logger:
    """Configure and return the logger ``name``.

    Args:
        name: Logger name; ``"tablut_ai"`` configures the whole package.
        level: Level as an int or a name such as ``"DEBUG"``.
        fmt: Format string for the console handler.
        stream: Output stream (defaults to stderr).

    Returns:
        The configured logger. Calling this twice for the same name
        updates the level and format without adding a second handler.
    """
    logger = logging.getLogger(name)
    logger.setLevel(_coerce_level(level))

    handler = next(
        (h for h in logger.handlers if getattr(h, _HANDLER_ATTR, False)),
        None,
    )
    if handler is None:
        handler = logging.StreamHandler(stream or sys.stderr)
        setattr(handler, _HANDLER_ATTR, True)
        logger.addHandler(handler)
    handler.setFormatter(logging.Formatter(fmt))
    return logger
