"""Logging configuration for invite-ai.

Each invite request runs on whichever thread the caller uses, and several
users are usually served at once, so every line carries the thread name
alongside the logger.  Lines look like::

    2025-03-10T09:00:00 | INFO     | invite-alice | invite_ai.pipeline | Stage 1: ...
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(threadName)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

# Marks the handler this module owns, so a second call reconfigures it
# instead of stacking another one next to handlers installed elsewhere.
_OWNED_HANDLER_ATTR = "_invite_ai_handler"


def _level_number(level: str) -> int:
    number = logging.getLevelName(level.strip().upper())
    if not isinstance(number, int):
        raise ValueError(f"Invalid log level: {level!r}")
    return number


def _owned_handler(root: logging.Logger) -> logging.Handler | None:
    return next(
        (h for h in root.handlers if getattr(h, _OWNED_HANDLER_ATTR, False)), None
    )


def setup_logging(level: str = "INFO", stream: TextIO | None = None) -> logging.Handler:
    """Route invite-ai logging to *stream* (``stderr`` by default).

    Repeated calls adjust the level of the handler installed by the first
    call; passing a different *stream* replaces that handler.

    Args:
        level: A logging level name such as ``"DEBUG"`` or ``"warning"``.
        stream: Where formatted records are written.

    Returns:
        The handler now attached to the root logger.

    Raises:
        ValueError: If *level* is not a logging level name.
    """
    number = _level_number(level)
    target = stream if stream is not None else sys.stderr

    root = logging.getLogger()
    root.setLevel(number)

    handler = _owned_handler(root)
    if handler is not None and getattr(handler, "stream", None) is not target:
        root.removeHandler(handler)
        handler = None

    if handler is None:
        handler = logging.StreamHandler(target)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        setattr(handler, _OWNED_HANDLER_ATTR, True)
        root.addHandler(handler)

    handler.setLevel(number)
    return handler
