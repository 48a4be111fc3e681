"""Logging helpers for the report template engine.

Every module obtains its logger through :func:`get_logger` so all records
live under the ``report_templates`` hierarchy. Console output is configured
once per process with a Rich handler.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from rich.logging import RichHandler

ROOT_LOGGER_NAME = "report_templates"

_LOGGER_CONFIGURED = False


def get_logger(name: str) -> logging.Logger:
    """Get a logger for the given module name.

    Args:
        name: Logger name (typically ``__name__``).

    Returns:
        Logger placed under the ``report_templates`` hierarchy.
    """
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def configure_logging(debug: bool = False, *, level: Optional[int] = None) -> None:
    """Configure package logging with a Rich console handler.

    Repeated calls are ignored. The level falls back to the
    ``REPORT_TEMPLATES_LOG_LEVEL`` environment variable, then ``WARNING``.
    """
    global _LOGGER_CONFIGURED
    if _LOGGER_CONFIGURED:
        return

    if level is None:
        if debug:
            level = logging.DEBUG
        else:
            env_level = os.environ.get("REPORT_TEMPLATES_LOG_LEVEL", "WARNING")
            level = getattr(logging, env_level.upper(), logging.WARNING)

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)

    handler = RichHandler(show_path=debug, rich_tracebacks=debug)
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="%H:%M:%S"))
    logger.addHandler(handler)
    logger.propagate = False

    _LOGGER_CONFIGURED = True
