"""Logging setup utilities for pi400admin.

The application logs under the ``pi400admin`` logger. When the admin API
is served, uvicorn's loggers get the same handlers and format so request
lines and handler logs come out as one stream.
"""

from __future__ import annotations

import logging
import sys

from pi400admin.config.settings import LoggingConfig

APP_LOGGER = "pi400admin"
# "uvicorn.error" and "uvicorn.access" propagate here when uvicorn runs
# without its own log_config.
SERVER_LOGGER = "uvicorn"

_MARKER = "_pi400admin_handler"


def _build_handlers(config: LoggingConfig) -> list[logging.Handler]:
    formatter = logging.Formatter(config.format)
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.file:
        handlers.append(logging.FileHandler(config.file))
    for handler in handlers:
        handler.setFormatter(formatter)
        setattr(handler, _MARKER, True)
    return handlers


def _install(logger: logging.Logger, handlers: list[logging.Handler], level: int) -> None:
    """Replace handlers from an earlier setup_logging call, keep foreign ones."""
    for old in [h for h in logger.handlers if getattr(h, _MARKER, False)]:
        logger.removeHandler(old)
        old.close()
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(level)


def setup_logging(config: LoggingConfig | None = None, server: bool = False) -> None:
    """Configure logging for pi400admin.

    Safe to call more than once: each call replaces the handlers installed
    by the previous one instead of stacking another stderr handler.

    Args:
        config: Logging configuration. If None, uses defaults
                (INFO level, stderr output).
        server: Also route uvicorn's loggers through the same handlers.
    """
    if config is None:
        config = LoggingConfig()

    level = getattr(logging, config.level.upper(), logging.INFO)
    handlers = _build_handlers(config)

    _install(logging.getLogger(APP_LOGGER), handlers, level)
    if server:
        _install(logging.getLogger(SERVER_LOGGER), handlers, level)

    logging.getLogger(APP_LOGGER).debug("Logging initialized at %s level", config.level)
