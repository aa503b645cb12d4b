"""Structured logging for the tax simulator.

structlog wraps the standard library: console rendering in development,
JSON lines when `SIMIMPOTS_JSON_LOGS` is set, and a rotating log file
outside of test runs.
"""

from __future__ import annotations

import logging
import logging.handlers
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog

_configured: bool = False


def _build_handlers(log_file: str | None) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if not log_file or os.environ.get("PYTEST_CURRENT_TEST"):
        return handlers

    try:
        os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
        handlers.append(
            logging.handlers.RotatingFileHandler(log_file, maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8")
        )
    except OSError:
        # Read-only install: console only
        pass
    return handlers


def configure_logging(
    level: str | None = None,
    json_output: bool | None = None,
) -> structlog.BoundLogger:
    """Configure structlog once per process.

    Args:
        level: DEBUG, INFO, WARNING or ERROR. Defaults to settings.log_level.
        json_output: Render JSON lines. Defaults to settings.json_logs.

    Returns:
        The root bound logger.
    """
    global _configured
    if _configured:
        return structlog.get_logger()

    from src.core.settings import get_settings

    settings = get_settings()
    numeric_level = getattr(logging, (level or settings.log_level).upper(), logging.INFO)
    if json_output is None:
        json_output = settings.json_logs

    logging.basicConfig(
        format="%(message)s",
        level=numeric_level,
        handlers=_build_handlers(str(settings.log_file) if settings.log_file else None),
        force=True,
    )

    processors: list[Any] = [
        structlog.stdlib.filter_by_level,
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer(colors=False),
    ]
    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    _configured = True
    return structlog.get_logger()


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Logger bound to `name`, configuring logging on first use."""
    if not _configured:
        configure_logging()

    logger = structlog.get_logger()
    return logger.bind(logger_name=name) if name else logger


@contextmanager
def bound_request(**values: Any) -> Iterator[None]:
    """Attach key/values (user_id, year...) to every event logged inside the block."""
    with structlog.contextvars.bound_contextvars(**values):
        yield
