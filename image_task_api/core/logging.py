"""Structured logging setup shared by the API process and the Celery worker."""

import logging
import sys
from typing import Optional

import structlog

from .config import settings

_configured = False


def configure_logging(level: int | str | None = None, json_output: bool | None = None) -> None:
    """Configure structlog on top of stdlib logging.

    Local development renders coloured console lines; any other environment emits one
    JSON object per event so worker and API logs can be shipped together.
    """

    global _configured
    if _configured:
        return

    log_level = level or (logging.DEBUG if settings.debug else logging.INFO)
    if json_output is None:
        json_output = settings.environment != "development"

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
    ]
    if json_output:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(level=log_level, format="%(message)s", stream=sys.stdout)
    _configured = True


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """Create a structured logger."""

    return structlog.get_logger(name or "image_task_api")
