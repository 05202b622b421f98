"""Structured logging configuration.

Features:
- JSON-formatted log output for production
- Human-readable format for development
- Service context on every entry
- Export context (export id, thread URL, active strategy) bound per run
"""

import logging
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog
from structlog.types import Processor

from pplx_export.core.config import get_settings


def add_service_context(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Add service context to all log entries.

    Args:
        logger: The wrapped logger object.
        method_name: The name of the method called on the logger.
        event_dict: The event dictionary to process.

    Returns:
        Updated event dictionary with service context.
    """
    settings = get_settings()
    event_dict["service"] = settings.service_name
    event_dict["environment"] = settings.environment
    return event_dict


def configure_logging() -> None:
    """Configure structured logging for the application.

    In development: Human-readable colored output
    In production: JSON-formatted structured logs

    Logs go to stderr so that Markdown written to stdout stays clean.
    """
    settings = get_settings()

    use_json = settings.environment in ("production", "staging")

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_service_context,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if use_json:
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(settings.log_level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=logging.getLevelName(settings.log_level.upper()),
    )

    # Event loop debug output
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Optional logger name (module name recommended).

    Returns:
        Configured structlog BoundLogger instance.

    Example:
        ```python
        from pplx_export.core.logging import get_logger

        logger = get_logger(__name__)
        logger.info("Strategy finished", strategy="direct_scan", turns=4)
        ```
    """
    return structlog.get_logger(name)


# Convenience type alias
Logger = structlog.BoundLogger


@contextmanager
def export_context(thread_url: str | None = None) -> Iterator[str]:
    """Bind an export id and the thread URL to every entry logged inside.

    Example:
        ```python
        with export_context("https://www.perplexity.ai/search/abc") as export_id:
            await exporter.export()
        ```
    """
    export_id = uuid.uuid4().hex[:8]
    with structlog.contextvars.bound_contextvars(
        export_id=export_id,
        thread_url=thread_url or "",
    ):
        yield export_id


@contextmanager
def strategy_context(strategy: str) -> Iterator[None]:
    """Tag entries logged during one extraction attempt with its strategy."""
    with structlog.contextvars.bound_contextvars(strategy=strategy):
        yield
