"""Core module - Configuration, logging, constants and exceptions.

Exports:
    - Settings, get_settings: Pydantic Settings configuration
    - configure_logging, get_logger: Structured logging (structlog)
    - Exception classes: ExportError and subclasses
"""

from pplx_export.core.config import Settings, get_settings
from pplx_export.core.exceptions import (
    AllStrategiesExhaustedError,
    CaptureTimeoutError,
    CitationRegistryFrozenError,
    ClipboardAccessError,
    ExportError,
    FocusLostError,
    PageInteractionError,
    StrategyInsufficientError,
    UrlParseError,
)
from pplx_export.core.logging import configure_logging, get_logger


__all__ = [
    "AllStrategiesExhaustedError",
    "CaptureTimeoutError",
    "CitationRegistryFrozenError",
    "ClipboardAccessError",
    # Exceptions
    "ExportError",
    "FocusLostError",
    "PageInteractionError",
    # Configuration
    "Settings",
    "StrategyInsufficientError",
    "UrlParseError",
    # Logging
    "configure_logging",
    "get_logger",
    "get_settings",
]
