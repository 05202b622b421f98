"""Configuration package.

User-facing export preferences, loaded from the environment.
"""

from pplx_export.config.preferences import (
    DEFAULT_STRATEGY_PRIORITY,
    ExportPreferences,
    get_preferences,
)


__all__ = [
    "DEFAULT_STRATEGY_PRIORITY",
    "ExportPreferences",
    "get_preferences",
]
