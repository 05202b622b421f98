"""Application configuration using Pydantic Settings.

Environment variables are loaded with the PPLX_EXPORT_ prefix. Timings and
limits drive the extraction strategies; user-facing export preferences live
in pplx_export.config.preferences.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings loaded from environment variables."""

    # Service configuration
    service_name: str = "pplx-export"
    environment: str = Field(default="development", description="Runtime environment")
    log_level: str = Field(default="INFO", description="Logging level")

    # Browser connection
    cdp_endpoint: str | None = Field(
        default=None,
        description="Chrome DevTools endpoint of an already running browser",
    )
    headless: bool = Field(default=False, description="Launch the browser headless")
    start_url: str = Field(
        default="https://www.perplexity.ai/",
        description="Page opened when launching a fresh browser",
    )

    # Settle delays after simulated interaction
    scroll_delay_ms: int = Field(default=90, ge=0, description="Pause after each page-down")
    settle_delay_ms: int = Field(default=80, ge=0, description="Pause after jumping to top")
    click_delay_ms: int = Field(default=120, ge=0, description="Pause after clicking a control")

    # Bounded waits
    capture_timeout_ms: int = Field(
        default=15000,
        ge=0,
        description="How long to wait for an intercepted export payload",
    )
    capture_poll_ms: int = Field(default=100, ge=1, description="Capture polling interval")
    focus_timeout_ms: int = Field(
        default=10000,
        ge=0,
        description="How long a clipboard read waits for page focus to return",
    )
    focus_poll_ms: int = Field(default=100, ge=1, description="Focus polling interval")

    # Loop limits
    max_scroll_steps: int = Field(default=200, ge=1, description="Hard cap on scroll steps")
    stable_bottom_steps: int = Field(
        default=5,
        ge=1,
        description="Idle steps at the bottom before a scan stops",
    )
    expander_limit: int = Field(default=6, ge=0, description="Expanders clicked per pass")
    clipboard_retries: int = Field(default=3, ge=1, description="Reads per copy control")
    focus_retry_budget: int = Field(
        default=3,
        ge=1,
        description="Focus waits before reading the clipboard regardless",
    )

    model_config = SettingsConfigDict(
        env_prefix="PPLX_EXPORT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: Application settings singleton
    """
    return Settings()
