"""
Floor Display configuration.

Values come from FLOOR_* environment variables or a .env file; the CLI
flags in main.py / gui.py override them.

Usage:
    from floor_display.config import get_settings

    settings = get_settings()
    print(settings.ws_url)
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .engine.locale import LOCALES


class Settings(BaseSettings):
    """
    Settings for the feed and the display.

    Attributes:
        ws_url: Backend push channel (websocket)
        backfill_url: Optional REST endpoint listing active orders, fetched on
            every (re)connect to resync missed events
        auth_token: Bearer token for backfill_url
        locale: Label language ("en" or "ru")
        snapshot_interval_ms: Minimum gap between UI snapshots
        reconnect_delay_sec: First reconnect delay, doubles on each failure
        max_reconnect_delay_sec: Reconnect delay ceiling
        purge_ready: Delete orders from memory when they turn ready
        log_level: Root log level
        log_file: Log to this file instead of stderr
    """

    model_config = SettingsConfigDict(
        env_prefix="FLOOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    ws_url: str = Field(
        default="ws://localhost:3000/ws",
        description="Websocket URL of the order event stream",
    )
    backfill_url: Optional[str] = Field(
        default=None,
        description="REST URL returning the active orders (e.g. /api/orders/active)",
    )
    auth_token: Optional[str] = Field(
        default=None,
        description="Bearer token sent with the backfill request",
    )
    locale: str = Field(default="en", description="Display language")
    snapshot_interval_ms: int = Field(default=100, ge=0)
    reconnect_delay_sec: float = Field(default=1.0, gt=0)
    max_reconnect_delay_sec: float = Field(default=30.0, gt=0)
    purge_ready: bool = Field(
        default=False,
        description="Drop ready orders from memory instead of only hiding them",
    )
    log_level: str = Field(default="INFO")
    log_file: Optional[str] = Field(default=None)

    @field_validator("locale")
    @classmethod
    def validate_locale(cls, v: str) -> str:
        code = v.lower()
        if code not in LOCALES:
            raise ValueError(f"locale must be one of {sorted(LOCALES)}")
        return code

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"invalid log level: {v}")
        return level


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()
