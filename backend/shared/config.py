"""
Central configuration for the Live Board services.
Uses pydantic-settings for env-based config with validation.
"""
from __future__ import annotations

from enum import Enum
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    DEV = "dev"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """Root settings shared by the feed client, standings loader and API."""

    model_config = SettingsConfigDict(
        env_prefix="LB_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── General ──────────────────────────────────────────────
    environment: Environment = Environment.DEV
    log_level: str = "INFO"
    instance_id: str = Field(default="", description="Pod/container ID bound to every log entry")

    # ── Upstream feed ────────────────────────────────────────
    feed_base_url: str = "http://localhost:8080"
    snapshot_path: str = "/api/stream/board"
    live_path: str = "/api/stream/live"
    standings_path: str = "/api/stream/competitions/{competition_id}/table"
    request_timeout_s: float = 10.0
    http_max_attempts: int = Field(default=1, ge=1, description="Attempts per snapshot/standings GET")

    # ── Push channel reconnect ───────────────────────────────
    reconnect_initial_delay_s: float = 1.0
    reconnect_max_delay_s: float = 30.0
    reconnect_jitter_factor: float = 0.2

    # ── Standings ────────────────────────────────────────────
    standings_retry_delay_s: float = 1.0
    standings_max_retries: int = 2

    # ── Timeline display policy ──────────────────────────────
    timeline_exclude_kinds: list[str] = Field(
        default=["SUB", "YELLOW"],
        description="Event kind fragments hidden from the board timeline (substring match).",
    )
    timeline_require_player: bool = True
    timeline_limit: Optional[int] = Field(default=None, ge=1)

    # ── API ──────────────────────────────────────────────────
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    cors_origins: list[str] = ["*"]

    # ── Observability ────────────────────────────────────────
    metrics_enabled: bool = True
    metrics_port: int = 9090

    @field_validator("feed_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Singleton access to validated settings."""
    return Settings()
