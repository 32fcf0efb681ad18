"""Configuration via pydantic-settings."""

from __future__ import annotations

from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global settings."""

    model_config = SettingsConfigDict(
        env_prefix="POLYMARKET_EV_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── The Odds API ────────────────────────────────────────────────────────
    odds_api_key: str = Field(default="", description="The Odds API key")
    odds_api_base_url: str = Field(default="https://api.the-odds-api.com/v4")
    odds_api_requests_per_second: float = Field(default=1.0)
    odds_api_regions: str = Field(default="us", description="Comma-separated bookmaker regions")
    odds_cache_ttl_seconds: float = Field(default=300.0, description="Seconds to reuse a non-empty odds response")

    # ── Polymarket ──────────────────────────────────────────────────────────
    polymarket_base_url: str = Field(default="https://gamma-api.polymarket.com")
    polymarket_requests_per_second: float = Field(default=5.0)
    polymarket_event_limit: int = Field(default=100, description="Events fetched per sport tag")

    # ── Matching ────────────────────────────────────────────────────────────
    reference_stake: float = Field(default=100.0, gt=0, description="Stake EV is quoted for")
    min_price_cents: float = Field(default=1.0, description="Polymarket prices below this are noise")
    include_unmatched: bool = Field(default=False, description="Emit contracts without a sportsbook line")
    ev_only: bool = Field(default=True, description="Hide sportsbook-backed entries with EV% <= 0")
    alias_file: Optional[str] = Field(default=None, description="Extra alias YAML merged into the built-in tables")
    fuzzy_match_threshold: float = Field(default=0.75, description="Similarity floor for alias suggestions")
    default_sport: str = Field(default="nba", description="Default sport for scan")

    # ── Logging ─────────────────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: Literal["console", "json"] = Field(default="console")

    # ── Helpers ─────────────────────────────────────────────────────────────

    @property
    def odds_api_configured(self) -> bool:
        return bool(self.odds_api_key)

    @property
    def alias_path(self) -> Optional[Path]:
        return Path(self.alias_file) if self.alias_file else None


def get_settings(**overrides) -> Settings:  # type: ignore
    """Factory with optional overrides."""
    return Settings(**overrides)
