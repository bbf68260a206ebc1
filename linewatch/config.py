"""
Configuration settings for Line Watch.
Uses pydantic-settings for validation and environment variable loading.

Environment variables:
    ODDS_API_KEY                 - The Odds API key (absent = snapshot-only mode)
    DATA_DIR                     - Snapshot directory (default: data)
    CACHE_TTL_SECONDS            - Live query cache TTL (default: 300)
    LOG_LEVEL                    - DEBUG|INFO|WARNING|ERROR
    ODDS_API__TIMEOUT_SECONDS    - Upstream request timeout
    DETECTION__STEAM_THRESHOLD   - Steam move threshold in points
"""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class OddsAPISettings(BaseModel):
    """The Odds API configuration."""

    base_url: str = "https://api.the-odds-api.com/v4"

    # Books in priority order: the first one quoting a market wins
    bookmakers: list[str] = Field(default_factory=lambda: [
        "draftkings",
        "fanduel",
        "betmgm",
    ])

    markets: list[str] = Field(default_factory=lambda: [
        "spreads",
        "totals",
        "h2h",
    ])

    regions: list[str] = Field(default_factory=lambda: ["us"])

    # Each request is bounded and never retried
    timeout_seconds: float = 10.0


class DetectionSettings(BaseModel):
    """Sharp-action thresholds. Fixed policy values, overridable."""

    public_majority_pct: float = 55.0   # Public side must exceed this for RLM
    steam_threshold: float = 1.5        # Points moved between captures
    display_threshold: float = 0.5      # Smallest move worth showing

    # Derive the over/under estimate from (event id, label) instead of per call
    freeze_total_estimate: bool = False


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    odds_api_key: str = Field(default="", description="The Odds API key")

    # Category -> provider sport key
    categories: dict[str, str] = Field(default_factory=lambda: {
        "nba": "basketball_nba",
        "nhl": "icehockey_nhl",
        "cbb": "basketball_ncaab",
    })

    data_dir: Path = Path("data")
    cache_ttl_seconds: float = 300.0
    log_level: str = "INFO"

    odds_api: OddsAPISettings = Field(default_factory=OddsAPISettings)
    detection: DetectionSettings = Field(default_factory=DetectionSettings)

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.upper()

    @property
    def has_credentials(self) -> bool:
        """Live data needs an upstream API key."""
        return bool(self.odds_api_key)


# Singleton instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get settings singleton."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """Reload settings from environment."""
    global _settings
    _settings = Settings()
    return _settings
