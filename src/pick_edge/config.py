"""Application configuration via pydantic-settings."""

from __future__ import annotations

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="PICK_EDGE_",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Root of the file-backed providers (games/, matchups/, ratings/, angles/)
    data_dir: Path = Path("data")

    # SQLite database path for generated picks
    db_path: Path = Path.home() / ".pick-edge" / "picks.db"

    # Optional TOML file overriding the built-in engine constants
    engine_config_path: Path | None = None

    # HTTP rating feed (empty = use the file-backed ratings)
    ratings_api_url: str = ""
    ratings_api_key: str = ""

    # HTTP request timeout seconds
    http_timeout: float = 30.0

    # Rating cache TTLs
    ratings_ttl_seconds: float = 6 * 60 * 60
    predictions_ttl_seconds: float = 2 * 60 * 60

    # Lines older than this are counted and warned about, never blocked
    stale_odds_hours: float = 6.0

    # Matchups scored concurrently per batch
    batch_size: int = 4

    # Games starting within this many minutes (or already started) are skipped
    min_minutes_before_start: float = 0.0

    @field_validator("batch_size")
    @classmethod
    def _batch_size_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"batch_size must be >= 1, got {v}")
        return v

    @field_validator(
        "stale_odds_hours", "ratings_ttl_seconds", "predictions_ttl_seconds", "min_minutes_before_start",
    )
    @classmethod
    def _non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"value must be >= 0, got {v}")
        return v


def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
