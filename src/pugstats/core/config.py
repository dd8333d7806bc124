"""
Configuration management for pugstats.

Uses Pydantic settings for type-safe configuration with environment variable support.
All settings can be overridden via environment variables.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, computed_field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_ROLES = {
    "scout": "Scout",
    "roamer": "Roaming Soldier",
    "pocket": "Pocket Soldier",
    "demoman": "Demoman",
    "medic": "Medic",
}

# Two captains alternating over ten picks, preceded by faction selection
DEFAULT_DRAFT_ORDER = ["factionSelect", "factionSelect"] + ["playerPick"] * 10

DRAFT_CHOICE_TYPES = {"factionSelect", "playerPick"}

DEFAULT_RESTRICTION_DURATIONS = ["1 day", "1 week", "1 month", "3 months", "1 year"]


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    List and dict settings are read as JSON from the environment, e.g.
    ROLES='{"scout": "Scout", "medic": "Medic"}'.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    # ==========================================================================
    # Application Metadata
    # ==========================================================================
    app_name: str = "pugstats"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = Field(default="development", description="development, staging, production")

    # ==========================================================================
    # Database Configuration
    # ==========================================================================
    database_url: Optional[str] = Field(
        default=None,
        description="PostgreSQL connection string; in-memory store when unset",
    )
    database_pool_min_size: int = Field(default=2, ge=1, le=50)
    database_pool_size: int = Field(default=10, ge=1, le=50)
    fixture_path: Optional[str] = Field(
        default=None,
        description="JSON fixture loaded into the in-memory store",
    )

    # ==========================================================================
    # API Configuration
    # ==========================================================================
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_prefix: str = "/api/v1"

    # ==========================================================================
    # Caching Configuration
    # ==========================================================================
    redis_url: Optional[str] = Field(
        default=None,
        description="Redis connection URL (redis://host:port/db)",
    )
    cache_key_prefix: str = Field(default="pugstats:", description="Prefix for Redis keys")
    list_debounce_wait: float = Field(
        default=5.0,
        gt=0,
        description="Quiet period (seconds) before rebuilding player lists",
    )
    list_debounce_max_wait: float = Field(
        default=60.0,
        gt=0,
        description="Longest a rebuild may be deferred under continuous updates",
    )

    # ==========================================================================
    # Game / Player Configuration
    # ==========================================================================
    hide_ratings: bool = False
    roles: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_ROLES))
    draft_order: list[str] = Field(default_factory=lambda: list(DEFAULT_DRAFT_ORDER))
    restriction_durations: list[str] = Field(
        default_factory=lambda: list(DEFAULT_RESTRICTION_DURATIONS)
    )

    @field_validator("draft_order")
    @classmethod
    def validate_draft_order(cls, value: list[str]) -> list[str]:
        unknown = sorted(set(value) - DRAFT_CHOICE_TYPES)
        if unknown:
            raise ValueError(f"Unknown draft choice types: {', '.join(unknown)}")
        return value

    @model_validator(mode="after")
    def validate_debounce(self) -> "Settings":
        if self.list_debounce_max_wait < self.list_debounce_wait:
            raise ValueError("list_debounce_max_wait must be at least list_debounce_wait")
        return self

    @computed_field
    @property
    def draft_player_picks(self) -> int:
        """Number of player picks in one full draft."""
        return sum(1 for choice_type in self.draft_order if choice_type == "playerPick")


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
