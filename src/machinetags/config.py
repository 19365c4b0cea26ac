"""
Machinetags Configuration Module.

Handles application settings, feature flags, and tagging defaults.
Uses pydantic-settings for validation and type safety.

Tagging defaults are only defaults: every parse and query call receives
its options explicitly, there is no per-model mutable state.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from machinetags.core.finder import FinderOptions, TaggableSchema
from machinetags.core.tag_list import TagListOptions


class FeatureFlags(BaseSettings):
    """Feature flags for enabling/disabling routers."""

    model_config = SettingsConfigDict(env_prefix="FEATURE_")

    tags: bool = True
    search: bool = True
    metrics: bool = True

    def to_dict(self) -> dict[str, bool]:
        """Return feature flags as dictionary for health endpoint."""
        return {
            "tags": self.tags,
            "search": self.search,
            "metrics": self.metrics,
        }


class TaggingSettings(BaseSettings):
    """Default tag parsing and matching behaviour."""

    model_config = SettingsConfigDict(env_prefix="TAGGING_")

    quick_mode: bool = Field(default=False, description="Parse tag input with the quick mode grammar")
    no_duplicates: bool = Field(default=True, description="Drop repeated tags from tag lists")
    match_all: bool = Field(default=False, description="Require every queried tag instead of any")

    def tag_list_options(self) -> TagListOptions:
        return TagListOptions(quick_mode=self.quick_mode, no_duplicates=self.no_duplicates)

    def finder_options(self) -> FinderOptions:
        return FinderOptions(match_all=self.match_all)


class StoreSettings(BaseSettings):
    """SQLite tag store configuration."""

    model_config = SettingsConfigDict(env_prefix="STORE_")

    database_path: str = Field(default="machinetags.db", description="SQLite file, or :memory:")
    taggable_table: str = Field(default="records", description="Table holding taggable records")
    taggable_type: str = Field(default="Record", description="Type name stored on each tagging")
    primary_key: str = Field(default="id")
    tags_table: str = Field(default="tags")
    taggings_table: str = Field(default="taggings")

    def taggable_schema(self) -> TaggableSchema:
        return TaggableSchema(
            table_name=self.taggable_table,
            primary_key=self.primary_key,
            taggable_type=self.taggable_type,
            tags_table=self.tags_table,
            taggings_table=self.taggings_table,
        )


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_env: Literal["development", "staging", "production"] = "development"
    app_debug: bool = False
    app_log_level: str = "INFO"
    app_host: str = "127.0.0.1"
    app_port: int = 8000

    # Nested settings
    features: FeatureFlags = Field(default_factory=FeatureFlags)
    tagging: TaggingSettings = Field(default_factory=TaggingSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
