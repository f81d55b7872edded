"""
Configuration management for the OMOP CDM helper.
"""

from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Helper settings with validation."""

    model_config = SettingsConfigDict(
        env_prefix="OMOPHELPER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Environment
    environment: str = Field(default="development", description="Deployment environment")
    debug: bool = Field(default=False, description="Debug mode")

    app_name: str = "omophelper"
    app_version: str = "0.1.0"

    # OMOP CDM layout
    link_column: str = Field(
        default="person_id",
        description="Column linking satellite tables to the base table"
    )
    person_table: str = Field(
        default="person",
        description="Subject dictionary table used to seed the base table"
    )
    concept_table: str = Field(
        default="concept",
        description="Concept dictionary table"
    )
    table_suffixes: List[str] = Field(
        default=["_occurrence", "_exposure"],
        description="Compound table suffixes stripped to build column prefixes"
    )

    # Remote workspace
    symbol_prefix: str = Field(
        default="dsOH",
        description="Prefix for ephemeral remote symbols"
    )
    merge_suffixes: List[str] = Field(
        default=[".x", ".y"],
        description="Suffixes used to disambiguate clashing merge columns"
    )

    # Advisories
    warn_unfiltered: bool = Field(
        default=True,
        description="Warn when table, column or concept filters are omitted"
    )

    log_level: str = Field(default="INFO")

    @field_validator("environment")
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        allowed = ["development", "staging", "production", "testing"]
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    @field_validator("log_level")
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v = v.upper()
        if v not in allowed:
            raise ValueError(f"log_level must be one of {allowed}")
        return v

    @field_validator("merge_suffixes")
    def validate_merge_suffixes(cls, v: List[str]) -> List[str]:
        """Validate merge suffixes."""
        if len(v) != 2 or v[0] == v[1]:
            raise ValueError("merge_suffixes must be two distinct suffixes")
        return v

    @field_validator("link_column", "person_table", "concept_table")
    def validate_lowercase_name(cls, v: str) -> str:
        """Table and column names are matched case-insensitively."""
        return v.lower()

    @property
    def excluded_tables(self) -> List[str]:
        """Tables that are never re-appended to the base table."""
        return [self.person_table, self.concept_table]

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development."""
        return self.environment == "development"

    @property
    def is_testing(self) -> bool:
        """Check if running in test mode."""
        return self.environment == "testing"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
