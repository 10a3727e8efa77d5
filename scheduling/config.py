"""Runtime settings for the scheduling service."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SCHEDULING_", extra="ignore")

    app_name: str = Field(default="Production Scheduling Service")
    # IANA name; naive timestamps from clients are read in this zone
    default_timezone: str = Field(default="UTC")
    max_suggestions: int = Field(default=3, ge=0)
    seed_demo_data: bool = Field(default=False)
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")


@lru_cache
def get_settings() -> Settings:
    return Settings()
