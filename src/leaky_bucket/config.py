"""Application configuration primitives."""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[2]
load_dotenv(BASE_DIR / ".env")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="LEAKY_BUCKET_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    capacity: int = Field(default=60)
    timeframe_seconds: float = Field(default=60.0)
    clock: Literal["system", "monotonic"] = Field(default="system")
    min_wait_seconds: float = Field(default=0.001, ge=0)
    log_level: str = Field(default="INFO")


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(level=(level or get_settings().log_level).upper())


settings = get_settings()

__all__ = ["Settings", "configure_logging", "get_settings", "settings"]
