"""Application configuration using Pydantic settings."""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support.

    Built once at process startup and handed to ``create_app``; nothing reads
    the environment after that.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Application
    app_name: str = "Weather Relay"
    app_version: str = "1.0.0"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8080

    # Upstream APIs
    meteoblue_api_key: str = Field(..., min_length=1)
    geolocation_api_url: str = "http://ip-api.com/json"
    weather_api_url: str = "https://my.meteoblue.com/packages/current"
    request_timeout: float | None = None  # seconds, None waits indefinitely

    # Logging
    log_level: Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"] = "INFO"
    log_json: bool = True

    # Metrics
    metrics_port: int | None = None

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value):
        return value.upper() if isinstance(value, str) else value
