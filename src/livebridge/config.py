"""
Configuration management for the livebridge tool bridge.

This module provides a Settings class that loads configuration from environment
variables, allowing easy configuration without code changes.
"""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Session settings
    model: str = "models/gemini-2.0-flash-exp"
    response_modality: str = "audio"  # audio, text
    voice_name: str = "Kore"
    google_search: bool = True

    # Tool settings
    fetch_timeout: float = 10.0
    unknown_tool_policy: Literal["ignore", "error"] = "ignore"
    open_browser: bool = True

    # Render sink settings
    chart_surface: str = "livebridge-chart.html"

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="LIVEBRIDGE_",
        env_file=".env",
        env_file_encoding="utf-8",
    )


def get_settings() -> Settings:
    """Get the application settings instance."""
    return Settings()
