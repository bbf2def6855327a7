"""
LiveBridge Configuration Management

Centralized configuration using pydantic-settings with environment variable support.
"""

from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ══════════════════════════════════════════════════════════════
    # Application
    # ══════════════════════════════════════════════════════════════
    app_name: str = "LiveBridge"
    app_env: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=1, le=65535)
    cors_origins: Annotated[list[str], NoDecode] = ["*"]

    # Static client page served at "/"
    index_html_path: str = "index.html"

    # ══════════════════════════════════════════════════════════════
    # Google GenAI
    # ══════════════════════════════════════════════════════════════
    google_api_key: str = ""
    google_use_vertexai: bool = False
    google_cloud_project: str | None = None
    google_cloud_location: str | None = None

    # ══════════════════════════════════════════════════════════════
    # Live Session
    # ══════════════════════════════════════════════════════════════
    live_model: str = "gemini-live-2.5-flash-preview"
    voice_name: str = "Zephyr"
    response_modalities: Annotated[list[Literal["AUDIO", "TEXT"]], NoDecode] = ["AUDIO"]
    enable_google_search: bool = True
    log_server_messages: bool = False

    # ══════════════════════════════════════════════════════════════
    # Client Delivery
    # ══════════════════════════════════════════════════════════════
    # Seconds a single client send may take before the client is dropped
    # from further broadcasts
    send_timeout: float = Field(default=5.0, gt=0)

    @field_validator("cors_origins", "response_modalities", mode="before")
    @classmethod
    def parse_comma_separated(cls, v: str | list[str]) -> list[str]:
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def masked_api_key(self) -> str:
        """API key safe for display."""
        if not self.google_api_key:
            return "Not set"
        return f"{self.google_api_key[:4]}…"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience export
settings = get_settings()
