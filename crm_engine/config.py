"""Application configuration using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    api_host: str = "0.0.0.0"
    api_port: int = 8002
    frontend_origin: str = "http://localhost:5173"

    # CRM backend (owns customers, segments, campaigns)
    backend_api_url: str = Field(default="http://localhost:5000")
    backend_timeout_seconds: float = Field(default=10.0, gt=0)

    # JWT / Auth (shared secret with the CRM backend)
    jwt_secret_key: str = "CHANGE-ME-IN-PRODUCTION"
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 30

    # Selection engine
    preview_sample_size: int = Field(default=5, ge=0)
    directory_page_size: int = Field(default=10, gt=0)

    # Observability
    log_level: str = "INFO"

    @field_validator("backend_api_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Paths are joined onto the base URL, so drop any trailing slash."""
        return v.rstrip("/") if isinstance(v, str) else v

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
