"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    app_env: Literal["development", "production", "test"] = "development"
    app_name: str = "Moodreel"
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:8000"]

    # Database (movie catalog)
    database_url: str = "postgresql://localhost:5432/moodreel"

    # LLM provider (OpenAI-compatible chat completions endpoint)
    llm_api_url: str = "https://api.deepinfra.com/v1/openai/chat/completions"
    llm_api_key: str = ""
    llm_model: str = "meta-llama/Llama-3.3-70B-Instruct-Turbo"

    # Client
    api_base_url: str = "http://localhost:8000"
    max_concurrent_lookups: int | None = None

    @field_validator("max_concurrent_lookups")
    @classmethod
    def validate_max_concurrent_lookups(cls, v: int | None) -> int | None:
        """Zero or negative means no bound."""
        if v is not None and v <= 0:
            return None
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env == "production"

    @property
    def database_url_async(self) -> str:
        """Get async database URL (postgresql+asyncpg)."""
        url = str(self.database_url)
        if url.startswith("postgresql://"):
            return url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return url


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
