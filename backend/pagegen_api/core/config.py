"""Configuration and settings"""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application settings from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # OpenAI API - the only credential; absence triggers the fallback spec
    openai_api_key: str = Field(default="")
    openai_model: str = Field(default="gpt-4o")
    openai_base_url: Optional[str] = Field(default=None)
    openai_timeout_seconds: float = Field(default=120.0)

    # Screenshot download
    image_fetch_timeout_seconds: float = Field(default=15.0)
    max_image_bytes: int = Field(default=5 * 1024 * 1024)

    # Pause after each progress event so the client can read along
    progress_delay_seconds: float = Field(default=0.35, ge=0.0)

    # Server
    backend_host: str = Field(default="localhost")
    backend_port: int = Field(default=8000)

    # Frontend
    frontend_url: str = Field(default="http://localhost:3000")

    # Environment
    environment: str = Field(default="development")
    log_level: str = Field(default="INFO")

    # API Configuration
    api_title: str = "Prompt-to-Page Generator API"
    api_version: str = "0.1.0"


# Global settings instance
settings = Settings()
