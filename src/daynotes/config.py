"""Configuration management using pydantic-settings."""

from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="DAYNOTES_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Server settings
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False

    # Data storage
    data_path: Path = Path("data")
    db_name: str = "daynotes.db"

    # Sessions
    session_secret: str | None = None  # None = random per process
    session_ttl_hours: int = 24

    # Suggestion model
    suggestion_provider: Literal["anthropic", "openai", "ollama"] = "anthropic"
    suggestion_model: str = "claude-haiku-4-5"
    openai_model: str = "gpt-4o-mini"

    # Ollama settings (local LLM)
    ollama_base_url: str = "http://127.0.0.1:11434/v1"
    ollama_model: str = "gpt-oss:20b"

    # API keys (loaded from env or .env file)
    openai_api_key: str | None = None
    anthropic_api_key: str | None = None

    def missing_api_key(self) -> str | None:
        """Name of the env var the configured provider needs but lacks, if any."""
        if self.suggestion_provider == "anthropic" and not self.anthropic_api_key:
            return "DAYNOTES_ANTHROPIC_API_KEY"
        if self.suggestion_provider == "openai" and not self.openai_api_key:
            return "DAYNOTES_OPENAI_API_KEY"
        return None


def get_settings() -> Settings:
    """Get application settings instance."""
    return Settings()
