"""Application configuration — loaded from environment variables."""

from __future__ import annotations

from functools import lru_cache

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration loaded from env vars (or ``.env`` file)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    openai_api_key: SecretStr
    openai_outline_model: str = "gpt-4o-mini"
    openai_chapter_model: str = "gpt-4o"
    github_token: SecretStr | None = None
    generation_timeout_s: float = 180.0
    http_timeout_s: float = 30.0
    max_tree_paths: int = 2_000
    max_readme_chars: int = 10_000
    max_file_chars: int = 20_000
    max_concurrent_fetches: int = 10
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the singleton application settings (cached after first call)."""
    return Settings()  # type: ignore[call-arg]
