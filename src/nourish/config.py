"""
Nourish - Configuration and settings.

All settings come from the environment (or a local .env file).
Nothing is read at import time; use `get_settings()` or the lazy `settings` proxy.
"""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings shared by the CLI, the web app and the agent loop."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Model provider (OpenAI-compatible)
    openai_api_key: str | None = None
    openai_base_url: str | None = None
    model_name: str = "gpt-4.1-mini"
    model_temperature: float = 0.4

    # Supabase
    supabase_url: str | None = None
    supabase_key: str | None = None
    image_bucket: str = "meal-images"

    # Agent loop
    agent_max_steps: int = 10
    tool_timeout_seconds: float = 15.0

    # Meal analysis from text (structured output); model defaults to model_name
    analysis_model_name: str | None = None
    meal_analysis_rate_limit: str = "20/minute"

    # Application
    nourish_env: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # NOURISH_LOG_PROMPTS=1 - dump model calls to prompt_logs/ (dev only)
    nourish_log_prompts: bool = False
    # NOURISH_LOG_SESSIONS=1 - JSONL event log per agent session
    nourish_log_sessions: bool = False

    # Dev user for the CLI
    dev_user_id: str = "00000000-0000-0000-0000-000000000001"

    # Web sessions
    session_expire_hours: int = 168

    @property
    def is_production(self) -> bool:
        return self.nourish_env == "production"

    @property
    def has_supabase(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


class _SettingsProxy:
    """Lazy proxy for settings to avoid loading .env at import time."""

    _instance: Settings | None = None

    def __getattr__(self, name: str):
        if self._instance is None:
            self._instance = get_settings()
        return getattr(self._instance, name)


settings = _SettingsProxy()
