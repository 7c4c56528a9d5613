"""
QuitFlow - Configuration and settings.

Everything has a default so the package imports and tests run without a
.env file. Override any field with an environment variable of the same name
(upper-case), e.g. API_BASE_URL=https://api.example.com.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    quitflow_env: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Account registry
    api_base_url: str = "http://localhost:3000"
    api_timeout_seconds: float = 10.0
    habit_record_path: str = "/quit-attempts"

    # Draft persistence
    draft_dir: Path = Path(".quitflow")
    draft_key: str = "onboarding-progress"

    # Funnel pacing
    auto_advance_ms: int = 300
    offer_countdown_seconds: int = 300
    offer_seats_start: int = 6
    scarcity_min_delay_ms: int = 1000
    scarcity_max_delay_ms: int = 5000

    # Funnel event log
    # FUNNEL_LOG_ENABLED=1 - write JSONL step/gateway events
    funnel_log_enabled: bool = False
    funnel_log_dir: Path = Path("funnel_logs")

    @property
    def is_development(self) -> bool:
        return self.quitflow_env == "development"

    @property
    def is_production(self) -> bool:
        return self.quitflow_env == "production"

    @property
    def scarcity_delay_ms(self) -> tuple[int, int]:
        return (self.scarcity_min_delay_ms, self.scarcity_max_delay_ms)


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
