"""
Flow Fam - Configuration and settings.

FlowFamSettings holds the Supabase project, the backend URL and the
onboarding router's timing budgets.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class FlowFamSettings(BaseSettings):
    """
    Application settings.

    Loaded from the environment and an optional .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Supabase (auth only - family data lives behind backend_url)
    supabase_url: str
    supabase_anon_key: str

    # Family/profile REST API. Empty = not deployed yet.
    backend_url: str = ""

    # Application
    flowfam_env: Literal["development", "staging", "production"] = "development"

    # Onboarding router budgets (seconds)
    routing_timeout_seconds: float = 2.5  # Whole reconciliation
    session_timeout_seconds: float = 2.0  # Auth session check
    remote_timeout_seconds: float = 1.5  # Family members fetch during routing
    http_timeout_seconds: float = 10.0  # Form submissions

    # Local key-value store
    store_path: str = "~/.flowfam/store.json"

    @property
    def backend_configured(self) -> bool:
        return bool(self.backend_url)

    @property
    def resolved_store_path(self) -> Path:
        return Path(self.store_path).expanduser()


@lru_cache
def get_settings() -> FlowFamSettings:
    """Get cached settings instance."""
    return FlowFamSettings()

