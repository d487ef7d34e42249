"""
Application configuration for InstaNotes
Central place for paths, flags, and external service settings
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

APP_NAME = "InstaNotes"
APP_VERSION = "0.3.0"

# Directory holding the backend modules
BASE_DIR = Path(__file__).resolve().parent

DEFAULT_SYSTEM_PROMPT = "Vat de tekst kort samen in Nederlandse bullets."

_TRUTHY = {"1", "true", "yes", "on"}


class Settings(BaseSettings):
    """Environment driven settings; every field maps to the upper-case variable of the same name."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"

    # External language model
    disable_openai: bool = False
    openai_api_key: Optional[SecretStr] = None
    openai_model: str = "gpt-4o-mini"
    openai_base_url: str = "https://api.openai.com/v1"
    openai_timeout: float = 30.0
    openai_max_tokens: int = 300
    openai_temperature: float = 0.2
    openai_system_prompt: str = DEFAULT_SYSTEM_PROMPT
    openai_input_cost_per_1k: float = 0.00015
    openai_output_cost_per_1k: float = 0.0006
    fallback_on_error: bool = False

    # Local fallback
    extractive_max_sentences: int = Field(default=3, ge=1)

    # Identity provider
    require_auth: bool = False
    auth_user_url: Optional[str] = None
    auth_api_key: Optional[SecretStr] = None
    auth_timeout: float = 10.0

    # Quota
    rate_limit: int = Field(default=20, ge=1)
    rate_limit_window_seconds: float = Field(default=60.0, gt=0)

    # Request size
    max_body_bytes: int = 200_000

    db_path: Path = BASE_DIR / "instanotes.db"

    @field_validator("disable_openai", "fallback_on_error", "require_auth", mode="before")
    @classmethod
    def _parse_flag(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower() in _TRUTHY
        return value

    @field_validator("openai_api_key", "auth_api_key", "auth_user_url", mode="before")
    @classmethod
    def _blank_is_unset(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def use_openai(self) -> bool:
        return not self.disable_openai and self.openai_api_key is not None


@lru_cache
def get_settings() -> Settings:
    return Settings()
