# hr_session/config.py — Pydantic settings (env vars)

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Supabase
    supabase_url: str
    supabase_anon_key: str
    supabase_service_key: str | None = None

    # Session lifecycle policy
    session_fetch_timeout_seconds: float = 5.0
    role_lookup_timeout_seconds: float = 5.0
    initialization_timeout_seconds: float = 8.0
    idle_timeout_seconds: float = 300.0
    functions_timeout_seconds: float = 20.0

    # Impersonation
    impersonation_backup_key: str = "admin_backup_session"
    impersonation_redirect_to: str = "http://localhost:5173"
    default_impersonation_justification: str = "Support access"

    # Privileged functions service
    cors_allow_origins: list[str] = ["*"]
    audit_lookback_days: int = 30

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    @field_validator(
        "session_fetch_timeout_seconds",
        "role_lookup_timeout_seconds",
        "initialization_timeout_seconds",
        "idle_timeout_seconds",
        "functions_timeout_seconds",
    )
    @classmethod
    def _validate_positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("timeouts must be greater than zero")
        return value

    @field_validator("impersonation_backup_key")
    @classmethod
    def _validate_backup_key(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("IMPERSONATION_BACKUP_KEY must be set and non-empty")
        return cleaned


@lru_cache
def get_settings() -> Settings:
    return Settings()
