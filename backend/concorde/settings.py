"""Settings for the Concorde backend."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_field(default, *env_names: str):
    if env_names:
        alias = AliasChoices(*env_names) if len(env_names) > 1 else env_names[0]
        return Field(default=default, validation_alias=alias)
    return Field(default=default)


class Settings(BaseSettings):
    environment: str = _env_field("production", "ENV", "APP_ENV", "ENVIRONMENT")
    service_name: str = _env_field("concorde-api", "SERVICE_NAME")
    git_commit: str = _env_field("unknown", "GIT_COMMIT", "COMMIT_SHA", "SOURCE_VERSION")
    secret_key: str = _env_field("dev-insecure-secret", "SECRET_KEY", "JWT_PRIVATE_KEY")
    access_ttl_minutes: int = _env_field(60 * 24 * 7, "ACCESS_TTL_MINUTES")

    # Document store (PocketBase in production, in-process fake for dev/tests)
    store_backend: str = _env_field("memory", "STORE_BACKEND")
    store_url: str = _env_field("http://127.0.0.1:8090", "STORE_URL", "POCKETBASE_URL")
    store_admin_token: Optional[str] = _env_field(None, "STORE_ADMIN_TOKEN")
    store_timeout_seconds: float = _env_field(5.0, "STORE_TIMEOUT_SECONDS")
    store_page_size: int = _env_field(200, "STORE_PAGE_SIZE")

    # Relationship engines
    union_update_attempts: int = _env_field(5, "UNION_UPDATE_ATTEMPTS")
    join_requests_max_limit: int = _env_field(100, "JOIN_REQUESTS_MAX_LIMIT")

    obs_enabled: bool = _env_field(True, "OBS_ENABLED")
    obs_metrics_public: bool = _env_field(False, "OBS_METRICS_PUBLIC")
    obs_log_level: str = _env_field("INFO", "LOG_LEVEL")
    obs_log_sampling_rate_info: float = _env_field(1.0, "LOG_SAMPLING_RATE_INFO")
    obs_admin_token: Optional[str] = _env_field(None, "OBS_ADMIN_TOKEN")

    cors_allow_origins: Any = _env_field(
        ("https://concorde.netlify.app", "http://localhost:5173"),
        "CORS_ALLOW_ORIGINS",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment helpers
    def is_dev(self) -> bool:
        return self.environment.lower() in ("dev", "development", "test")

    @field_validator("store_backend", mode="before")
    def _normalise_backend(cls, value):  # type: ignore[override]
        text = str(value or "memory").strip().lower()
        if text not in ("memory", "pocketbase"):
            raise ValueError(f"unsupported store backend: {text}")
        return text

    @field_validator("cors_allow_origins", mode="before")
    def _split_cors(cls, value):  # type: ignore[override]
        if value in (None, ""):
            return ()
        if isinstance(value, str):
            return tuple(part.strip() for part in value.split(",") if part.strip())
        if isinstance(value, (list, tuple, set)):
            return tuple(str(item).strip() for item in value if str(item).strip())
        return ()


settings = Settings()
settings.obs_log_level = settings.obs_log_level.upper()
