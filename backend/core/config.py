"""Application settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_JWT_SECRET = "change-me-in-production"


class Settings(BaseSettings):
    """Settings loaded from environment variables (and an optional .env file)."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_env: str = Field(default="local")
    log_level: str = Field(default="INFO")
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])

    database_url: str = Field(default="sqlite+aiosqlite:///./chirp.db")

    jwt_secret: str = Field(default=DEFAULT_JWT_SECRET)
    jwt_algorithm: str = Field(default="HS256")
    access_token_expire_minutes: int = Field(default=60)
    remember_token_expire_minutes: int = Field(default=60 * 24 * 30)
    allow_insecure_http_cookies: bool = Field(default=False)
    password_reset_expire_minutes: int = Field(default=120)
    login_path: str = Field(default="/login")

    # Shared by every paginated listing (users, posts, feed, follow graph).
    page_size: int = Field(default=30, ge=1, le=100)

    minio_endpoint: str = Field(default="localhost:9000")
    minio_access_key: str = Field(default="minioadmin")
    minio_secret_key: str = Field(default="minioadmin")
    minio_bucket: str = Field(default="chirp-media")
    minio_secure: bool = Field(default=False)
    upload_max_bytes: int = Field(default=5 * 1024 * 1024)

    redis_url: str = Field(default="redis://localhost:6379/0")
    rate_limit_requests: int = Field(default=20)
    rate_limit_window_seconds: int = Field(default=60)

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        if self.is_production and self.jwt_secret == DEFAULT_JWT_SECRET:  # noqa: S105
            raise ValueError("JWT_SECRET must be changed in production")
        return self

    @property
    def is_production(self) -> bool:
        return self.app_env.strip().lower() == "production"


@lru_cache
def get_settings() -> Settings:
    """Return the cached settings instance."""
    return Settings()


settings = get_settings()
