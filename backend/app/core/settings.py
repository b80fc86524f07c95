from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, DotEnvSettingsSource, EnvSettingsSource, SettingsConfigDict


class _FallbackEnvSettingsSource(EnvSettingsSource):
    """Allow ALLOW_ORIGINS to be comma-separated instead of strict JSON."""

    def decode_complex_value(self, field_name, field, value):  # type: ignore[override]
        try:
            return super().decode_complex_value(field_name, field, value)
        except json.JSONDecodeError:
            if field_name == "allow_origins":
                return value
            raise


class _FallbackDotEnvSettingsSource(DotEnvSettingsSource):
    """Allow ALLOW_ORIGINS to be comma-separated instead of strict JSON."""

    def decode_complex_value(self, field_name, field, value):  # type: ignore[override]
        try:
            return super().decode_complex_value(field_name, field, value)
        except json.JSONDecodeError:
            if field_name == "allow_origins":
                return value
            raise


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    project_name: str = "Assignment Approval API"
    project_version: str = "1.0.0"
    environment: str = Field(
        default="development",
        description="Deployment environment name",
        validation_alias=AliasChoices("ENV", "ENVIRONMENT"),
    )
    git_sha: str | None = Field(default=None, description="Git SHA for /version")
    build_version: str | None = Field(default=None, description="Build identifier")
    log_level: str = Field(default="INFO", description="Logging level")

    # Database
    database_url: str = Field(
        default="sqlite:///./assignment_approval.db",
        description="SQLAlchemy database URL",
    )

    # Auth / JWT
    jwt_secret: str = Field(default="change_me", description="JWT signing secret")
    algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    access_token_expire_minutes: int = Field(default=24 * 60, description="Access token expiry in minutes")
    min_password_length: int = Field(default=6, description="Minimum password length for new accounts")

    # CORS
    allow_origins: List[str] = Field(
        default_factory=lambda: [
            "http://localhost",
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ]
    )

    # Storage
    uploads_dir: str = Field(
        default="./uploads",
        description="Directory for uploaded assignment files",
        validation_alias=AliasChoices("UPLOAD_DIR", "UPLOADS_DIR"),
    )
    max_upload_mb: int = Field(default=10, description="Maximum size of a single uploaded file in MB")
    bulk_upload_max_files: int = Field(default=5, description="Maximum files accepted by bulk upload")

    # Review workflow
    otp_ttl_minutes: int = Field(default=10, description="Lifetime of an approval OTP in minutes")
    otp_max_attempts: int = Field(default=5, description="Wrong codes allowed before an approval OTP is discarded")
    reject_remark_min_length: int = Field(default=10, description="Minimum feedback length when rejecting")

    # Email delivery
    email_provider: str = Field(
        default="disabled",
        description="Email provider: resend, postmark, smtp, disabled",
        validation_alias=AliasChoices("EMAIL_PROVIDER"),
    )
    email_api_key: str | None = Field(
        default=None,
        description="API key for Resend/Postmark",
        validation_alias=AliasChoices("EMAIL_API_KEY"),
    )
    email_from: str | None = Field(
        default=None,
        description="From address for outbound email",
        validation_alias=AliasChoices("EMAIL_FROM", "SMTP_FROM"),
    )

    smtp_host: str | None = Field(default=None, description="SMTP host")
    smtp_port: int = Field(default=587, description="SMTP port")
    smtp_username: str | None = Field(
        default=None,
        description="SMTP username",
        validation_alias=AliasChoices("SMTP_USERNAME", "SMTP_USER"),
    )
    smtp_password: str | None = Field(
        default=None,
        description="SMTP password",
        validation_alias=AliasChoices("SMTP_PASSWORD", "SMTP_PASS"),
    )
    smtp_use_tls: bool = Field(default=True, description="Use TLS for SMTP")

    # DB pool tuning (Postgres)
    db_pool_size: int = Field(default=5, description="Base DB connection pool size")
    db_max_overflow: int = Field(default=10, description="Additional DB connections beyond pool size")
    db_pool_timeout: int = Field(default=30, description="Seconds to wait for a DB connection")
    db_pool_recycle: int = Field(default=1800, description="Recycle DB connections after N seconds")

    @field_validator("allow_origins", mode="before")
    @classmethod
    def parse_allow_origins(cls, value: str | List[str]) -> List[str]:
        if isinstance(value, list):
            return value
        if isinstance(value, str) and value.strip():
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return [
            "http://localhost",
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ]

    @field_validator("email_provider")
    @classmethod
    def normalize_email_provider(cls, value: str) -> str:
        return (value or "disabled").strip().lower()

    def ensure_uploads_dir(self) -> Path:
        uploads_path = Path(self.uploads_dir).expanduser().resolve()
        uploads_path.mkdir(parents=True, exist_ok=True)
        return uploads_path

    @property
    def is_production(self) -> bool:
        return self.environment.lower() in ("production", "prod")

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            _FallbackEnvSettingsSource(settings_cls),
            _FallbackDotEnvSettingsSource(settings_cls),
            file_secret_settings,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
