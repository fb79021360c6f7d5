"""Application configuration using Pydantic Settings.

Configuration is read from environment variables.

Optionally, point `ENV_FILE` at a local env file (for development). When
`ENV_FILE` is unset or empty, only the process environment is used.
"""

import os
import re
from enum import Enum

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppEnvironment(str, Enum):
    """Application environment values."""

    LOCAL = "local"
    TEST = "test"
    PROD = "prod"


class Settings(BaseSettings):
    """
    Application settings with type validation.

    Configuration is loaded from environment variables, with support
    for an opt-in env file in development.
    """

    model_config = SettingsConfigDict(
        env_file=os.getenv("ENV_FILE") or None, env_prefix="", extra="ignore"
    )

    # Application
    app_env: AppEnvironment = AppEnvironment.LOCAL
    app_name: str = "graphql-normalize"
    app_log_level: str = "INFO"
    app_region: str = "local"

    # Observability
    observability_enabled: bool = True
    observability_structured_logs: bool = True
    observability_request_id_header: str = "X-Request-ID"

    # OpenTelemetry Configuration
    otel_enabled: bool = False
    otel_service_name: str = "graphql-normalize"
    otel_exporter_otlp_endpoint: str = "http://localhost:4317"
    otel_exporter_otlp_headers: str | None = None
    otel_traces_sampler: str = "parent_trace_always"
    otel_traces_sampler_arg: float = 1.0

    # Token protecting the /metrics endpoint
    metrics_token: str | None = None

    # CORS Configuration
    cors_origins: str = "http://localhost:3000,http://localhost:5173"

    # Request limits
    max_request_size_mb: int = 1
    max_query_length: int = 100_000

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins string into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @field_validator("app_env", mode="before")
    @classmethod
    def validate_app_env(cls, v: str | AppEnvironment) -> AppEnvironment:
        """Validate and parse app_env to AppEnvironment enum."""
        if isinstance(v, AppEnvironment):
            return v
        try:
            return AppEnvironment(v.lower())
        except ValueError:
            raise ValueError(
                f"app_env must be one of {[e.value for e in AppEnvironment]}, got '{v}'"
            )

    @field_validator("app_region")
    @classmethod
    def validate_app_region(cls, v: str) -> str:
        """Normalize app_region to uppercase and check its format."""
        if not v or not v.strip():
            raise ValueError("app_region must be set")
        region = v.strip().upper()
        if not re.match(r"^[A-Z0-9][A-Z0-9_-]{0,19}$", region):
            raise ValueError(
                "app_region must be 1-20 alphanumeric characters "
                f"(hyphens/underscores allowed), got '{v}'"
            )
        return region

    @field_validator("max_query_length", "max_request_size_mb")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Request limits must be positive."""
        if v <= 0:
            raise ValueError("request limits must be greater than zero")
        return v

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """
        Validate production-specific settings.

        These checks prevent insecure configurations from being deployed to production.
        """
        if self.app_env == AppEnvironment.PROD:
            if not self.metrics_token or len(self.metrics_token) < 16:
                raise ValueError(
                    "METRICS_TOKEN must be set and at least 16 characters in production"
                )

            for origin in self.cors_origins_list:
                if "localhost" in origin or "127.0.0.1" in origin:
                    raise ValueError(
                        f"CORS origins must not contain localhost in production: {origin}"
                    )

        return self


settings = Settings()
