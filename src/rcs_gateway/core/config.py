"""Configuration loaders for the RCS gateway.

Leverages pydantic-settings to hydrate runtime configuration from environment
variables, an optional ``.env`` file, or default values. The upstream platform
credentials accept both the ``VI_RBM_`` prefixed names and the bare names used
by older deployments (``CLIENT_ID``, ``BOT_ID``...).
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .domain import MessageDialect

REQUIRED_RBM_FIELDS = ("client_id", "client_secret", "bot_id")


class BaseAppSettings(BaseSettings):
    """Base settings that looks at environment variables and an optional .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )


class RbmSettings(BaseAppSettings):
    """Connection details for the upstream RCS Business Messaging platform."""

    model_config = SettingsConfigDict(
        env_prefix="vi_rbm_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    server_root: str = "https://api.vi-rbm.com"
    auth_url: str = Field(
        default="https://auth.vi-rbm.com/oauth/token",
        validation_alias=AliasChoices("auth_url", "vi_rbm_auth_url", "vi_auth_url"),
    )
    google_api_root: str | None = None

    client_id: str = Field(
        default="",
        validation_alias=AliasChoices("client_id", "vi_rbm_client_id"),
    )
    client_secret: str = Field(
        default="",
        validation_alias=AliasChoices("client_secret", "vi_rbm_client_secret"),
    )
    bot_id: str = Field(
        default="",
        validation_alias=AliasChoices("bot_id", "vi_rbm_bot_id"),
    )
    webhook_secret: str | None = Field(
        default=None,
        validation_alias=AliasChoices("webhook_secret", "vi_rbm_webhook_secret"),
    )
    webhook_signature_header: str = "x-goog-signature"

    default_dialect: MessageDialect = MessageDialect.GOOGLE
    token_margin_seconds: float = Field(default=300.0, ge=0.0)
    default_token_ttl_seconds: int = Field(default=3600, ge=1)
    request_timeout_seconds: float = Field(default=10.0, gt=0.0)

    @property
    def google_root(self) -> str:
        """Base URL for Google-style ``/phones/{msisdn}/agentMessages`` calls."""

        return (self.google_api_root or self.server_root).rstrip("/")

    @property
    def gsma_messages_url(self) -> str:
        return f"{self.server_root.rstrip('/')}/messaging/v1/bots/{self.bot_id}/messages"

    @property
    def templates_url(self) -> str:
        return (
            f"{self.server_root.rstrip('/')}/directory/secure/api/v1/bots/"
            f"{self.bot_id}/templates"
        )

    @property
    def upload_url(self) -> str:
        return f"{self.server_root.rstrip('/')}/rcs/upload/v1/files"

    def missing_credentials(self) -> list[str]:
        """Return the names of required credentials that are not configured."""

        return [name for name in REQUIRED_RBM_FIELDS if not getattr(self, name)]


class TelemetrySettings(BaseAppSettings):
    """Shared telemetry configuration."""

    model_config = SettingsConfigDict(
        env_prefix="otel_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    exporter_endpoint: str | None = None
    exporter_headers: str | None = None


class AppSettings(BaseAppSettings):
    """Top level settings object used by the gateway service."""

    app_version: str = "0.1.0"
    environment: str = Field(
        default="development",
        validation_alias=AliasChoices("environment", "app_env", "node_env"),
    )
    host: str = "0.0.0.0"
    port: int = Field(default=3000, ge=1, le=65535)
    log_level: str = "INFO"
    internal_api_keys: str | None = None

    rbm: RbmSettings = Field(default_factory=RbmSettings)
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() in {"production", "prod"}

    @property
    def api_keys(self) -> list[str]:
        """Internal API keys parsed from the comma separated setting."""

        if not self.internal_api_keys:
            return []
        return [key.strip() for key in self.internal_api_keys.split(",") if key.strip()]

    @classmethod
    def load(cls, **kwargs: Any) -> AppSettings:
        """Helper factory that mirrors BaseSettings semantics."""

        return cls(**kwargs)
