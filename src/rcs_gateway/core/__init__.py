"""Core building blocks for the RCS gateway: configuration, domain, errors, logging."""

from . import config, domain, errors, logging
from .config import AppSettings, RbmSettings, TelemetrySettings
from .domain import (
    AccessToken,
    ContentKind,
    MessageDialect,
    OutboundMessage,
    SendResult,
    TemplateType,
    WebhookEvent,
    WebhookEventType,
)
from .errors import (
    AuthenticationError,
    GatewayError,
    MalformedUpstreamResponseError,
    UpstreamNetworkError,
    UpstreamRejectedError,
    UpstreamTimeoutError,
)
from .logging import configure_logging, get_logger

__all__ = [
    "config",
    "domain",
    "errors",
    "logging",
    "configure_logging",
    "get_logger",
    "AppSettings",
    "RbmSettings",
    "TelemetrySettings",
    "AccessToken",
    "ContentKind",
    "MessageDialect",
    "OutboundMessage",
    "SendResult",
    "TemplateType",
    "WebhookEvent",
    "WebhookEventType",
    "GatewayError",
    "AuthenticationError",
    "UpstreamRejectedError",
    "UpstreamTimeoutError",
    "UpstreamNetworkError",
    "MalformedUpstreamResponseError",
]
