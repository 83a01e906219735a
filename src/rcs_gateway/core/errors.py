"""Error taxonomy for failures talking to the upstream RCS platform.

Every error carries whatever diagnostics the upstream supplied (status code and
raw body) so callers can inspect them, while the HTTP surface only ever
renders ``{"error": message}``.
"""

from __future__ import annotations

from typing import Any


class GatewayError(Exception):
    """Base exception for gateway component failures."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: str | None = None,
        operation: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.body = body
        self.operation = operation

    def to_dict(self) -> dict[str, Any]:
        """JSON representation returned to internal callers."""

        return {"error": self.message}


class AuthenticationError(GatewayError):
    """Raised when the token endpoint is unreachable or rejects the credentials."""


class UpstreamRejectedError(GatewayError):
    """Raised when the platform answers with a non-2xx status."""


class UpstreamTimeoutError(GatewayError):
    """Raised when an upstream call exceeds its timeout."""


class UpstreamNetworkError(GatewayError):
    """Raised when the platform cannot be reached at the transport level."""


class MalformedUpstreamResponseError(GatewayError):
    """Raised when a successful response lacks a field the gateway relies on."""
