"""Per-request correlation, access logging and Prometheus metrics for the gateway."""

from __future__ import annotations

import time
import uuid
from collections.abc import Awaitable, Callable
from contextvars import ContextVar

import structlog
from fastapi import Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from .logging import get_logger

REQUEST_ID_HEADER = "X-Request-ID"
MESSAGE_ID_HEADER = "X-Message-Id"

_request_id: ContextVar[str | None] = ContextVar("rcs_request_id", default=None)

# Buckets stretch past the default upstream timeout so slow platform calls stay visible.
_LATENCY_BUCKETS = (0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 15.0)

HTTP_REQUESTS = Counter(
    "rcs_gateway_http_requests_total",
    "Requests served by the gateway, by route and status.",
    ["service", "method", "route", "status_code"],
)

HTTP_LATENCY = Histogram(
    "rcs_gateway_http_request_duration_seconds",
    "Time spent serving gateway requests, upstream calls included.",
    ["service", "method", "route"],
    buckets=_LATENCY_BUCKETS,
)


def get_correlation_id() -> str | None:
    """Return the request id of the request being served, if any."""

    return _request_id.get()


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id, log its outcome and count it.

    The id is taken from ``X-Request-ID`` when the caller supplies one and is
    echoed back on the response. When a send route answers with an
    ``X-Message-Id`` the access log carries it too, which ties the internal
    request to later status webhooks for that message.
    """

    def __init__(self, app: ASGIApp, *, service_name: str) -> None:
        super().__init__(app)
        self._service_name = service_name
        self._logger = get_logger(service_name)

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        reset_token = _request_id.set(request_id)
        structlog.contextvars.bind_contextvars(correlation_id=request_id)
        started = time.perf_counter()

        try:
            try:
                response = await call_next(request)
            except Exception:
                elapsed = time.perf_counter() - started
                self._record(request, 500, elapsed)
                self._logger.exception(
                    "http.request.error",
                    method=request.method,
                    route=_route_template(request),
                    duration_ms=_millis(elapsed),
                )
                raise

            elapsed = time.perf_counter() - started
            self._record(request, response.status_code, elapsed)
            response.headers[REQUEST_ID_HEADER] = request_id

            fields = {
                "method": request.method,
                "route": _route_template(request),
                "status_code": response.status_code,
                "duration_ms": _millis(elapsed),
            }
            message_id = response.headers.get(MESSAGE_ID_HEADER)
            if message_id:
                fields["message_id"] = message_id
            if response.status_code >= 500:
                self._logger.warning("http.request.completed", **fields)
            else:
                self._logger.info("http.request.completed", **fields)
            return response
        finally:
            structlog.contextvars.unbind_contextvars("correlation_id")
            _request_id.reset(reset_token)

    def _record(self, request: Request, status_code: int, elapsed: float) -> None:
        route = _route_template(request)
        HTTP_REQUESTS.labels(self._service_name, request.method, route, str(status_code)).inc()
        HTTP_LATENCY.labels(self._service_name, request.method, route).observe(elapsed)


def metrics_response() -> Response:
    """Render every registered Prometheus collector in the text exposition format."""

    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


def _millis(seconds: float) -> float:
    return round(seconds * 1000, 2)


def _route_template(request: Request) -> str:
    # /api/templates/{template_id} rather than one series per template id.
    route = request.scope.get("route")
    path = getattr(route, "path", None)
    return path or request.url.path
