"""FastAPI application factory for the RCS gateway service."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from rcs_gateway.core.config import AppSettings
from rcs_gateway.core.errors import GatewayError
from rcs_gateway.core.logging import configure_logging
from rcs_gateway.core.middleware import RequestContextMiddleware, metrics_response
from rcs_gateway.core.telemetry import (
    init_tracing,
    instrument_fastapi_app,
    parse_exporter_headers,
    shutdown_tracing,
)

from .dependencies import close_upstream_client, get_settings
from .routers import messages, templates, webhooks

logger = logging.getLogger(__name__)

SERVICE_NAME = "rcs_gateway"


def create_app() -> FastAPI:
    """Create and configure the gateway FastAPI app."""

    settings = get_settings()
    configure_logging(settings.log_level)
    tracing_active = init_tracing(
        service_name=SERVICE_NAME,
        endpoint=settings.telemetry.exporter_endpoint,
        headers=parse_exporter_headers(settings.telemetry.exporter_headers),
        version=settings.app_version,
        environment=settings.environment,
    )
    if not tracing_active:
        logger.warning(
            "tracing disabled; operating without OTLP exporter",
            extra={"service_name": SERVICE_NAME},
        )
    warn_on_incomplete_config(settings)

    app = FastAPI(title="RCS Gateway", version=settings.app_version)
    instrument_fastapi_app(app)
    app.add_middleware(RequestContextMiddleware, service_name=SERVICE_NAME)
    _register_error_handlers(app)

    app.include_router(messages.router)
    app.include_router(templates.router)
    app.include_router(webhooks.router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "UP", "service": SERVICE_NAME}

    @app.get("/metrics")
    async def metrics() -> Response:
        return metrics_response()

    @app.on_event("shutdown")
    async def shutdown() -> None:
        await close_upstream_client()
        shutdown_tracing()

    return app


def warn_on_incomplete_config(settings: AppSettings) -> list[str]:
    """Log configuration gaps without refusing to start; return the warnings."""

    warnings: list[str] = []
    missing = settings.rbm.missing_credentials()
    if missing:
        warnings.append(f"missing required rbm settings: {', '.join(missing)}")
    if settings.is_production and not settings.rbm.webhook_secret:
        warnings.append("webhook signature verification disabled; no webhook secret configured")

    for message in warnings:
        logger.warning(message, extra={"environment": settings.environment})
    return warnings


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(GatewayError)
    async def gateway_error_handler(_: Request, exc: GatewayError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=exc.to_dict()
        )

    @app.exception_handler(Exception)
    async def unexpected_error_handler(_: Request, exc: Exception) -> JSONResponse:
        logger.exception("unhandled error while serving request")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": str(exc)}
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(_: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
        problems = []
        for error in exc.errors():
            location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
            problems.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "; ".join(problems) or "invalid request"},
        )
