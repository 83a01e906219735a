"""OpenTelemetry tracing for the internal API and the calls it makes upstream.

Tracing is opt-in: without an OTLP endpoint the gateway runs with the no-op
tracer. When enabled, every ``httpx`` client is instrumented, so token
exchanges, sends and template calls appear as children of the inbound request
span.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from urllib.parse import unquote

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

logger = logging.getLogger(__name__)

ENDPOINT_ENV_VARS = ("OTEL_EXPORTER_OTLP_TRACES_ENDPOINT", "OTEL_EXPORTER_OTLP_ENDPOINT")
UNTRACED_ROUTES = "health,metrics"

_provider: TracerProvider | None = None


def resolve_endpoint(endpoint: str | None) -> str | None:
    """Explicit setting first, then the standard OTLP environment variables."""

    if endpoint:
        return endpoint
    for name in ENDPOINT_ENV_VARS:
        value = os.getenv(name)
        if value:
            return value
    return None


def init_tracing(
    service_name: str,
    *,
    endpoint: str | None = None,
    headers: Mapping[str, str] | None = None,
    version: str | None = None,
    environment: str | None = None,
) -> bool:
    """Install the OTLP exporter once per process; return whether tracing is on."""

    global _provider
    if _provider is not None:
        return True

    target = resolve_endpoint(endpoint)
    if target is None:
        logger.warning(
            "distributed tracing disabled; no OTLP endpoint configured",
            extra={"service_name": service_name},
        )
        return False

    try:
        exporter = OTLPSpanExporter(endpoint=target, headers=dict(headers) if headers else None)
    except Exception:  # pragma: no cover - exporter misconfiguration
        logger.exception("could not create OTLP span exporter; tracing disabled")
        return False

    attributes = {"service.name": service_name}
    if version:
        attributes["service.version"] = version
    if environment:
        attributes["deployment.environment"] = environment

    provider = TracerProvider(resource=Resource.create(attributes))
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)
    _instrument_httpx()
    _provider = provider
    logger.info("tracing initialised", extra={"service_name": service_name, "endpoint": target})
    return True


def shutdown_tracing() -> None:
    """Flush buffered spans; called when the service stops."""

    global _provider
    if _provider is None:
        return
    _provider.shutdown()
    _provider = None


def instrument_fastapi_app(app: FastAPI) -> None:
    """Trace the app's routes, leaving out health probes and metric scrapes."""

    provider = trace.get_tracer_provider()
    FastAPIInstrumentor.instrument_app(
        app,
        tracer_provider=provider if isinstance(provider, TracerProvider) else None,
        excluded_urls=UNTRACED_ROUTES,
    )


def _instrument_httpx() -> None:
    instrumentor = HTTPXClientInstrumentor()
    if not instrumentor.is_instrumented_by_opentelemetry:
        instrumentor.instrument()


def parse_exporter_headers(header_value: str | None) -> dict[str, str] | None:
    """Parse ``OTEL_EXPORTER_HEADERS`` (``key=value`` pairs, comma separated).

    Values are percent-decoded as in ``OTEL_EXPORTER_OTLP_HEADERS``; segments
    without ``=`` are skipped with a warning.
    """

    if not header_value:
        return None

    headers: dict[str, str] = {}
    for segment in header_value.split(","):
        key, sep, value = segment.strip().partition("=")
        if not key:
            continue
        if not sep:
            logger.warning("ignoring malformed OTLP header segment", extra={"segment": key})
            continue
        headers[key.strip()] = unquote(value.strip())
    return headers or None
