"""Structured JSON logging for the gateway.

Every line on stdout is a JSON object rendered by structlog, whether it came
from a structlog logger (the HTTP middleware) or from a plain
``logging.getLogger(__name__)`` in the component modules. Stdlib records keep
their ``extra=`` fields, and both kinds carry the request's correlation id,
the active OpenTelemetry trace/span ids, and credential fields masked.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from typing import Any

import structlog
from opentelemetry.trace import get_current_span

REDACTED = "***"
SENSITIVE_KEYS = frozenset(
    {"access_token", "authorization", "client_secret", "webhook_secret", "api_key"}
)

_CONFIGURED = False


class _StdoutHandler(logging.StreamHandler):
    """Stream handler bound to whatever ``sys.stdout`` is at emit time."""

    @property
    def stream(self):  # type: ignore[override]
        return sys.stdout

    @stream.setter
    def stream(self, _value) -> None:
        pass


def _otel_enricher(
    _: Any,
    __: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    span_context = get_current_span().get_span_context()
    if span_context.is_valid:
        event_dict.setdefault("trace_id", format(span_context.trace_id, "032x"))
        event_dict.setdefault("span_id", format(span_context.span_id, "016x"))
    return event_dict


def _redact_credentials(
    _: Any,
    __: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Mask bearer tokens, client secrets and API keys before rendering."""

    for key in event_dict.keys() & SENSITIVE_KEYS:
        if event_dict[key]:
            event_dict[key] = REDACTED
    return event_dict


_SHARED_PROCESSORS: list[Any] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso", key="timestamp"),
    _otel_enricher,
]


def build_formatter() -> structlog.stdlib.ProcessorFormatter:
    """Formatter rendering structlog events and foreign stdlib records as JSON."""

    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[*_SHARED_PROCESSORS, structlog.stdlib.ExtraAdder()],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _redact_credentials,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
    )


def resolve_level(level: int | str) -> int:
    """Translate ``LOG_LEVEL`` values such as ``"debug"`` into logging levels."""

    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"unknown log level: {level}")
    return resolved


def configure_logging(level: int | str = logging.INFO) -> None:
    """Set up stdlib logging and structlog once per process."""

    global _CONFIGURED
    if _CONFIGURED:
        return

    numeric_level = resolve_level(level)
    handler = _StdoutHandler()
    handler.setFormatter(build_formatter())
    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(numeric_level)
    # httpx logs every request URL at INFO, query strings included.
    logging.getLogger("httpx").setLevel(max(numeric_level, logging.WARNING))

    structlog.configure(
        processors=[
            *_SHARED_PROCESSORS,
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _CONFIGURED = True


def get_logger(name: str | None = None, **initial_values: Any) -> Any:
    """Return a structlog logger, bound to ``name`` and any extra fields."""

    configure_logging()
    logger = structlog.get_logger(name) if name else structlog.get_logger()
    return logger.bind(**initial_values) if initial_values else logger
