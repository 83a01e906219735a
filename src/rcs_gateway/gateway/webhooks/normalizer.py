"""Classification of inbound platform callbacks into typed webhook events."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

from prometheus_client import Counter

from rcs_gateway.core.domain import (
    TERMINAL_DELIVERY_STATES,
    WebhookEvent,
    WebhookEventType,
)

logger = logging.getLogger(__name__)

WEBHOOK_EVENTS = Counter(
    "rbm_webhook_events_total",
    "Inbound webhook callbacks by classification.",
    ["event_type"],
)

_SENDER_KEYS = ("senderPhoneNumber", "msisdn", "sender")


class WebhookNormalizer:
    """Derive exactly one classification from the structure of a callback.

    The checks run in priority order and no state is kept between calls:

    1. ``contentMessage`` present: a user message, or a file attachment when
       the content carries a ``userFile``.
    2. ``eventType`` (or ``status``) holds a terminal delivery state.
    3. ``suggestionResponse`` present.
    4. top-level ``userFile`` present.
    5. anything else is ``unknown`` and logged.
    """

    def classify(self, body: Any) -> WebhookEventType:
        if not isinstance(body, Mapping):
            return WebhookEventType.UNKNOWN

        content = body.get("contentMessage")
        if content is not None:
            if isinstance(content, Mapping) and content.get("userFile"):
                return WebhookEventType.FILE_ATTACHMENT
            return WebhookEventType.USER_MESSAGE

        if _delivery_state(body) in TERMINAL_DELIVERY_STATES:
            return WebhookEventType.STATUS_UPDATE

        if body.get("suggestionResponse") is not None:
            return WebhookEventType.SUGGESTION_RESPONSE

        if body.get("userFile") is not None:
            return WebhookEventType.FILE_ATTACHMENT

        return WebhookEventType.UNKNOWN

    def normalize(self, body: Any) -> WebhookEvent:
        event_type = self.classify(body)
        fields: Mapping[str, Any] = body if isinstance(body, Mapping) else {}

        event = WebhookEvent(
            event_type=event_type,
            sender=_first_str(fields, _SENDER_KEYS),
            message_id=_first_str(fields, ("messageId",)),
            timestamp=_first_str(fields, ("timestamp", "sendTime")),
            payload=_payload_for(event_type, fields),
            raw=body,
        )

        WEBHOOK_EVENTS.labels(event_type.value).inc()
        if event_type is WebhookEventType.UNKNOWN:
            logger.warning(
                "unrecognised webhook payload",
                extra={"keys": sorted(fields.keys()) if fields else type(body).__name__},
            )
        else:
            logger.info(
                "webhook event classified",
                extra={"event_type": event_type.value, "message_id": event.message_id},
            )
        return event

    def normalize_raw(self, raw_body: bytes) -> WebhookEvent:
        """Decode and normalize a raw request body; undecodable bodies are ``unknown``."""

        try:
            body = json.loads(raw_body.decode("utf-8")) if raw_body else None
        except (UnicodeDecodeError, json.JSONDecodeError):
            logger.warning("webhook body is not valid JSON", extra={"size": len(raw_body)})
            body = raw_body.decode("utf-8", errors="replace")
        return self.normalize(body)


def _delivery_state(body: Mapping[str, Any]) -> str | None:
    for key in ("eventType", "status"):
        value = body.get(key)
        if isinstance(value, str):
            state = value.upper()
            if state in TERMINAL_DELIVERY_STATES:
                return state
    return None


def _first_str(body: Mapping[str, Any], keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = body.get(key)
        if value is not None and value != "":
            return str(value)
    return None


def _payload_for(event_type: WebhookEventType, body: Mapping[str, Any]) -> dict[str, Any]:
    if event_type is WebhookEventType.USER_MESSAGE:
        content = body.get("contentMessage") or {}
        if not isinstance(content, Mapping):
            return {"text": str(content)}
        return {"text": content.get("text"), "content": dict(content)}

    if event_type is WebhookEventType.FILE_ATTACHMENT:
        content = body.get("contentMessage")
        user_file = (
            content.get("userFile") if isinstance(content, Mapping) else None
        ) or body.get("userFile") or {}
        file_payload = user_file.get("payload", user_file) if isinstance(user_file, Mapping) else {}
        return {
            "fileUrl": file_payload.get("fileUri") or file_payload.get("fileUrl"),
            "mimeType": file_payload.get("mimeType"),
            "fileName": file_payload.get("fileName"),
            "file": dict(user_file) if isinstance(user_file, Mapping) else {},
        }

    if event_type is WebhookEventType.STATUS_UPDATE:
        return {"status": _delivery_state(body), "error": body.get("error")}

    if event_type is WebhookEventType.SUGGESTION_RESPONSE:
        response = body.get("suggestionResponse") or {}
        if not isinstance(response, Mapping):
            return {"postbackData": str(response), "text": None}
        return {"postbackData": response.get("postbackData"), "text": response.get("text")}

    return dict(body)
