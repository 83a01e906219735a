"""Pure mappings from an :class:`OutboundMessage` to each wire dialect."""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from typing import Any

from rcs_gateway.core.domain import ContentKind, MessageDialect, OutboundMessage

GSMA_CONTENT_TYPE = "application/vnd.gsma.rcs-maap.chatbound+json"
GSMA_CONTENT_ENCODING = "utf8"


def content_body(message: OutboundMessage) -> dict[str, Any]:
    """Logical message body shared by both dialects.

    Custom payloads are passed through untouched; every other variant is
    wrapped in ``{"contentMessage": {...}}``.
    """

    if message.kind is ContentKind.CUSTOM:
        return dict(message.content)

    content: dict[str, Any] = {message.kind.value: message.content}
    if message.suggestions:
        content["suggestions"] = [dict(item) for item in message.suggestions]
    return {"contentMessage": content}


def google_body(message: OutboundMessage, **_: Any) -> dict[str, Any]:
    # Sender is implied by the bearer token in the Google-style API.
    return content_body(message)


def gsma_body(message: OutboundMessage, *, bot_id: str) -> dict[str, Any]:
    return {
        "destinationAddress": [message.destination],
        "senderAddress": bot_id,
        "messageId": message.message_id,
        "messageContentType": GSMA_CONTENT_TYPE,
        "contentEncoding": GSMA_CONTENT_ENCODING,
        "content": json.dumps(content_body(message), separators=(",", ":"), ensure_ascii=False),
    }


BODY_BUILDERS: Mapping[MessageDialect, Callable[..., dict[str, Any]]] = {
    MessageDialect.GOOGLE: google_body,
    MessageDialect.GSMA: gsma_body,
}


def build_body(message: OutboundMessage, *, bot_id: str) -> dict[str, Any]:
    """Render ``message`` in the dialect it is tagged with."""

    return BODY_BUILDERS[message.dialect](message, bot_id=bot_id)
