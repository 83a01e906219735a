"""Routing of classified webhook events to business handlers."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping

from rcs_gateway.core.domain import WebhookEvent, WebhookEventType

logger = logging.getLogger(__name__)

WebhookHandler = Callable[[WebhookEvent], Awaitable[None]]


async def log_user_message(event: WebhookEvent) -> None:
    logger.info(
        "user message received",
        extra={"sender": event.sender, "text": event.payload.get("text")},
    )


async def log_suggestion_response(event: WebhookEvent) -> None:
    logger.info(
        "suggestion clicked",
        extra={"sender": event.sender, "postback": event.payload.get("postbackData")},
    )


async def log_status_update(event: WebhookEvent) -> None:
    logger.info(
        "message status updated",
        extra={"message_id": event.message_id, "status": event.payload.get("status")},
    )


async def log_file_attachment(event: WebhookEvent) -> None:
    logger.info(
        "user file received",
        extra={
            "sender": event.sender,
            "file_url": event.payload.get("fileUrl"),
            "mime_type": event.payload.get("mimeType"),
        },
    )


async def log_unknown_event(event: WebhookEvent) -> None:
    logger.info("unhandled webhook event", extra={"message_id": event.message_id})


DEFAULT_HANDLERS: Mapping[WebhookEventType, WebhookHandler] = {
    WebhookEventType.USER_MESSAGE: log_user_message,
    WebhookEventType.SUGGESTION_RESPONSE: log_suggestion_response,
    WebhookEventType.STATUS_UPDATE: log_status_update,
    WebhookEventType.FILE_ATTACHMENT: log_file_attachment,
    WebhookEventType.UNKNOWN: log_unknown_event,
}


class WebhookDispatcher:
    """Invoke the handler registered for an event's classification, once.

    Handler failures are logged and swallowed: by the time dispatch runs the
    platform has already been acknowledged.
    """

    def __init__(self, handlers: Mapping[WebhookEventType, WebhookHandler] | None = None) -> None:
        self._handlers: dict[WebhookEventType, WebhookHandler] = dict(DEFAULT_HANDLERS)
        if handlers:
            self._handlers.update(handlers)

    def register(self, event_type: WebhookEventType, handler: WebhookHandler) -> None:
        self._handlers[event_type] = handler

    async def dispatch(self, event: WebhookEvent) -> bool:
        handler = self._handlers.get(event.event_type)
        if handler is None:
            logger.warning(
                "no webhook handler registered", extra={"event_type": event.event_type.value}
            )
            return False

        try:
            await handler(event)
        except Exception:
            logger.exception(
                "webhook handler failed",
                extra={"event_type": event.event_type.value, "message_id": event.message_id},
            )
            return False
        return True
