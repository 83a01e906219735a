from __future__ import annotations

import pytest

from rcs_gateway.core.domain import WebhookEvent, WebhookEventType
from rcs_gateway.gateway.webhooks import WebhookDispatcher

pytestmark = pytest.mark.unit


def _event(event_type: WebhookEventType) -> WebhookEvent:
    return WebhookEvent(
        event_type=event_type,
        sender="+15551234567",
        message_id="m1",
        timestamp=None,
        payload={},
    )


class RecordingHandler:
    def __init__(self) -> None:
        self.events: list[WebhookEvent] = []

    async def __call__(self, event: WebhookEvent) -> None:
        self.events.append(event)


@pytest.mark.asyncio
async def test_dispatch_invokes_matching_handler_once():
    user_messages = RecordingHandler()
    statuses = RecordingHandler()
    dispatcher = WebhookDispatcher(
        {
            WebhookEventType.USER_MESSAGE: user_messages,
            WebhookEventType.STATUS_UPDATE: statuses,
        }
    )
    event = _event(WebhookEventType.USER_MESSAGE)

    assert await dispatcher.dispatch(event) is True

    assert user_messages.events == [event]
    assert statuses.events == []


@pytest.mark.asyncio
async def test_handler_failure_is_swallowed():
    async def explode(event: WebhookEvent) -> None:
        raise RuntimeError("downstream unavailable")

    dispatcher = WebhookDispatcher()
    dispatcher.register(WebhookEventType.SUGGESTION_RESPONSE, explode)

    assert await dispatcher.dispatch(_event(WebhookEventType.SUGGESTION_RESPONSE)) is False


@pytest.mark.asyncio
@pytest.mark.parametrize("event_type", list(WebhookEventType))
async def test_default_handlers_cover_every_classification(event_type):
    assert await WebhookDispatcher().dispatch(_event(event_type)) is True
