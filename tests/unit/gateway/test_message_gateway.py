from __future__ import annotations

import json
from uuid import UUID

import httpx
import pytest

from rcs_gateway.core.domain import MessageDialect
from rcs_gateway.core.errors import (
    UpstreamNetworkError,
    UpstreamRejectedError,
    UpstreamTimeoutError,
)
from rcs_gateway.gateway.upstream import MessageGateway, RbmHttpClient, TokenProvider

pytestmark = pytest.mark.unit

MSISDN = "+15551234567"


@pytest.fixture
def gateway(http, tokens, rbm_settings) -> MessageGateway:
    return MessageGateway(http=http, tokens=tokens, settings=rbm_settings)


@pytest.mark.asyncio
async def test_google_text_send_posts_to_agent_messages(gateway, platform):
    result = await gateway.send_text(MSISDN, "Your OTP is 4821")

    request = platform.api_requests[0]
    assert request.url.path == f"/phones/{MSISDN}/agentMessages"
    assert request.url.params["messageId"] == result.message_id
    assert request.headers["Authorization"] == "Bearer token-1"
    assert json.loads(request.content) == {"contentMessage": {"text": "Your OTP is 4821"}}
    assert result.body == {"contentMessage": {"text": "Your OTP is 4821"}}
    assert result.dialect is MessageDialect.GOOGLE
    UUID(result.message_id)


@pytest.mark.asyncio
async def test_two_sends_use_distinct_message_ids(gateway, platform):
    first = await gateway.send_text(MSISDN, "one")
    second = await gateway.send_text(MSISDN, "one")

    assert first.message_id != second.message_id
    sent_ids = [request.url.params["messageId"] for request in platform.api_requests]
    assert sent_ids == [first.message_id, second.message_id]
    assert len(platform.auth_requests) == 1


@pytest.mark.asyncio
async def test_gsma_send_posts_envelope_to_bot_messages(gateway, platform):
    result = await gateway.send_gsma(MSISDN, {"contentMessage": {"text": "hi"}})

    request = platform.api_requests[0]
    body = json.loads(request.content)
    assert request.url.path == "/messaging/v1/bots/bot-42/messages"
    assert "messageId" not in request.url.params
    assert body["messageId"] == result.message_id
    assert body["senderAddress"] == "bot-42"
    assert json.loads(body["content"]) == {"contentMessage": {"text": "hi"}}


@pytest.mark.asyncio
async def test_dialect_override_on_rich_card(gateway, platform):
    card = {"standaloneCard": {"cardContent": {"title": "Order shipped"}}}

    result = await gateway.send_rich_card(MSISDN, card, dialect=MessageDialect.GSMA)

    assert result.dialect is MessageDialect.GSMA
    body = json.loads(platform.api_requests[0].content)
    assert json.loads(body["content"]) == {"contentMessage": {"richCard": card}}


@pytest.mark.asyncio
async def test_upstream_rejection_carries_status_and_body(gateway, platform):
    platform.respond(
        "POST",
        f"/phones/{MSISDN}/agentMessages",
        httpx.Response(400, json={"error": {"message": "bad msisdn"}}),
    )

    with pytest.raises(UpstreamRejectedError) as excinfo:
        await gateway.send_text(MSISDN, "hi")

    assert excinfo.value.status_code == 400
    assert "bad msisdn" in excinfo.value.body


@pytest.mark.asyncio
async def test_unauthorized_send_discards_cached_token(gateway, platform):
    platform.respond(
        "POST", f"/phones/{MSISDN}/agentMessages", httpx.Response(401, json={"error": "expired"})
    )

    with pytest.raises(UpstreamRejectedError):
        await gateway.send_text(MSISDN, "hi")

    platform.responders.clear()
    await gateway.send_text(MSISDN, "hi")

    assert len(platform.auth_requests) == 2
    assert platform.api_requests[-1].headers["Authorization"] == "Bearer token-2"


@pytest.mark.asyncio
async def test_send_is_not_retried_on_failure(gateway, platform):
    platform.respond("POST", f"/phones/{MSISDN}/agentMessages", httpx.Response(503))

    with pytest.raises(UpstreamRejectedError):
        await gateway.send_text(MSISDN, "hi")

    assert len(platform.api_requests) == 1


@pytest.mark.asyncio
async def test_timeout_is_reported_as_timeout(rbm_settings, platform):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/agentMessages"):
            raise httpx.ReadTimeout("too slow", request=request)
        return platform.handler(request)

    http = RbmHttpClient(timeout=1.0, transport=httpx.MockTransport(handler))
    gateway = MessageGateway(
        http=http,
        tokens=TokenProvider(http=http, settings=rbm_settings),
        settings=rbm_settings,
    )

    with pytest.raises(UpstreamTimeoutError):
        await gateway.send_text(MSISDN, "hi")


@pytest.mark.asyncio
async def test_network_failure_is_reported_as_network_error(rbm_settings, platform):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/agentMessages"):
            raise httpx.ConnectError("unreachable", request=request)
        return platform.handler(request)

    http = RbmHttpClient(timeout=1.0, transport=httpx.MockTransport(handler))
    gateway = MessageGateway(
        http=http,
        tokens=TokenProvider(http=http, settings=rbm_settings),
        settings=rbm_settings,
    )

    with pytest.raises(UpstreamNetworkError):
        await gateway.send_text(MSISDN, "hi")
