from __future__ import annotations

import json

import pytest

from rcs_gateway.core.domain import WebhookEventType
from rcs_gateway.gateway.webhooks import WebhookNormalizer

pytestmark = pytest.mark.unit


@pytest.fixture
def normalizer() -> WebhookNormalizer:
    return WebhookNormalizer()


@pytest.mark.parametrize(
    ("body", "expected"),
    [
        ({"contentMessage": {"text": "hi"}}, WebhookEventType.USER_MESSAGE),
        ({"eventType": "DELIVERED", "messageId": "m1"}, WebhookEventType.STATUS_UPDATE),
        ({"eventType": "read", "messageId": "m1"}, WebhookEventType.STATUS_UPDATE),
        ({"status": "FAILED", "messageId": "m1"}, WebhookEventType.STATUS_UPDATE),
        ({"suggestionResponse": {"postbackData": "BTN1"}}, WebhookEventType.SUGGESTION_RESPONSE),
        (
            {"contentMessage": {"userFile": {"payload": {"fileUri": "https://f/1"}}}},
            WebhookEventType.FILE_ATTACHMENT,
        ),
        ({"userFile": {"fileUrl": "https://f/2"}}, WebhookEventType.FILE_ATTACHMENT),
        ({"foo": "bar"}, WebhookEventType.UNKNOWN),
        ({"eventType": "IS_TYPING"}, WebhookEventType.UNKNOWN),
        ([1, 2, 3], WebhookEventType.UNKNOWN),
        (None, WebhookEventType.UNKNOWN),
    ],
)
def test_classify(normalizer, body, expected):
    assert normalizer.classify(body) is expected


def test_content_message_wins_over_delivery_state(normalizer):
    body = {"contentMessage": {"text": "hi"}, "eventType": "DELIVERED"}

    assert normalizer.classify(body) is WebhookEventType.USER_MESSAGE


def test_delivery_state_wins_over_suggestion_response(normalizer):
    body = {"eventType": "READ", "suggestionResponse": {"postbackData": "BTN1"}}

    assert normalizer.classify(body) is WebhookEventType.STATUS_UPDATE


def test_user_message_fields_are_extracted(normalizer):
    event = normalizer.normalize(
        {
            "senderPhoneNumber": "+15551234567",
            "messageId": "m-7",
            "sendTime": "2026-10-19T09:15:02Z",
            "contentMessage": {"text": "Is my order on its way?"},
        }
    )

    assert event.event_type is WebhookEventType.USER_MESSAGE
    assert event.sender == "+15551234567"
    assert event.message_id == "m-7"
    assert event.timestamp == "2026-10-19T09:15:02Z"
    assert event.payload["text"] == "Is my order on its way?"


def test_status_update_payload_upper_cases_state(normalizer):
    event = normalizer.normalize({"eventType": "failed", "messageId": "m1", "error": "expired"})

    assert event.payload == {"status": "FAILED", "error": "expired"}


def test_suggestion_payload_carries_postback(normalizer):
    event = normalizer.normalize(
        {"suggestionResponse": {"postbackData": "BTN1", "text": "Track"}}
    )

    assert event.payload == {"postbackData": "BTN1", "text": "Track"}


def test_file_attachment_payload_exposes_file_details(normalizer):
    event = normalizer.normalize(
        {
            "msisdn": "+15550000000",
            "contentMessage": {
                "userFile": {
                    "payload": {
                        "fileUri": "https://media/receipt.jpg",
                        "mimeType": "image/jpeg",
                        "fileName": "receipt.jpg",
                    }
                }
            },
        }
    )

    assert event.sender == "+15550000000"
    assert event.payload["fileUrl"] == "https://media/receipt.jpg"
    assert event.payload["mimeType"] == "image/jpeg"
    assert event.payload["fileName"] == "receipt.jpg"


def test_unknown_payload_is_kept_as_is(normalizer):
    event = normalizer.normalize({"foo": "bar"})

    assert event.event_type is WebhookEventType.UNKNOWN
    assert event.payload == {"foo": "bar"}
    assert event.sender is None


def test_invalid_json_is_unknown(normalizer):
    event = normalizer.normalize_raw(b"{not json")

    assert event.event_type is WebhookEventType.UNKNOWN
    assert event.raw == "{not json"


def test_empty_body_is_unknown(normalizer):
    assert normalizer.normalize_raw(b"").event_type is WebhookEventType.UNKNOWN


def test_raw_body_is_decoded(normalizer):
    raw = json.dumps({"contentMessage": {"text": "hi"}}).encode("utf-8")

    assert normalizer.normalize_raw(raw).event_type is WebhookEventType.USER_MESSAGE
