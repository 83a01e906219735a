"""Domain data structures shared across the gateway components."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from uuid import uuid4


class MessageDialect(str, Enum):
    """Wire conventions spoken by upstream operator integrations."""

    GOOGLE = "google"
    GSMA = "gsma"


class ContentKind(str, Enum):
    """Content variants an outbound message can carry."""

    TEXT = "text"
    RICH_CARD = "richCard"
    CAROUSEL = "carousel"
    CUSTOM = "customPayload"


class TemplateType(str, Enum):
    """Template shapes accepted by the upstream template directory."""

    TEXT_MESSAGE = "text_message"
    RICH_CARD = "rich_card"
    CAROUSEL = "carousel"


class WebhookEventType(str, Enum):
    """Classification assigned to inbound webhook callbacks."""

    USER_MESSAGE = "user_message"
    SUGGESTION_RESPONSE = "suggestion_response"
    STATUS_UPDATE = "status_update"
    FILE_ATTACHMENT = "file_attachment"
    UNKNOWN = "unknown"


TERMINAL_DELIVERY_STATES = frozenset({"DELIVERED", "READ", "FAILED"})


def new_message_id() -> str:
    return str(uuid4())


@dataclass(slots=True, frozen=True)
class AccessToken:
    """Bearer token issued by the upstream authorization server."""

    value: str
    expires_at: float

    def is_usable(self, now: float, margin: float) -> bool:
        return now < self.expires_at - margin


@dataclass(slots=True)
class OutboundMessage:
    """A single message destined for one msisdn.

    ``content`` holds exactly one variant, tagged by ``kind``: a string for
    ``TEXT`` and a JSON object for every other kind. A fresh ``message_id`` is
    generated for every instance, so a retried send is a new message.
    """

    destination: str
    kind: ContentKind
    content: Any
    dialect: MessageDialect = MessageDialect.GOOGLE
    suggestions: Sequence[Mapping[str, Any]] | None = None
    message_id: str = field(default_factory=new_message_id)

    def __post_init__(self) -> None:
        if not self.destination or not self.destination.strip():
            raise ValueError("destination msisdn is required")
        if self.kind is ContentKind.TEXT:
            if not isinstance(self.content, str) or not self.content:
                raise ValueError("text content must be a non-empty string")
        elif not isinstance(self.content, Mapping):
            raise ValueError(f"{self.kind.value} content must be a JSON object")
        if self.suggestions is not None and self.kind is ContentKind.CUSTOM:
            raise ValueError("custom payloads carry their own suggestions")

    @classmethod
    def text(
        cls,
        destination: str,
        text: str,
        *,
        suggestions: Sequence[Mapping[str, Any]] | None = None,
        dialect: MessageDialect = MessageDialect.GOOGLE,
    ) -> OutboundMessage:
        return cls(destination, ContentKind.TEXT, text, dialect, suggestions)

    @classmethod
    def rich_card(
        cls,
        destination: str,
        card: Mapping[str, Any],
        *,
        dialect: MessageDialect = MessageDialect.GOOGLE,
    ) -> OutboundMessage:
        return cls(destination, ContentKind.RICH_CARD, card, dialect)

    @classmethod
    def carousel(
        cls,
        destination: str,
        carousel: Mapping[str, Any],
        *,
        dialect: MessageDialect = MessageDialect.GOOGLE,
    ) -> OutboundMessage:
        return cls(destination, ContentKind.CAROUSEL, carousel, dialect)

    @classmethod
    def custom(
        cls,
        destination: str,
        payload: Mapping[str, Any],
        *,
        dialect: MessageDialect = MessageDialect.GOOGLE,
    ) -> OutboundMessage:
        return cls(destination, ContentKind.CUSTOM, payload, dialect)


@dataclass(slots=True)
class SendResult:
    """Outcome of a successful send: the generated id and the upstream body."""

    message_id: str
    dialect: MessageDialect
    body: Any


@dataclass(slots=True)
class WebhookEvent:
    """Normalized view over one inbound callback from the platform."""

    event_type: WebhookEventType
    sender: str | None
    message_id: str | None
    timestamp: str | None
    payload: Mapping[str, Any]
    raw: Any = None
