"""Request schemas for the internal API and webhook helper types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from rcs_gateway.core.domain import MessageDialect, TemplateType


@dataclass(slots=True)
class SignatureContext:
    """Contextual information required for signature validation."""

    signature: str | None
    secret: str | None
    payload: bytes


class _MessageRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    msisdn: str = Field(min_length=1)
    dialect: MessageDialect | None = None


class TextMessageRequest(_MessageRequest):
    text: str = Field(min_length=1)
    suggestions: list[dict[str, Any]] | None = None


class RichCardMessageRequest(_MessageRequest):
    card_data: dict[str, Any] = Field(alias="cardData")


class CarouselMessageRequest(_MessageRequest):
    carousel: dict[str, Any]


class CustomMessageRequest(_MessageRequest):
    payload: dict[str, Any]


class TemplateSubmission(BaseModel):
    """Template specification forwarded to the upstream template directory.

    Unknown keys are preserved so new upstream fields pass straight through.
    The shape-specific blocks must match the declared type: ``standAlone``
    only for ``rich_card``, ``carouselList`` only for ``carousel``.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str = Field(min_length=1)
    type: TemplateType
    text_message_content: str | None = Field(default=None, alias="textMessageContent")
    stand_alone: dict[str, Any] | None = Field(default=None, alias="standAlone")
    carousel_list: dict[str, Any] | None = Field(default=None, alias="carouselList")
    suggestions: list[dict[str, Any]] | None = None

    @model_validator(mode="after")
    def _check_shape(self) -> TemplateSubmission:
        if (self.stand_alone is not None) != (self.type is TemplateType.RICH_CARD):
            raise ValueError("standAlone must be provided for rich_card templates only")
        if (self.carousel_list is not None) != (self.type is TemplateType.CAROUSEL):
            raise ValueError("carouselList must be provided for carousel templates only")
        if self.type is TemplateType.TEXT_MESSAGE and not self.text_message_content:
            raise ValueError("textMessageContent is required for text_message templates")
        return self

    def to_upstream(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
