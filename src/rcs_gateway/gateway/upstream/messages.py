"""Outbound message sending in the Google-style and GSMA-style dialects."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any
from urllib.parse import quote

from rcs_gateway.core.config import RbmSettings
from rcs_gateway.core.domain import MessageDialect, OutboundMessage, SendResult
from rcs_gateway.core.errors import UpstreamRejectedError

from .http import RbmHttpClient, decode_body
from .payloads import build_body
from .token import TokenProvider

logger = logging.getLogger(__name__)


class MessageGateway:
    """Send messages to the RCS platform.

    Each send builds a new :class:`OutboundMessage` (and therefore a new
    message id) and posts it exactly once. Upstream failures are re-raised as
    they come from :class:`RbmHttpClient`; request-level retries would risk a
    double send, so delivery is confirmed through status webhooks instead.
    """

    def __init__(
        self,
        *,
        http: RbmHttpClient,
        tokens: TokenProvider,
        settings: RbmSettings,
    ) -> None:
        self._http = http
        self._tokens = tokens
        self._settings = settings

    async def send_text(
        self,
        msisdn: str,
        text: str,
        *,
        suggestions: Sequence[Mapping[str, Any]] | None = None,
        dialect: MessageDialect | None = None,
    ) -> SendResult:
        message = OutboundMessage.text(
            msisdn, text, suggestions=suggestions, dialect=self._dialect(dialect)
        )
        return await self.send(message)

    async def send_rich_card(
        self,
        msisdn: str,
        card_data: Mapping[str, Any],
        *,
        dialect: MessageDialect | None = None,
    ) -> SendResult:
        return await self.send(
            OutboundMessage.rich_card(msisdn, card_data, dialect=self._dialect(dialect))
        )

    async def send_carousel(
        self,
        msisdn: str,
        carousel: Mapping[str, Any],
        *,
        dialect: MessageDialect | None = None,
    ) -> SendResult:
        return await self.send(
            OutboundMessage.carousel(msisdn, carousel, dialect=self._dialect(dialect))
        )

    async def send_custom(
        self,
        msisdn: str,
        payload: Mapping[str, Any],
        *,
        dialect: MessageDialect | None = None,
    ) -> SendResult:
        return await self.send(
            OutboundMessage.custom(msisdn, payload, dialect=self._dialect(dialect))
        )

    async def send_gsma(self, msisdn: str, payload: Mapping[str, Any]) -> SendResult:
        """Wrap an arbitrary payload in the GSMA envelope regardless of defaults."""

        return await self.send(
            OutboundMessage.custom(msisdn, payload, dialect=MessageDialect.GSMA)
        )

    async def send(self, message: OutboundMessage) -> SendResult:
        token = await self._tokens.get_access_token()
        body = build_body(message, bot_id=self._settings.bot_id)

        if message.dialect is MessageDialect.GSMA:
            url = self._settings.gsma_messages_url
            params: dict[str, str] = {}
        else:
            destination = quote(message.destination, safe="+")
            url = f"{self._settings.google_root}/phones/{destination}/agentMessages"
            params = {"messageId": message.message_id}

        operation = f"send_{message.dialect.value}_{message.kind.value}"
        try:
            response = await self._http.request(
                "POST",
                url,
                operation=operation,
                params=params,
                json=body,
                headers={"Authorization": f"Bearer {token}"},
            )
        except UpstreamRejectedError as exc:
            if exc.status_code == 401:
                self._tokens.invalidate()
            logger.error(
                "rcs message send failed",
                extra={
                    "message_id": message.message_id,
                    "dialect": message.dialect.value,
                    "status": exc.status_code,
                },
            )
            raise

        logger.info(
            "rcs message accepted",
            extra={
                "message_id": message.message_id,
                "dialect": message.dialect.value,
                "kind": message.kind.value,
            },
        )
        return SendResult(
            message_id=message.message_id,
            dialect=message.dialect,
            body=decode_body(response),
        )

    def _dialect(self, dialect: MessageDialect | None) -> MessageDialect:
        return dialect or self._settings.default_dialect
