"""Internal message sending routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from rcs_gateway.core.domain import SendResult

from ..dependencies import MessageGatewayDep, require_internal_auth
from ..models import (
    CarouselMessageRequest,
    CustomMessageRequest,
    RichCardMessageRequest,
    TextMessageRequest,
)

MESSAGE_ID_HEADER = "X-Message-Id"

router = APIRouter(
    prefix="/api/messages",
    tags=["messages"],
    dependencies=[Depends(require_internal_auth)],
)


def _upstream_response(result: SendResult) -> JSONResponse:
    # Body is the platform's echo; the generated id travels in a header.
    return JSONResponse(content=result.body, headers={MESSAGE_ID_HEADER: result.message_id})


@router.post("/text")
async def send_text(payload: TextMessageRequest, gateway: MessageGatewayDep) -> JSONResponse:
    result = await gateway.send_text(
        payload.msisdn,
        payload.text,
        suggestions=payload.suggestions,
        dialect=payload.dialect,
    )
    return _upstream_response(result)


@router.post("/rich-card")
async def send_rich_card(
    payload: RichCardMessageRequest, gateway: MessageGatewayDep
) -> JSONResponse:
    result = await gateway.send_rich_card(
        payload.msisdn, payload.card_data, dialect=payload.dialect
    )
    return _upstream_response(result)


@router.post("/carousel")
async def send_carousel(
    payload: CarouselMessageRequest, gateway: MessageGatewayDep
) -> JSONResponse:
    result = await gateway.send_carousel(
        payload.msisdn, payload.carousel, dialect=payload.dialect
    )
    return _upstream_response(result)


@router.post("/custom")
async def send_custom(payload: CustomMessageRequest, gateway: MessageGatewayDep) -> JSONResponse:
    result = await gateway.send_custom(payload.msisdn, payload.payload, dialect=payload.dialect)
    return _upstream_response(result)
