"""Public webhook intake for the upstream RCS platform."""

from __future__ import annotations

import logging

from fastapi import APIRouter, BackgroundTasks, HTTPException, Request, status

from ..dependencies import SettingsDep, WebhookDispatcherDep, WebhookNormalizerDep
from ..models import SignatureContext
from ..utils.exceptions import SignatureVerificationError
from ..utils.security import validate_base64_signature

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/webhooks", tags=["webhooks"])


@router.post("/vi-rbm", status_code=status.HTTP_200_OK)
async def rbm_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    settings: SettingsDep,
    normalizer: WebhookNormalizerDep,
    dispatcher: WebhookDispatcherDep,
) -> dict[str, str]:
    """Acknowledge a platform callback, then hand the event to its handler.

    The acknowledgement does not wait for the handler: unacknowledged
    callbacks are redelivered by the platform, and a duplicate is worse than a
    dropped side effect.
    """

    raw_body = await request.body()
    signature = request.headers.get(settings.rbm.webhook_signature_header)

    try:
        validate_base64_signature(
            SignatureContext(
                signature=signature, secret=settings.rbm.webhook_secret, payload=raw_body
            )
        )
    except SignatureVerificationError as exc:
        logger.warning("rejected webhook signature", extra={"reason": str(exc)})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc

    event = normalizer.normalize_raw(raw_body)
    background_tasks.add_task(dispatcher.dispatch, event)
    return {"status": "OK", "eventType": event.event_type.value}
