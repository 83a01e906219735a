"""Signature verification for platform webhooks and internal API keys."""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
from collections.abc import Iterable

from ..models import SignatureContext
from .exceptions import SignatureVerificationError


def compute_base64_signature(secret: str, payload: bytes) -> str:
    """Return ``base64(HMAC-SHA256(secret, payload))``."""

    digest = hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def validate_base64_signature(context: SignatureContext) -> None:
    """Validate a base64-encoded HMAC-SHA256 signature over the raw body.

    Verification is skipped when no secret is configured.
    """

    if not context.secret:
        return
    if not context.signature:
        raise SignatureVerificationError("missing signature")

    try:
        expected = base64.b64decode(context.signature, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise SignatureVerificationError("malformed signature") from exc

    computed = hmac.new(
        context.secret.encode("utf-8"), context.payload, hashlib.sha256
    ).digest()
    if not hmac.compare_digest(computed, expected):
        raise SignatureVerificationError("signature mismatch")


def matches_api_key(presented: str, accepted: Iterable[str]) -> bool:
    """Constant-time membership test for internal API keys."""

    candidate = presented.encode("utf-8")
    matched = False
    for key in accepted:
        matched |= hmac.compare_digest(candidate, key.encode("utf-8"))
    return matched
