from __future__ import annotations

import base64
import hashlib
import hmac

import pytest

from rcs_gateway.gateway.models import SignatureContext
from rcs_gateway.gateway.utils.exceptions import SignatureVerificationError
from rcs_gateway.gateway.utils.security import (
    compute_base64_signature,
    matches_api_key,
    validate_base64_signature,
)

pytestmark = pytest.mark.unit

SECRET = "webhook-secret"
BODY = b'{"contentMessage":{"text":"hi"}}'


def test_signature_is_base64_hmac_sha256():
    expected = base64.b64encode(
        hmac.new(SECRET.encode("utf-8"), BODY, hashlib.sha256).digest()
    ).decode("ascii")

    assert compute_base64_signature(SECRET, BODY) == expected


def test_correct_signature_passes():
    signature = compute_base64_signature(SECRET, BODY)

    validate_base64_signature(SignatureContext(signature=signature, secret=SECRET, payload=BODY))


def test_flipped_byte_fails():
    signature = compute_base64_signature(SECRET, BODY)
    tampered = bytearray(BODY)
    tampered[5] ^= 0x01

    with pytest.raises(SignatureVerificationError, match="mismatch"):
        validate_base64_signature(
            SignatureContext(signature=signature, secret=SECRET, payload=bytes(tampered))
        )


def test_missing_signature_fails_when_secret_configured():
    with pytest.raises(SignatureVerificationError, match="missing"):
        validate_base64_signature(SignatureContext(signature=None, secret=SECRET, payload=BODY))


def test_non_base64_signature_fails():
    with pytest.raises(SignatureVerificationError, match="malformed"):
        validate_base64_signature(
            SignatureContext(signature="***not-base64***", secret=SECRET, payload=BODY)
        )


@pytest.mark.parametrize("signature", [None, "", "anything"])
def test_verification_skipped_without_secret(signature):
    validate_base64_signature(SignatureContext(signature=signature, secret=None, payload=BODY))


def test_api_key_matching():
    assert matches_api_key("key-b", ["key-a", "key-b"])
    assert not matches_api_key("key-c", ["key-a", "key-b"])
    assert not matches_api_key("key-a", [])
