"""Exceptions raised while accepting webhook callbacks."""

from __future__ import annotations


class WebhookError(Exception):
    """Base exception for webhook intake failures."""


class SignatureVerificationError(WebhookError):
    """Raised when a webhook signature cannot be validated."""
