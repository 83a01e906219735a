"""Inbound webhook normalization and dispatch."""

from .dispatcher import WebhookDispatcher, WebhookHandler
from .normalizer import WebhookNormalizer

__all__ = ["WebhookDispatcher", "WebhookHandler", "WebhookNormalizer"]
