"""Clients for the upstream RCS Business Messaging platform."""

from .http import RbmHttpClient
from .messages import MessageGateway
from .templates import TemplateRegistry
from .token import TokenProvider

__all__ = [
    "MessageGateway",
    "RbmHttpClient",
    "TemplateRegistry",
    "TokenProvider",
]
