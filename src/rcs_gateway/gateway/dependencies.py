"""Dependency wiring for the gateway service."""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status

from rcs_gateway.core.config import AppSettings

from .upstream import MessageGateway, RbmHttpClient, TemplateRegistry, TokenProvider
from .utils.security import matches_api_key
from .webhooks import WebhookDispatcher, WebhookNormalizer


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    return AppSettings.load()


SettingsDep = Annotated[AppSettings, Depends(get_settings)]


_upstream_client: RbmHttpClient | None = None
_token_provider: TokenProvider | None = None


def get_upstream_client(settings: SettingsDep) -> RbmHttpClient:
    global _upstream_client
    if _upstream_client is None:
        _upstream_client = RbmHttpClient(timeout=settings.rbm.request_timeout_seconds)
    return _upstream_client


UpstreamClientDep = Annotated[RbmHttpClient, Depends(get_upstream_client)]


def get_token_provider(settings: SettingsDep, http: UpstreamClientDep) -> TokenProvider:
    # One token cache per process; every request shares it.
    global _token_provider
    if _token_provider is None:
        _token_provider = TokenProvider(http=http, settings=settings.rbm)
    return _token_provider


TokenProviderDep = Annotated[TokenProvider, Depends(get_token_provider)]


def get_message_gateway(
    settings: SettingsDep, http: UpstreamClientDep, tokens: TokenProviderDep
) -> MessageGateway:
    return MessageGateway(http=http, tokens=tokens, settings=settings.rbm)


def get_template_registry(
    settings: SettingsDep, http: UpstreamClientDep, tokens: TokenProviderDep
) -> TemplateRegistry:
    return TemplateRegistry(http=http, tokens=tokens, settings=settings.rbm)


@lru_cache(maxsize=1)
def get_webhook_normalizer() -> WebhookNormalizer:
    return WebhookNormalizer()


@lru_cache(maxsize=1)
def get_webhook_dispatcher() -> WebhookDispatcher:
    return WebhookDispatcher()


MessageGatewayDep = Annotated[MessageGateway, Depends(get_message_gateway)]
TemplateRegistryDep = Annotated[TemplateRegistry, Depends(get_template_registry)]
WebhookNormalizerDep = Annotated[WebhookNormalizer, Depends(get_webhook_normalizer)]
WebhookDispatcherDep = Annotated[WebhookDispatcher, Depends(get_webhook_dispatcher)]


def require_internal_auth(
    settings: SettingsDep,
    authorization: Annotated[str | None, Header()] = None,
) -> str:
    """Gate internal routes on the ``Authorization`` header.

    With ``INTERNAL_API_KEYS`` unset any non-empty header is accepted;
    otherwise the bearer value must be one of the configured keys.
    """

    if not authorization or not authorization.strip():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    keys = settings.api_keys
    if not keys:
        return authorization

    scheme, _, credentials = authorization.strip().partition(" ")
    presented = credentials.strip() if scheme.lower() == "bearer" and credentials else scheme
    if not matches_api_key(presented, keys):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return presented


async def close_upstream_client() -> None:
    global _upstream_client, _token_provider
    if _upstream_client is not None:
        await _upstream_client.close()
    _upstream_client = None
    _token_provider = None
