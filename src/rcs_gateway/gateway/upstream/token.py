"""OAuth2 client-credentials token cache for the upstream platform."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable

from rcs_gateway.core.config import RbmSettings
from rcs_gateway.core.domain import AccessToken
from rcs_gateway.core.errors import AuthenticationError, GatewayError

from .http import RbmHttpClient, decode_body

logger = logging.getLogger(__name__)


class TokenProvider:
    """Acquire and cache a bearer token, refreshing it before it expires.

    A cached token is served while ``now < expires_at - margin``. Refreshes are
    single-flight: concurrent callers that find the cache stale all await the
    same in-flight exchange and receive its token, or its
    :class:`AuthenticationError`. A failed refresh leaves the cache as it was and
    the next call starts a new exchange.
    """

    def __init__(
        self,
        *,
        http: RbmHttpClient,
        settings: RbmSettings,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._http = http
        self._settings = settings
        self._clock = clock
        self._token: AccessToken | None = None
        self._refresh: asyncio.Future[AccessToken] | None = None

    @property
    def margin(self) -> float:
        return self._settings.token_margin_seconds

    async def get_access_token(self) -> str:
        cached = self._usable_token()
        if cached is not None:
            return cached

        if self._refresh is None:
            self._refresh = asyncio.ensure_future(self._refresh_token())
        token = await asyncio.shield(self._refresh)
        return token.value

    def invalidate(self) -> None:
        """Drop the cached token so the next call performs a fresh exchange."""

        if self._token is not None:
            logger.info("discarding cached rbm access token")
        self._token = None

    def _usable_token(self) -> str | None:
        if self._token is not None and self._token.is_usable(self._clock(), self.margin):
            return self._token.value
        return None

    async def _refresh_token(self) -> AccessToken:
        try:
            token = await self._fetch_token()
            self._token = token
            return token
        finally:
            self._refresh = None

    async def _fetch_token(self) -> AccessToken:
        logger.info("refreshing rbm access token", extra={"auth_url": self._settings.auth_url})
        try:
            response = await self._http.request(
                "POST",
                self._settings.auth_url,
                operation="oauth_token",
                params={"grant_type": "client_credentials"},
                auth=(self._settings.client_id, self._settings.client_secret),
                json={},
            )
        except GatewayError as exc:
            raise AuthenticationError(
                f"authentication failed: {exc.message}",
                status_code=exc.status_code,
                body=exc.body,
                operation="oauth_token",
            ) from exc

        payload = decode_body(response)
        access_token = payload.get("access_token") if isinstance(payload, dict) else None
        if not access_token:
            logger.error("token endpoint response had no access_token")
            raise AuthenticationError(
                "no access_token in response",
                status_code=response.status_code,
                body=response.text,
                operation="oauth_token",
            )

        expires_in = payload.get("expires_in") or self._settings.default_token_ttl_seconds
        try:
            ttl = float(expires_in)
        except (TypeError, ValueError):
            ttl = float(self._settings.default_token_ttl_seconds)

        logger.info("rbm access token obtained", extra={"expires_in": ttl})
        return AccessToken(value=str(access_token), expires_at=self._clock() + ttl)
