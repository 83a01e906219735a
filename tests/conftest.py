from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import httpx
import pytest

from rcs_gateway.core.config import RbmSettings
from rcs_gateway.gateway.upstream import RbmHttpClient, TokenProvider

AUTH_URL = "https://auth.rbm.test/oauth/token"
SERVER_ROOT = "https://rbm.test"


class FakeClock:
    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@dataclass
class FakeRbmPlatform:
    """In-memory stand-in for the upstream RBM platform behind ``httpx.MockTransport``."""

    token_payload: dict[str, Any] = field(
        default_factory=lambda: {"access_token": "token-1", "expires_in": 3600}
    )
    token_status: int = 200
    responders: dict[tuple[str, str], Callable[[httpx.Request], httpx.Response]] = field(
        default_factory=dict
    )
    requests: list[httpx.Request] = field(default_factory=list)
    issued: int = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if str(request.url).startswith(AUTH_URL):
            return self._token_response()

        responder = self.responders.get((request.method, request.url.path))
        if responder is not None:
            return responder(request)
        if request.method == "POST" and request.url.path.endswith("/agentMessages"):
            return httpx.Response(200, json=json.loads(request.content))
        return httpx.Response(200, json={"ok": True})

    def respond(
        self,
        method: str,
        path: str,
        responder: Callable[[httpx.Request], httpx.Response] | httpx.Response,
    ) -> None:
        if isinstance(responder, httpx.Response):
            fixed = responder
            self.responders[(method, path)] = lambda _request: fixed
        else:
            self.responders[(method, path)] = responder

    @property
    def auth_requests(self) -> list[httpx.Request]:
        return [request for request in self.requests if str(request.url).startswith(AUTH_URL)]

    @property
    def api_requests(self) -> list[httpx.Request]:
        return [
            request for request in self.requests if not str(request.url).startswith(AUTH_URL)
        ]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def _token_response(self) -> httpx.Response:
        if self.token_status >= 400:
            return httpx.Response(self.token_status, json={"error": "invalid_client"})
        self.issued += 1
        payload = dict(self.token_payload)
        if payload.get("access_token") == "token-1":
            payload["access_token"] = f"token-{self.issued}"
        return httpx.Response(self.token_status, json=payload)


@pytest.fixture
def rbm_settings() -> RbmSettings:
    return RbmSettings(
        server_root=SERVER_ROOT,
        auth_url=AUTH_URL,
        client_id="client-id",
        client_secret="client-secret",
        bot_id="bot-42",
        webhook_secret=None,
    )


@pytest.fixture
def platform() -> FakeRbmPlatform:
    return FakeRbmPlatform()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def http(platform: FakeRbmPlatform) -> RbmHttpClient:
    return RbmHttpClient(timeout=5.0, transport=platform.transport())


@pytest.fixture
def tokens(http: RbmHttpClient, rbm_settings: RbmSettings, clock: FakeClock) -> TokenProvider:
    return TokenProvider(http=http, settings=rbm_settings, clock=clock)
