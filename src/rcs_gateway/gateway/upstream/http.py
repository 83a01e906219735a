"""Shared httpx client for every call to the upstream RCS platform."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from prometheus_client import Counter

from rcs_gateway.core.errors import (
    UpstreamNetworkError,
    UpstreamRejectedError,
    UpstreamTimeoutError,
)

logger = logging.getLogger(__name__)

UPSTREAM_REQUESTS = Counter(
    "rbm_upstream_requests_total",
    "Calls made to the upstream RCS platform.",
    ["operation", "outcome"],
)


class RbmHttpClient:
    """Thin wrapper over ``httpx.AsyncClient`` that normalises upstream failures.

    Non-2xx responses are logged with their status and body and raised as
    :class:`UpstreamRejectedError`; timeouts and transport failures become
    :class:`UpstreamTimeoutError` / :class:`UpstreamNetworkError`. Nothing is
    retried here.
    """

    def __init__(
        self,
        *,
        timeout: float,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def close(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        method: str,
        url: str,
        *,
        operation: str,
        **kwargs: Any,
    ) -> httpx.Response:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as exc:
            UPSTREAM_REQUESTS.labels(operation, "timeout").inc()
            logger.error(
                "upstream request timed out",
                extra={"operation": operation, "url": url},
            )
            raise UpstreamTimeoutError(
                f"{operation} timed out", operation=operation
            ) from exc
        except httpx.TransportError as exc:
            UPSTREAM_REQUESTS.labels(operation, "network_error").inc()
            logger.error(
                "upstream request failed",
                extra={"operation": operation, "url": url, "error": str(exc)},
            )
            raise UpstreamNetworkError(
                f"{operation} failed: {exc}", operation=operation
            ) from exc

        if response.is_error:
            UPSTREAM_REQUESTS.labels(operation, "rejected").inc()
            body = response.text
            logger.error(
                "upstream rejected request",
                extra={"operation": operation, "status": response.status_code, "body": body},
            )
            raise UpstreamRejectedError(
                f"{operation} rejected by upstream with status {response.status_code}",
                status_code=response.status_code,
                body=body,
                operation=operation,
            )

        UPSTREAM_REQUESTS.labels(operation, "ok").inc()
        return response


def decode_body(response: httpx.Response) -> Any:
    """Return the JSON body when there is one, the raw text otherwise."""

    if not response.content:
        return {}
    try:
        return response.json()
    except ValueError:
        return response.text
