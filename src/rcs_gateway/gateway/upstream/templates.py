"""Rich template directory and media upload calls."""

from __future__ import annotations

import asyncio
import json
import logging
import mimetypes
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any
from urllib.parse import quote

import httpx

from rcs_gateway.core.config import RbmSettings
from rcs_gateway.core.errors import (
    GatewayError,
    MalformedUpstreamResponseError,
    UpstreamRejectedError,
)

from .http import RbmHttpClient, decode_body
from .token import TokenProvider

logger = logging.getLogger(__name__)

TEMPLATE_FIELD = "rich_template_data"
TEMPLATE_MEDIA_FIELD = "multimedia_files"


class TemplateRegistry:
    """Create, list and delete templates, and upload the media they reference.

    Templates are not cached: the upstream directory is the system of record.
    Media is a two-step protocol. Upload it with :meth:`upload_file`, then put
    the returned identifier into the template spec passed to
    :meth:`create_template`.
    """

    def __init__(
        self,
        *,
        http: RbmHttpClient,
        tokens: TokenProvider,
        settings: RbmSettings,
    ) -> None:
        self._http = http
        self._tokens = tokens
        self._settings = settings

    async def create_template(
        self,
        spec: Mapping[str, Any],
        *,
        media: Sequence[Path] = (),
    ) -> Any:
        template_json = json.dumps(spec, ensure_ascii=False).encode("utf-8")
        parts: list[tuple[str, tuple[Any, ...]]] = [(TEMPLATE_FIELD, (None, template_json))]
        for path in media:
            content = await asyncio.to_thread(Path(path).read_bytes)
            parts.append((TEMPLATE_MEDIA_FIELD, (Path(path).name, content, _guess_mime(path))))

        response = await self._authorized(
            "POST",
            self._settings.templates_url,
            operation="create_template",
            files=parts,
        )

        logger.info(
            "rcs template submitted",
            extra={"template": spec.get("name"), "media_files": len(media)},
        )
        return decode_body(response)

    async def list_templates(self) -> Any:
        response = await self._authorized(
            "GET", self._settings.templates_url, operation="list_templates"
        )
        return decode_body(response)

    async def delete_template(self, template_id: str) -> dict[str, bool]:
        await self._authorized(
            "DELETE",
            f"{self._settings.templates_url}/{quote(template_id, safe='')}",
            operation="delete_template",
        )
        logger.info("rcs template deleted", extra={"template": template_id})
        return {"success": True}

    async def upload_file(
        self,
        source: bytes | str | Path,
        mime_type: str,
        *,
        filename: str | None = None,
    ) -> str:
        """Upload media and return the identifier the platform assigned.

        ``source`` is either the raw bytes, in which case ``filename`` names the
        part, or a local path read off the event loop.

        The platform names the asset either ``name`` or ``fileId``; ``name``
        wins when both are present.
        """

        if isinstance(source, bytes):
            content = source
            filename = filename or "upload"
        else:
            path = Path(source)
            content = await asyncio.to_thread(path.read_bytes)
            filename = filename or path.name

        response = await self._authorized(
            "POST",
            self._settings.upload_url,
            operation="upload_file",
            params={"botId": self._settings.bot_id},
            data={"fileType": mime_type},
            files={"fileContent": (filename, content, mime_type)},
        )

        payload = decode_body(response)
        file_id = None
        if isinstance(payload, dict):
            file_id = payload.get("name") or payload.get("fileId")
        if not file_id:
            raise MalformedUpstreamResponseError(
                "upload response did not include a file identifier",
                status_code=response.status_code,
                body=response.text,
                operation="upload_file",
            )

        logger.info("rcs media uploaded", extra={"file_id": file_id, "mime_type": mime_type})
        return str(file_id)

    async def _authorized(
        self, method: str, url: str, *, operation: str, **kwargs: Any
    ) -> httpx.Response:
        token = await self._tokens.get_access_token()
        headers = {"Authorization": f"Bearer {token}"}
        try:
            return await self._http.request(
                method, url, operation=operation, headers=headers, **kwargs
            )
        except UpstreamRejectedError as exc:
            if exc.status_code == 401:
                self._tokens.invalidate()
            raise
        except GatewayError:
            logger.error("rcs template call failed", extra={"operation": operation})
            raise


def _guess_mime(path: str | Path) -> str:
    guessed, _ = mimetypes.guess_type(str(path))
    return guessed or "application/octet-stream"
