"""
Two-step single-part file upload to Notion.

1. ``POST /file_uploads`` creates the upload and returns ``id`` + ``upload_url``.
2. The bytes are POSTed as multipart form data to ``upload_url``.

No completion call is made: a single-part upload is attachable as soon as
its bytes are sent, so the id from step 1 is returned as the handle.
"""
import logging
from typing import Optional

import httpx

from instant_bookmark.app.core.config import Settings
from instant_bookmark.app.core.errors import UploadInitiationError, UploadTransferError
from instant_bookmark.app.schemas.bookmark import ImagePayload, UploadHandle
from instant_bookmark.app.services.notion_api import error_message, notion_headers, notion_timeout, notion_url

logger = logging.getLogger(__name__)


class NotionFileUploader:
    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._settings = settings
        self._transport = transport

    async def upload(self, image: ImagePayload) -> UploadHandle:
        settings = self._settings
        if not settings.notion_api_key:
            raise UploadInitiationError("Notion is not configured (NOTION_API_KEY missing)")

        async with httpx.AsyncClient(timeout=notion_timeout(settings), transport=self._transport) as client:
            upload_id, upload_url = await self._initiate(client, image)
            await self._send_bytes(client, image, upload_id, upload_url)

        logger.info("File upload complete", extra={"upload_id": upload_id, "upload_filename": image.filename})
        return UploadHandle(id=upload_id)

    async def _initiate(self, client: httpx.AsyncClient, image: ImagePayload) -> tuple[str, str]:
        payload = {
            "filename": image.filename,
            "content_type": image.mime_type,
            "mode": "single_part",
        }
        try:
            resp = await client.post(
                notion_url(self._settings, "/file_uploads"),
                json=payload,
                headers=notion_headers(self._settings),
            )
        except httpx.HTTPError as exc:
            raise UploadInitiationError(f"Failed to initiate file upload: {exc}") from exc

        if resp.status_code >= 400:
            message = error_message(resp)
            logger.warning("Notion file upload creation failed: status=%s, message=%s", resp.status_code, message)
            raise UploadInitiationError(f"Failed to initiate file upload with Notion: {message}")

        try:
            data = resp.json()
        except ValueError:
            data = None
        upload_id = data.get("id") if isinstance(data, dict) else None
        upload_url = data.get("upload_url") if isinstance(data, dict) else None
        if not upload_id or not upload_url:
            raise UploadInitiationError("Invalid response from Notion when creating file upload: missing id or upload_url")
        return upload_id, upload_url

    async def _send_bytes(self, client: httpx.AsyncClient, image: ImagePayload, upload_id: str, upload_url: str) -> None:
        try:
            resp = await client.post(
                upload_url,
                files={"file": (image.filename, image.data, image.mime_type)},
                headers=notion_headers(self._settings, json_body=False),
            )
        except httpx.HTTPError as exc:
            raise UploadTransferError(f"Failed to send file data to Notion: {exc}") from exc

        if resp.status_code >= 400:
            message = error_message(resp)
            logger.warning(
                "Notion file upload send failed: status=%s, message=%s",
                resp.status_code,
                message,
                extra={"upload_id": upload_id},
            )
            raise UploadTransferError(f"Failed to send file data to Notion: {message}")
