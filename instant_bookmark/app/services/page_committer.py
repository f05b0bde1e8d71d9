import logging
from typing import Optional

import httpx

from instant_bookmark.app.core.config import Settings
from instant_bookmark.app.core.errors import CommitError
from instant_bookmark.app.schemas.bookmark import BookmarkPage, CommitResult
from instant_bookmark.app.services.notion_api import error_message, notion_headers, notion_timeout, notion_url
from instant_bookmark.app.services.page_blocks import PageBlockBuilder, page_properties

logger = logging.getLogger(__name__)


class NotionPageCommitter:
    """Creates one page in the bookmarks database per ``commit`` call."""

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        block_builder: Optional[PageBlockBuilder] = None,
    ):
        self._settings = settings
        self._transport = transport
        self._block_builder = block_builder or PageBlockBuilder()

    def build_payload(self, page: BookmarkPage) -> dict:
        return {
            "parent": {"database_id": self._settings.notion_database_id},
            "properties": page_properties(page),
            "children": self._block_builder.build(page),
        }

    async def commit(self, page: BookmarkPage) -> CommitResult:
        settings = self._settings
        if not settings.notion_api_key or not settings.notion_database_id:
            raise CommitError("Notion is not configured (NOTION_API_KEY / NOTION_DATABASE_ID missing)")

        payload = self.build_payload(page)
        try:
            async with httpx.AsyncClient(timeout=notion_timeout(settings), transport=self._transport) as client:
                resp = await client.post(
                    notion_url(settings, "/pages"),
                    json=payload,
                    headers=notion_headers(settings),
                )
        except httpx.HTTPError as exc:
            raise CommitError(f"Failed to save to Notion: {exc}") from exc

        if resp.status_code >= 400:
            message = error_message(resp)
            logger.warning("Notion page creation failed: status=%s, message=%s", resp.status_code, message)
            raise CommitError(f"Failed to save to Notion: {message}")

        try:
            data = resp.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}
        result = CommitResult(page_id=data.get("id"), page_url=data.get("url"))
        logger.info("Bookmark page created", extra={"page_id": result.page_id, "source": page.source.value})
        return result
