"""
Page text extraction through a hosted headless browser (Browserless BrowserQL).

One GraphQL mutation opens the page, waits for the first contentful paint and
returns the page's visible text.
"""
import logging
from typing import Optional

import httpx

from instant_bookmark.app.core.config import Settings
from instant_bookmark.app.core.errors import ExtractionError

logger = logging.getLogger(__name__)

SCRAPE_MUTATION = """
mutation Scrape($target: String!) {
  goto(url: $target, waitUntil: firstContentfulPaint) { status time }
  pageText: text { text }
}
"""


class ContentExtractor:
    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._settings = settings
        self._transport = transport

    async def extract(self, url: str) -> str:
        settings = self._settings
        if not settings.browserless_token:
            raise ExtractionError("Browser automation is not configured (BROWSERLESS_TOKEN missing)")

        timeout_seconds = settings.extraction_timeout_seconds
        payload = {"query": SCRAPE_MUTATION, "variables": {"target": url}}
        logger.info("Extracting page text", extra={"url": url})

        # The client is closed on every exit path, including timeouts.
        timeout = httpx.Timeout(timeout_seconds, connect=10.0)
        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
                resp = await client.post(
                    settings.browserless_endpoint,
                    params={"token": settings.browserless_token},
                    json=payload,
                )
        except httpx.TimeoutException:
            logger.warning("Page extraction timed out after %ss for %s", timeout_seconds, url)
            raise ExtractionError(f"Page extraction timed out after {timeout_seconds:g} seconds") from None
        except httpx.HTTPError as exc:
            logger.warning("Browser automation request failed for %s: %s", url, exc)
            raise ExtractionError(f"Browser automation request failed: {exc}") from exc

        if resp.status_code >= 400:
            raise ExtractionError(f"Browser automation HTTP {resp.status_code}: {resp.text[:500]}")

        try:
            data = resp.json()
        except ValueError:
            raise ExtractionError("Browser automation returned a non-JSON response") from None

        if not isinstance(data, dict):
            raise ExtractionError("Browser automation returned an invalid response")
        if data.get("errors"):
            messages = "; ".join(
                str(err.get("message", err)) if isinstance(err, dict) else str(err) for err in data["errors"]
            )
            raise ExtractionError(f"Browser automation error: {messages}")

        text = ((data.get("data") or {}).get("pageText") or {}).get("text")
        if not isinstance(text, str) or not text.strip():
            raise ExtractionError("Browser automation returned no page text")

        logger.info("Page text extracted: %d chars", len(text), extra={"url": url})
        return text
