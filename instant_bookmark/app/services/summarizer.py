"""
Title/summary generation through an OpenAI-compatible chat completions API.

The summarizer never raises: a missing key, a network failure, an HTTP error
or an unusable response all turn into a placeholder ``ContentSummary`` so the
bookmark can still be saved.
"""
import base64
import json
import logging
import re
from io import BytesIO
from typing import Any, Dict, List, Optional

import httpx
from PIL import Image, UnidentifiedImageError

from instant_bookmark.app.core.config import Settings
from instant_bookmark.app.schemas.bookmark import ContentSummary, ImagePayload

logger = logging.getLogger(__name__)

TEXT_SYSTEM_PROMPT = """You are an AI assistant.
You are given a text from a webpage, your task is to generate a title and summary for the text.
Reply ONLY with a JSON object that has two keys: 'title' (string, concise, max 10 words) and 'summary' (string, roughly 50 words).
Focus on the main content of the provided text. If the webpage already has a title, the title should be directly extracted.
Use the original language of the text."""

IMAGE_SYSTEM_PROMPT = """You are an AI assistant.
Reply ONLY with a JSON object that has two keys: 'title' (string, concise, max 10 words) and 'summary' (string, short, max 50 words).
If the image is a screenshot of a webpage or a document that contains title, the title should be directly extracted.
Use the original language of the image if it contains text."""

IMAGE_USER_PROMPT = "Analyze this image and provide a title and summary based on its content."


class SummaryParseError(ValueError):
    pass


class ProviderHTTPError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code


def _strip_code_fence(text: str) -> str:
    txt = text.strip()
    if txt.startswith("```"):
        txt = re.sub(r"^```[a-zA-Z0-9_-]*\s*", "", txt, count=1)
        txt = re.sub(r"\s*```$", "", txt, count=1).strip()
    return txt


def parse_summary_content(content: Any) -> ContentSummary:
    """Parse the model's message content into a ContentSummary.

    Raises SummaryParseError unless the content is a JSON object with
    non-empty string ``title`` and ``summary`` fields.
    """
    if not isinstance(content, str) or not content.strip():
        raise SummaryParseError("LLM response has no message content")
    try:
        data = json.loads(_strip_code_fence(content))
    except json.JSONDecodeError as exc:
        raise SummaryParseError(f"LLM response is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise SummaryParseError("LLM response is not a JSON object")

    title = data.get("title")
    summary = data.get("summary")
    if not isinstance(title, str) or not title.strip() or not isinstance(summary, str) or not summary.strip():
        raise SummaryParseError("LLM response JSON is missing title or summary")
    return ContentSummary(title=title.strip(), summary=summary.strip())


def prepare_image_for_vision(image: ImagePayload, max_pixels: int) -> tuple[bytes, str]:
    """
    Downscale screenshots above the pixel budget. Images within budget, and
    bytes Pillow cannot decode, are passed through unchanged.
    """
    try:
        img = Image.open(BytesIO(image.data))
        width, height = img.size
    except (UnidentifiedImageError, OSError):
        logger.warning("Could not decode %s for resizing; sending original bytes", image.filename)
        return image.data, image.mime_type

    pixels = width * height
    if pixels <= max_pixels:
        return image.data, image.mime_type

    scale = (max_pixels / pixels) ** 0.5
    new_size = (max(1, int(width * scale)), max(1, int(height * scale)))
    resized = img.convert("RGB").resize(new_size, Image.LANCZOS)
    out = BytesIO()
    resized.save(out, format="PNG")
    logger.info("Downscaled %s from %dx%d to %dx%d", image.filename, width, height, *new_size)
    return out.getvalue(), "image/png"


class Summarizer:
    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._settings = settings
        self._transport = transport

    async def summarize_text(self, text: str) -> ContentSummary:
        if not self._settings.openai_api_key:
            logger.error("OPENAI_API_KEY is not set. Returning placeholder text summary.")
            return ContentSummary(
                title="Summarized Text Title (Placeholder - LLM Key Missing)",
                summary="This is a placeholder summary for the text because the LLM API key was not provided.",
            )

        messages = [
            {"role": "system", "content": TEXT_SYSTEM_PROMPT},
            {"role": "user", "content": text[: self._settings.llm_text_max_chars]},
        ]
        try:
            result = await self._complete(messages, max_tokens=200)
        except ProviderHTTPError as exc:
            logger.warning("LLM provider error during text summarization: %s", exc)
            return ContentSummary(
                title=f"Text Summarization Failed (API Error {exc.status_code})",
                summary=f"LLM API Error (text summarization): {exc}",
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning("Text summarization failed: %s", exc)
            return ContentSummary(
                title="Text Summarization Failed",
                summary=f"Error processing text with LLM: {exc}",
            )
        logger.info("Generated title and summary from text content")
        return result

    async def summarize_image(self, image: ImagePayload) -> ContentSummary:
        if not self._settings.openai_api_key:
            logger.error("OPENAI_API_KEY is not set. Returning placeholder screenshot summary.")
            return ContentSummary(
                title="Processed Screenshot Title (Placeholder - LLM Key Missing)",
                summary="This is a placeholder summary because the LLM API key was not provided.",
            )

        try:
            data, mime_type = prepare_image_for_vision(image, self._settings.llm_image_max_pixels)
            data_url = f"data:{mime_type};base64,{base64.b64encode(data).decode('utf-8')}"
            messages = [
                {"role": "system", "content": IMAGE_SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": IMAGE_USER_PROMPT},
                        {"type": "image_url", "image_url": {"url": data_url, "detail": "low"}},
                    ],
                },
            ]
            result = await self._complete(messages, max_tokens=150)
        except ProviderHTTPError as exc:
            logger.warning("LLM provider error for screenshot %s: %s", image.filename, exc)
            return ContentSummary(
                title=f"Content Generation Failed (API Error {exc.status_code})",
                summary=f"LLM API Error: {exc}",
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning("Screenshot summarization failed for %s: %s", image.filename, exc)
            return ContentSummary(
                title="Content Generation Failed",
                summary=f"Error processing screenshot with LLM: {exc}",
            )
        logger.info("Generated title and summary for screenshot %s", image.filename)
        return result

    async def _complete(self, messages: List[Dict[str, Any]], max_tokens: int) -> ContentSummary:
        settings = self._settings
        payload = {
            "model": settings.llm_model_name,
            "response_format": {"type": "json_object"},
            "messages": messages,
            "max_tokens": max_tokens,
        }
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {settings.openai_api_key}",
        }
        timeout = httpx.Timeout(settings.llm_timeout_seconds, connect=10.0)
        async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
            resp = await client.post(
                f"{settings.openai_base_url.rstrip('/')}/chat/completions",
                json=payload,
                headers=headers,
            )

        if resp.status_code >= 400:
            message = resp.text[:500]
            try:
                body = resp.json()
                if isinstance(body, dict) and isinstance(body.get("error"), dict):
                    message = body["error"].get("message") or message
            except ValueError:
                pass
            raise ProviderHTTPError(resp.status_code, message)

        data = resp.json()
        content = (data.get("choices") or [{}])[0].get("message", {}).get("content")
        return parse_summary_content(content)
