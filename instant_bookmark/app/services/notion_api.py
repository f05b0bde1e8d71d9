"""Shared request helpers for the Notion REST API."""
from typing import Dict

import httpx

from instant_bookmark.app.core.config import Settings


def notion_headers(settings: Settings, json_body: bool = True) -> Dict[str, str]:
    headers = {
        "Authorization": f"Bearer {settings.notion_api_key}",
        "Notion-Version": settings.notion_version,
    }
    if json_body:
        headers["Content-Type"] = "application/json"
    return headers


def notion_url(settings: Settings, path: str) -> str:
    return f"{settings.notion_base_url.rstrip('/')}/{path.lstrip('/')}"


def notion_timeout(settings: Settings) -> httpx.Timeout:
    return httpx.Timeout(settings.notion_timeout_seconds, connect=10.0)


def error_message(resp: httpx.Response) -> str:
    """Best-effort error text: Notion's JSON ``message``, else body, else reason."""
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return resp.text[:500] or resp.reason_phrase or f"HTTP {resp.status_code}"
