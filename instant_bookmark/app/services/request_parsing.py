"""
Turns a raw ingestion payload (JSON object or multipart form) into an
``IngestRequest``.

Checks run in a fixed order and the first failure wins:
manual title/summary (when auto-generation is off), then the field the
request kind needs, then the kind itself.
"""
import base64
import binascii
import re
from datetime import date
from typing import Any, Mapping, Optional
from urllib.parse import urlparse

from instant_bookmark.app.core.errors import PayloadTooLargeError, ValidationError
from instant_bookmark.app.schemas.bookmark import (
    ImageIngestRequest,
    ImagePayload,
    IngestRequest,
    UrlIngestRequest,
)


DEFAULT_IMAGE_MIME = "image/png"
_EXTENSION_RE = re.compile(r"\.[^/.]+$")


def default_image_filename(filename: Optional[str], today: Optional[date] = None) -> str:
    name = (filename or "").strip()
    if not name:
        day = today or date.today()
        name = f"temp_{day.isoformat()}.png"
    if not _EXTENSION_RE.search(name):
        name += ".png"
    return name


def is_absolute_http_url(url: str) -> bool:
    try:
        parsed = urlparse(url)
    except ValueError:
        # urlparse rejects malformed IPv6 hosts such as "http://[::1".
        return False
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def decode_image_b64(data_b64: str) -> bytes:
    # Mobile clients wrap long base64 lines and sometimes send a data: URL.
    if data_b64.startswith("data:") and "," in data_b64:
        data_b64 = data_b64.split(",", 1)[1]
    return base64.b64decode("".join(data_b64.split()), validate=True)


def parse_auto_generate(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in {"true", "false"}:
        return value.strip().lower() == "true"
    raise ValidationError("'autoGenerate' must be true or false")


def _optional_str(payload: Mapping[str, Any], key: str) -> Optional[str]:
    value = payload.get(key)
    if value is None or isinstance(value, str):
        return value
    raise ValidationError(f"'{key}' must be a string")


def _check_manual_fields(auto_generate: bool, title: Optional[str], summary: Optional[str]) -> None:
    if auto_generate:
        return
    if not title or not title.strip():
        raise ValidationError("Title is required and cannot be empty when autoGenerate is false")
    if not summary or not summary.strip():
        raise ValidationError("Summary is required and cannot be empty when autoGenerate is false")


def _check_image_size(data: bytes, max_bytes: int) -> None:
    if max_bytes and len(data) > max_bytes:
        raise PayloadTooLargeError("Image too large")


def _url_request(
    url: Optional[str], auto_generate: bool, title: Optional[str], summary: Optional[str], notes: Optional[str]
) -> UrlIngestRequest:
    if not url:
        raise ValidationError('URL (url) is required when type is "url"')
    if not is_absolute_http_url(url):
        raise ValidationError("URL must be an absolute http or https address")
    return UrlIngestRequest(
        url=url,
        auto_generate=auto_generate,
        manual_title=title,
        manual_summary=summary,
        notes=notes,
    )


def parse_json_body(body: Any, image_max_bytes: int = 0) -> IngestRequest:
    if not isinstance(body, dict):
        raise ValidationError("Invalid JSON")

    auto_generate = parse_auto_generate(body.get("autoGenerate"))
    title = _optional_str(body, "title")
    summary = _optional_str(body, "summary")
    notes = _optional_str(body, "thoughts")
    _check_manual_fields(auto_generate, title, summary)

    kind = body.get("type")
    if kind == "url":
        return _url_request(_optional_str(body, "url"), auto_generate, title, summary, notes)

    if kind == "image":
        data_b64 = _optional_str(body, "data_b64")
        if not data_b64:
            raise ValidationError('Base64 image data (data_b64) is required when type is "image"')
        try:
            data = decode_image_b64(data_b64)
        except (binascii.Error, ValueError):
            raise ValidationError("Base64 image data (data_b64) is not valid base64") from None
        if not data:
            raise ValidationError('Base64 image data (data_b64) is required when type is "image"')
        _check_image_size(data, image_max_bytes)
        image = ImagePayload(
            data=data,
            filename=default_image_filename(_optional_str(body, "filename")),
            mime_type=DEFAULT_IMAGE_MIME,
        )
        return ImageIngestRequest(
            image=image,
            auto_generate=auto_generate,
            manual_title=title,
            manual_summary=summary,
            notes=notes,
        )

    raise ValidationError('Invalid or missing "type" in payload. Must be "url" or "image".')


def parse_form_body(
    fields: Mapping[str, Any],
    file_data: Optional[bytes],
    file_name: Optional[str] = None,
    file_content_type: Optional[str] = None,
    image_max_bytes: int = 0,
) -> IngestRequest:
    """Parse the multipart variant: a binary ``file`` plus string fields.

    ``type`` defaults to ``image``; a form may also carry a ``url`` with
    ``type=url``.
    """
    auto_generate = parse_auto_generate(fields.get("autoGenerate"))
    title = _optional_str(fields, "manualTitle")
    summary = _optional_str(fields, "manualSummary")
    notes = _optional_str(fields, "thoughts")
    _check_manual_fields(auto_generate, title, summary)

    kind = fields.get("type") or "image"
    if kind == "url":
        return _url_request(_optional_str(fields, "url"), auto_generate, title, summary, notes)

    if kind == "image":
        if not file_data:
            raise ValidationError("Missing or invalid 'file' in form data")
        _check_image_size(file_data, image_max_bytes)
        mime_type = file_content_type if file_content_type and file_content_type.startswith("image/") else DEFAULT_IMAGE_MIME
        image = ImagePayload(
            data=file_data,
            filename=default_image_filename(file_name),
            mime_type=mime_type,
        )
        return ImageIngestRequest(
            image=image,
            auto_generate=auto_generate,
            manual_title=title,
            manual_summary=summary,
            notes=notes,
        )

    raise ValidationError('Invalid or missing "type" in payload. Must be "url" or "image".')
