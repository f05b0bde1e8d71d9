"""
Single-step endpoints used by the web form: summarize a URL, upload and
summarize a screenshot, then save the reviewed bookmark.
"""
import logging

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError as PydanticValidationError

from instant_bookmark.app.api.deps import get_app_settings, get_ingestion_service, verify_api_key
from instant_bookmark.app.api.payloads import read_form, read_json
from instant_bookmark.app.core.config import Settings
from instant_bookmark.app.core.errors import ValidationError
from instant_bookmark.app.schemas.bookmark import (
    BookmarkPage,
    ContentSummary,
    ProcessedContentResponse,
    SaveBookmarkRequest,
    UploadHandle,
)
from instant_bookmark.app.services.ingestion_service import IngestionService
from instant_bookmark.app.services.request_parsing import is_absolute_http_url, parse_form_body

router = APIRouter(tags=["bookmarks"], dependencies=[Depends(verify_api_key)])
logger = logging.getLogger(__name__)


@router.post("/process-url", response_model=ContentSummary)
async def process_url(request: Request, service: IngestionService = Depends(get_ingestion_service)):
    body = await read_json(request)
    url = body.get("url") if isinstance(body, dict) else None
    if not isinstance(url, str) or not url.strip():
        raise ValidationError("Missing or invalid URL in request body")
    if not is_absolute_http_url(url):
        raise ValidationError("URL must be an absolute http or https address")
    return await service.generate_for_url(url)


@router.post("/process-screenshot")
async def process_screenshot(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    service: IngestionService = Depends(get_ingestion_service),
):
    form = await read_form(request)
    fields = {**form.fields, "type": "image"}
    parsed = parse_form_body(
        fields,
        form.file_data,
        file_name=form.file_name,
        file_content_type=form.file_content_type,
        image_max_bytes=settings.image_max_bytes,
    )
    content, handle = await service.process_screenshot(
        parsed.image, parsed.auto_generate, parsed.manual_title, parsed.manual_summary
    )
    response = ProcessedContentResponse(title=content.title, summary=content.summary, upload_id=handle.id)
    return response.model_dump(by_alias=True)


@router.post("/save-to-notion")
async def save_to_notion(request: Request, service: IngestionService = Depends(get_ingestion_service)):
    body = await read_json(request)
    try:
        bookmark = SaveBookmarkRequest.model_validate(body)
    except PydanticValidationError as exc:
        fields = ", ".join(".".join(str(part) for part in err["loc"]) or "body" for err in exc.errors())
        raise ValidationError(f"Invalid bookmark data: {fields}") from None
    if not bookmark.title or not bookmark.summary:
        raise ValidationError("Missing required bookmark data (title, summary).")

    page = BookmarkPage(
        title=bookmark.title,
        summary=bookmark.summary,
        source=bookmark.source,
        url=bookmark.url,
        upload_handle=UploadHandle(id=bookmark.upload_id) if bookmark.upload_id else None,
        notes=bookmark.thoughts,
    )
    result = await service.save_bookmark(page)
    return {"ok": True, "pageId": result.page_id}
