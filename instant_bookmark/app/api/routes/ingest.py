import logging

from fastapi import APIRouter, Depends, Request

from instant_bookmark.app.api.deps import get_app_settings, get_ingestion_service, verify_api_key
from instant_bookmark.app.api.payloads import FORM_CONTENT_TYPE, content_type_of, read_form, read_json
from instant_bookmark.app.core.config import Settings
from instant_bookmark.app.schemas.bookmark import IngestRequest, IngestResponse
from instant_bookmark.app.services.ingestion_service import IngestionService
from instant_bookmark.app.services.request_parsing import parse_form_body, parse_json_body

router = APIRouter(tags=["ingest"])
logger = logging.getLogger(__name__)


async def read_ingest_request(request: Request, settings: Settings) -> IngestRequest:
    if content_type_of(request) == FORM_CONTENT_TYPE:
        form = await read_form(request)
        return parse_form_body(
            form.fields,
            form.file_data,
            file_name=form.file_name,
            file_content_type=form.file_content_type,
            image_max_bytes=settings.image_max_bytes,
        )
    body = await read_json(request)
    return parse_json_body(body, image_max_bytes=settings.image_max_bytes)


@router.post("/ingest", response_model=IngestResponse, response_model_exclude_none=True)
async def ingest_bookmark(
    request: Request,
    _: None = Depends(verify_api_key),
    settings: Settings = Depends(get_app_settings),
    service: IngestionService = Depends(get_ingestion_service),
):
    """
    Save a URL or a screenshot as a bookmark page.

    Accepts the JSON body (``type`` = ``url`` | ``image`` with base64
    ``data_b64``) or a multipart form with a binary ``file``. The body is only
    read after the API key check, so an unauthorized caller always gets 401.
    """
    ingest_request = await read_ingest_request(request, settings)
    result = await service.ingest(ingest_request)
    logger.info("Bookmark ingested", extra={"kind": ingest_request.kind, "page_id": result.page_id})
    return IngestResponse(ok=True)
