import secrets
from typing import Optional

from fastapi import Depends, Header

from instant_bookmark.app.core.config import Settings, get_settings
from instant_bookmark.app.core.errors import AuthError
from instant_bookmark.app.services.content_extractor import ContentExtractor
from instant_bookmark.app.services.file_uploader import NotionFileUploader
from instant_bookmark.app.services.ingestion_service import IngestionService
from instant_bookmark.app.services.page_committer import NotionPageCommitter
from instant_bookmark.app.services.summarizer import Summarizer


def get_app_settings() -> Settings:
    return get_settings()


def verify_api_key(
    x_api_key: Optional[str] = Header(default=None, alias="X-API-Key"),
    settings: Settings = Depends(get_app_settings),
) -> None:
    # Missing and wrong keys are reported the same way.
    expected = settings.api_access_key
    if not expected or x_api_key is None:
        raise AuthError()
    if not secrets.compare_digest(x_api_key.encode("utf-8"), expected.encode("utf-8")):
        raise AuthError()


def get_content_extractor(settings: Settings = Depends(get_app_settings)) -> ContentExtractor:
    return ContentExtractor(settings)


def get_summarizer(settings: Settings = Depends(get_app_settings)) -> Summarizer:
    return Summarizer(settings)


def get_file_uploader(settings: Settings = Depends(get_app_settings)) -> NotionFileUploader:
    return NotionFileUploader(settings)


def get_page_committer(settings: Settings = Depends(get_app_settings)) -> NotionPageCommitter:
    return NotionPageCommitter(settings)


def get_ingestion_service(
    extractor: ContentExtractor = Depends(get_content_extractor),
    summarizer: Summarizer = Depends(get_summarizer),
    uploader: NotionFileUploader = Depends(get_file_uploader),
    committer: NotionPageCommitter = Depends(get_page_committer),
) -> IngestionService:
    return IngestionService(extractor, summarizer, uploader, committer)
