"""
Ingestion orchestration: URL and screenshot bookmarks.

URL flow:   extract page text -> summarize -> commit page
Image flow: upload file -> summarize -> commit page

Steps run strictly in sequence and nothing is retried. The first failing step
aborts the request; an upload that succeeded before a failed commit is left
in the document store.
"""
import logging
from typing import Awaitable, Optional, Tuple, TypeVar

from instant_bookmark.app.core.errors import CommitError, IngestError, PipelineError, ValidationError
from instant_bookmark.app.schemas.bookmark import (
    BookmarkPage,
    CommitResult,
    ContentSummary,
    ImageIngestRequest,
    ImagePayload,
    IngestRequest,
    SourceKind,
    UploadHandle,
    UrlIngestRequest,
)
from instant_bookmark.app.services.content_extractor import ContentExtractor
from instant_bookmark.app.services.file_uploader import NotionFileUploader
from instant_bookmark.app.services.page_committer import NotionPageCommitter
from instant_bookmark.app.services.summarizer import Summarizer

logger = logging.getLogger(__name__)

T = TypeVar("T")


class IngestionService:
    def __init__(
        self,
        extractor: ContentExtractor,
        summarizer: Summarizer,
        uploader: NotionFileUploader,
        committer: NotionPageCommitter,
    ):
        self._extractor = extractor
        self._summarizer = summarizer
        self._uploader = uploader
        self._committer = committer

    async def ingest(self, request: IngestRequest) -> CommitResult:
        if isinstance(request, UrlIngestRequest):
            return await self._ingest_url(request)
        if isinstance(request, ImageIngestRequest):
            return await self._ingest_image(request)
        raise ValidationError('Invalid or missing "type" in payload. Must be "url" or "image".')

    async def generate_for_url(self, url: str) -> ContentSummary:
        text = await self._step("extraction", self._extractor.extract(url))
        return await self._step("summarization", self._summarizer.summarize_text(text))

    async def process_screenshot(
        self,
        image: ImagePayload,
        auto_generate: bool,
        manual_title: Optional[str] = None,
        manual_summary: Optional[str] = None,
    ) -> Tuple[ContentSummary, UploadHandle]:
        # The file is stored whether or not a summary is generated.
        handle = await self._step("upload", self._uploader.upload(image))
        if auto_generate:
            content = await self._step("summarization", self._summarizer.summarize_image(image))
        else:
            content = ContentSummary(title=manual_title or "", summary=manual_summary or "")
        return content, handle

    async def save_bookmark(self, page: BookmarkPage) -> CommitResult:
        return await self._step("commit", self._committer.commit(page))

    async def _ingest_url(self, request: UrlIngestRequest) -> CommitResult:
        logger.info("Ingesting URL bookmark", extra={"url": request.url, "auto_generate": request.auto_generate})
        if request.auto_generate:
            content = await self.generate_for_url(request.url)
        else:
            content = ContentSummary(title=request.manual_title or "", summary=request.manual_summary or "")

        page = BookmarkPage(
            title=content.title,
            summary=content.summary,
            source=SourceKind.URL,
            url=request.url,
            notes=request.notes,
        )
        return await self.save_bookmark(page)

    async def _ingest_image(self, request: ImageIngestRequest) -> CommitResult:
        logger.info(
            "Ingesting screenshot bookmark",
            extra={
                "upload_filename": request.image.filename,
                "size_bytes": len(request.image.data),
                "auto_generate": request.auto_generate,
            },
        )
        content, handle = await self.process_screenshot(
            request.image,
            request.auto_generate,
            request.manual_title,
            request.manual_summary,
        )
        page = BookmarkPage(
            title=content.title,
            summary=content.summary,
            source=SourceKind.SCREENSHOT,
            upload_handle=handle,
            notes=request.notes,
        )
        try:
            return await self.save_bookmark(page)
        except CommitError:
            logger.warning("Uploaded file left unattached after failed commit", extra={"upload_id": handle.id})
            raise

    async def _step(self, name: str, awaitable: Awaitable[T]) -> T:
        try:
            return await awaitable
        except IngestError as exc:
            logger.warning("Ingestion step %s failed: %s", name, exc.message)
            raise
        except Exception as exc:  # noqa: BLE001
            logger.exception("Ingestion step %s crashed", name)
            raise PipelineError(str(exc) or exc.__class__.__name__) from exc
