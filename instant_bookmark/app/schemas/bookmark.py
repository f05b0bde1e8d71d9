import enum
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class SourceKind(str, enum.Enum):
    URL = "url"
    SCREENSHOT = "screenshot"


class ImagePayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    data: bytes
    filename: str
    mime_type: str = "image/png"


class UrlIngestRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["url"] = "url"
    url: str
    auto_generate: bool = True
    manual_title: Optional[str] = None
    manual_summary: Optional[str] = None
    notes: Optional[str] = None


class ImageIngestRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["image"] = "image"
    image: ImagePayload
    auto_generate: bool = True
    manual_title: Optional[str] = None
    manual_summary: Optional[str] = None
    notes: Optional[str] = None


IngestRequest = Union[UrlIngestRequest, ImageIngestRequest]


class ContentSummary(BaseModel):
    """Title and summary produced by the summarizer (or a placeholder)."""

    title: str
    summary: str


class UploadHandle(BaseModel):
    """A file accepted by the document store but not yet attached to a page."""

    model_config = ConfigDict(frozen=True)

    id: str


class BookmarkPage(BaseModel):
    """The record committed as one page in the bookmarks database."""

    title: str
    summary: str
    source: SourceKind
    url: Optional[str] = None
    upload_handle: Optional[UploadHandle] = None
    notes: Optional[str] = None


class CommitResult(BaseModel):
    page_id: Optional[str] = None
    page_url: Optional[str] = None


class IngestResponse(BaseModel):
    ok: bool
    error: Optional[str] = None


class ProcessedContentResponse(BaseModel):
    title: str
    summary: str
    upload_id: Optional[str] = Field(default=None, serialization_alias="uploadId")


class SaveBookmarkRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = None
    summary: Optional[str] = None
    source: SourceKind = SourceKind.URL
    url: Optional[str] = None
    thoughts: Optional[str] = None
    upload_id: Optional[str] = Field(default=None, alias="uploadId")
