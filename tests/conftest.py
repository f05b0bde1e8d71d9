import pytest
from fastapi.testclient import TestClient

from instant_bookmark.app.api.deps import (
    get_app_settings,
    get_content_extractor,
    get_file_uploader,
    get_page_committer,
    get_summarizer,
)
from instant_bookmark.app.core.config import Settings
from instant_bookmark.app.main import create_app
from instant_bookmark.app.schemas.bookmark import CommitResult, ContentSummary, UploadHandle

API_KEY = "test-access-key"


class FakeExtractor:
    def __init__(self, text: str = "Extracted page text"):
        self.text = text
        self.error = None
        self.calls = []

    async def extract(self, url):
        self.calls.append(url)
        if self.error:
            raise self.error
        return self.text


class FakeSummarizer:
    def __init__(self):
        self.result = ContentSummary(title="Generated Title", summary="Generated summary of the content.")
        self.text_calls = []
        self.image_calls = []

    async def summarize_text(self, text):
        self.text_calls.append(text)
        return self.result

    async def summarize_image(self, image):
        self.image_calls.append(image)
        return self.result


class FakeUploader:
    def __init__(self, upload_id: str = "upload-123"):
        self.upload_id = upload_id
        self.error = None
        self.calls = []

    async def upload(self, image):
        self.calls.append(image)
        if self.error:
            raise self.error
        return UploadHandle(id=self.upload_id)


class FakeCommitter:
    def __init__(self):
        self.error = None
        self.pages = []

    async def commit(self, page):
        self.pages.append(page)
        if self.error:
            raise self.error
        return CommitResult(page_id=f"page-{len(self.pages)}")


class Fakes:
    def __init__(self):
        self.extractor = FakeExtractor()
        self.summarizer = FakeSummarizer()
        self.uploader = FakeUploader()
        self.committer = FakeCommitter()

    def downstream_calls(self) -> int:
        return (
            len(self.extractor.calls)
            + len(self.summarizer.text_calls)
            + len(self.summarizer.image_calls)
            + len(self.uploader.calls)
            + len(self.committer.pages)
        )


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        API_ACCESS_KEY=API_KEY,
        NOTION_API_KEY="notion-secret",
        NOTION_DATABASE_ID="db-123",
        NOTION_BASE_URL="https://notion.test/v1",
        OPENAI_API_KEY="sk-test",
        OPENAI_BASE_URL="https://llm.test/v1",
        BROWSERLESS_ENDPOINT="https://browser.test/bql",
        BROWSERLESS_TOKEN="browser-token",
    )


@pytest.fixture
def fakes():
    return Fakes()


@pytest.fixture
def app(settings, fakes):
    app = create_app()
    app.dependency_overrides[get_app_settings] = lambda: settings
    app.dependency_overrides[get_content_extractor] = lambda: fakes.extractor
    app.dependency_overrides[get_summarizer] = lambda: fakes.summarizer
    app.dependency_overrides[get_file_uploader] = lambda: fakes.uploader
    app.dependency_overrides[get_page_committer] = lambda: fakes.committer
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def auth_headers():
    return {"X-API-Key": API_KEY}
