import base64
import json
from io import BytesIO

import httpx
import pytest
from PIL import Image

from instant_bookmark.app.schemas.bookmark import ImagePayload
from instant_bookmark.app.services.summarizer import (
    SummaryParseError,
    Summarizer,
    parse_summary_content,
    prepare_image_for_vision,
)


def completion(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def png_bytes(size=(100, 100)) -> bytes:
    out = BytesIO()
    Image.new("RGB", size, color=(200, 30, 30)).save(out, format="PNG")
    return out.getvalue()


def test_parse_summary_content_strips_code_fence():
    content = '```json\n{"title": " Release notes ", "summary": "What changed."}\n```'
    result = parse_summary_content(content)
    assert result.title == "Release notes"
    assert result.summary == "What changed."


@pytest.mark.parametrize(
    "content",
    [None, "", "plain text", "[1, 2]", '{"title": "only"}', '{"title": "", "summary": "s"}'],
)
def test_parse_summary_content_rejects(content):
    with pytest.raises(SummaryParseError):
        parse_summary_content(content)


@pytest.mark.asyncio
async def test_summarize_text_sends_truncated_text(settings):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=completion('{"title": "T", "summary": "S"}'))

    summarizer = Summarizer(
        settings.model_copy(update={"llm_text_max_chars": 10}), transport=httpx.MockTransport(handler)
    )
    result = await summarizer.summarize_text("0123456789abcdef")

    assert (result.title, result.summary) == ("T", "S")
    assert seen["url"] == "https://llm.test/v1/chat/completions"
    assert seen["auth"] == "Bearer sk-test"
    body = seen["body"]
    assert body["model"] == settings.llm_model_name
    assert body["response_format"] == {"type": "json_object"}
    assert body["max_tokens"] == 200
    assert body["messages"][1] == {"role": "user", "content": "0123456789"}


@pytest.mark.asyncio
async def test_summarize_text_provider_error(settings):
    def handler(request):
        return httpx.Response(429, json={"error": {"message": "Rate limit reached"}})

    summarizer = Summarizer(settings, transport=httpx.MockTransport(handler))
    result = await summarizer.summarize_text("some page")
    assert result.title == "Text Summarization Failed (API Error 429)"
    assert "Rate limit reached" in result.summary


@pytest.mark.asyncio
async def test_summarize_text_unusable_response(settings):
    def handler(request):
        return httpx.Response(200, json=completion('{"summary": "no title"}'))

    summarizer = Summarizer(settings, transport=httpx.MockTransport(handler))
    result = await summarizer.summarize_text("some page")
    assert result.title == "Text Summarization Failed"
    assert result.summary.startswith("Error processing text with LLM:")


@pytest.mark.asyncio
async def test_missing_key_returns_placeholder_without_calling(settings):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json=completion('{"title": "T", "summary": "S"}'))

    summarizer = Summarizer(
        settings.model_copy(update={"openai_api_key": None}), transport=httpx.MockTransport(handler)
    )
    text_result = await summarizer.summarize_text("page")
    image_result = await summarizer.summarize_image(ImagePayload(data=b"x", filename="a.png"))

    assert "LLM Key Missing" in text_result.title
    assert image_result.title == "Processed Screenshot Title (Placeholder - LLM Key Missing)"
    assert calls == []


@pytest.mark.asyncio
async def test_summarize_image_sends_data_url(settings):
    seen = {}
    data = png_bytes((10, 10))

    def handler(request):
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=completion('{"title": "Chart", "summary": "A red square."}'))

    summarizer = Summarizer(settings, transport=httpx.MockTransport(handler))
    result = await summarizer.summarize_image(ImagePayload(data=data, filename="chart.png"))

    assert result.title == "Chart"
    body = seen["body"]
    assert body["max_tokens"] == 150
    image_part = body["messages"][1]["content"][1]
    assert image_part["type"] == "image_url"
    assert image_part["image_url"]["detail"] == "low"
    assert image_part["image_url"]["url"] == "data:image/png;base64," + base64.b64encode(data).decode()


@pytest.mark.asyncio
async def test_summarize_image_provider_error(settings):
    def handler(request):
        return httpx.Response(500, text="upstream down")

    summarizer = Summarizer(settings, transport=httpx.MockTransport(handler))
    result = await summarizer.summarize_image(ImagePayload(data=b"not-an-image", filename="a.png"))
    assert result.title == "Content Generation Failed (API Error 500)"


def test_prepare_image_downscales_large_images():
    image = ImagePayload(data=png_bytes((100, 100)), filename="big.png")
    data, mime_type = prepare_image_for_vision(image, max_pixels=2500)
    assert mime_type == "image/png"
    with Image.open(BytesIO(data)) as resized:
        assert resized.size == (50, 50)


def test_prepare_image_passes_through_small_and_undecodable():
    small = ImagePayload(data=png_bytes((10, 10)), filename="small.png")
    assert prepare_image_for_vision(small, max_pixels=2500) == (small.data, "image/png")

    junk = ImagePayload(data=b"definitely not an image", filename="junk.jpg", mime_type="image/jpeg")
    assert prepare_image_for_vision(junk, max_pixels=10) == (junk.data, "image/jpeg")
