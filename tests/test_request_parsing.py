import base64
from datetime import date

import pytest

from instant_bookmark.app.core.errors import PayloadTooLargeError, ValidationError
from instant_bookmark.app.schemas.bookmark import ImageIngestRequest, UrlIngestRequest
from instant_bookmark.app.services.request_parsing import (
    decode_image_b64,
    default_image_filename,
    parse_auto_generate,
    parse_form_body,
    parse_json_body,
)


def test_default_filename_uses_date():
    assert default_image_filename(None, today=date(2024, 3, 7)) == "temp_2024-03-07.png"
    assert default_image_filename("   ", today=date(2024, 3, 7)) == "temp_2024-03-07.png"


def test_default_filename_adds_png_extension():
    assert default_image_filename("screenshot") == "screenshot.png"
    assert default_image_filename("photo.jpeg") == "photo.jpeg"


@pytest.mark.parametrize("value, expected", [(True, True), (False, False), ("true", True), ("False", False), (None, True)])
def test_parse_auto_generate(value, expected):
    assert parse_auto_generate(value) is expected


def test_parse_auto_generate_rejects_other_values():
    with pytest.raises(ValidationError):
        parse_auto_generate("yes")


def test_url_request_keeps_url_unchanged():
    request = parse_json_body({"type": "url", "url": "https://example.com", "autoGenerate": True})
    assert isinstance(request, UrlIngestRequest)
    assert request.url == "https://example.com"
    assert request.auto_generate is True


def test_manual_title_checked_before_kind():
    with pytest.raises(ValidationError) as exc:
        parse_json_body({"type": "unknown", "autoGenerate": False, "summary": "s"})
    assert "Title" in exc.value.message


def test_manual_fields_must_be_non_blank():
    with pytest.raises(ValidationError) as exc:
        parse_json_body({"type": "url", "url": "https://example.com", "autoGenerate": False, "title": "t", "summary": "  "})
    assert "Summary" in exc.value.message


def test_missing_type():
    with pytest.raises(ValidationError) as exc:
        parse_json_body({"url": "https://example.com", "autoGenerate": True})
    assert "type" in exc.value.message


def test_body_must_be_object():
    with pytest.raises(ValidationError):
        parse_json_body(["type", "url"])


def test_non_string_title_rejected():
    with pytest.raises(ValidationError):
        parse_json_body({"type": "url", "url": "https://example.com", "autoGenerate": False, "title": 5, "summary": "s"})


def test_image_request_decodes_base64():
    data = b"\x00\x01binary"
    request = parse_json_body({"type": "image", "data_b64": base64.b64encode(data).decode(), "autoGenerate": True})
    assert isinstance(request, ImageIngestRequest)
    assert request.image.data == data
    assert request.image.mime_type == "image/png"
    assert request.image.filename.endswith(".png")


def test_image_request_rejects_bad_base64():
    with pytest.raises(ValidationError):
        parse_json_body({"type": "image", "data_b64": "not*base64!", "autoGenerate": True})


def test_decode_image_b64_accepts_wrapped_lines_and_data_url():
    encoded = base64.b64encode(b"0123456789" * 10).decode()
    wrapped = "\n".join(encoded[i : i + 20] for i in range(0, len(encoded), 20))
    assert decode_image_b64(wrapped) == b"0123456789" * 10
    assert decode_image_b64("data:image/png;base64," + encoded) == b"0123456789" * 10


def test_image_size_limit():
    with pytest.raises(PayloadTooLargeError):
        parse_json_body(
            {"type": "image", "data_b64": base64.b64encode(b"12345").decode(), "autoGenerate": True},
            image_max_bytes=4,
        )


def test_form_defaults_to_image():
    request = parse_form_body({"autoGenerate": "true"}, b"bytes", file_name="", file_content_type=None)
    assert isinstance(request, ImageIngestRequest)
    assert request.image.filename.startswith("temp_")
    assert request.image.mime_type == "image/png"


def test_form_keeps_image_content_type():
    request = parse_form_body({}, b"bytes", file_name="a.webp", file_content_type="image/webp")
    assert request.image.mime_type == "image/webp"


def test_form_ignores_non_image_content_type():
    request = parse_form_body({}, b"bytes", file_name="a.bin", file_content_type="application/octet-stream")
    assert request.image.mime_type == "image/png"


def test_form_manual_fields():
    with pytest.raises(ValidationError) as exc:
        parse_form_body({"autoGenerate": "false", "manualTitle": "T"}, b"bytes")
    assert "Summary" in exc.value.message


def test_form_empty_file_rejected():
    with pytest.raises(ValidationError):
        parse_form_body({"autoGenerate": "true"}, b"")


@pytest.mark.parametrize("url", ["http://[::1", "https://[bad"])
def test_malformed_ipv6_url_is_a_validation_error(url):
    with pytest.raises(ValidationError) as exc:
        parse_json_body({"type": "url", "url": url, "autoGenerate": True})
    assert exc.value.message == "URL must be an absolute http or https address"
