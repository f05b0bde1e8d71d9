"""Reading request bodies after authentication has passed."""
from dataclasses import dataclass
from typing import Any, Dict, Optional

from fastapi import Request
from starlette.datastructures import UploadFile

from instant_bookmark.app.core.errors import UnsupportedMediaTypeError, ValidationError

JSON_CONTENT_TYPE = "application/json"
FORM_CONTENT_TYPE = "multipart/form-data"


def content_type_of(request: Request) -> str:
    return request.headers.get("content-type", "").split(";")[0].strip().lower()


async def read_json(request: Request) -> Any:
    if content_type_of(request) != JSON_CONTENT_TYPE:
        raise UnsupportedMediaTypeError("Invalid Content-Type. Expected application/json")
    try:
        return await request.json()
    except ValueError:
        raise ValidationError("Invalid JSON") from None


@dataclass
class FormPayload:
    fields: Dict[str, str]
    file_data: Optional[bytes]
    file_name: Optional[str]
    file_content_type: Optional[str]


async def read_form(request: Request) -> FormPayload:
    if content_type_of(request) != FORM_CONTENT_TYPE:
        raise UnsupportedMediaTypeError("Invalid Content-Type. Expected multipart/form-data")
    async with request.form() as form:
        fields = {key: value for key, value in form.items() if isinstance(value, str)}
        upload = form.get("file")
        if isinstance(upload, UploadFile):
            return FormPayload(fields, await upload.read(), upload.filename, upload.content_type)
        return FormPayload(fields, None, None, None)
