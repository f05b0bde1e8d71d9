"""
Error taxonomy for the ingestion pipeline.

Every error carries the HTTP status it is reported with; the exception handler
in ``main.py`` renders any of them as ``{"ok": false, "error": message}``.
"""
from starlette import status


class IngestError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(IngestError):
    """Bad or missing request fields."""

    status_code = status.HTTP_400_BAD_REQUEST


class UnsupportedMediaTypeError(ValidationError):
    status_code = status.HTTP_415_UNSUPPORTED_MEDIA_TYPE


class PayloadTooLargeError(ValidationError):
    status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE


class AuthError(IngestError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class PipelineError(IngestError):
    """A downstream step failed; the remaining steps were not run."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class ExtractionError(PipelineError):
    pass


class UploadInitiationError(PipelineError):
    pass


class UploadTransferError(PipelineError):
    pass


class CommitError(PipelineError):
    pass
