"""Global exception handling, upload error translation and request ids."""

import logging
import uuid

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from veo_backend.schemas.common import ErrorResponse, UploadErrorResponse
from veo_backend.services.upload_errors import (
    FileTooLarge,
    InvalidFileType,
    TooManyFiles,
    UnexpectedField,
    UploadError,
)

logger = logging.getLogger(__name__)


def translate_upload_error(exc: Exception, request_id: str | None = None) -> JSONResponse | None:
    """Map an upload-layer error to its 400 response; ``None`` for anything else."""
    if not isinstance(exc, UploadError):
        return None

    if isinstance(exc, FileTooLarge):
        body = UploadErrorResponse(
            error="File too large",
            message=f"File size exceeds {exc.max_size_mb}MB limit",
            max_size=exc.max_size_mb,
        )
    elif isinstance(exc, TooManyFiles):
        body = UploadErrorResponse(
            error="Too many files",
            message="Maximum 10 files allowed in batch upload",
        )
    elif isinstance(exc, UnexpectedField):
        body = UploadErrorResponse(
            error="Unexpected file field",
            message=f"Unexpected file field: {exc.field}",
        )
    elif isinstance(exc, InvalidFileType):
        body = UploadErrorResponse(error="Invalid file type", message=exc.message)
    else:
        # OtherUploadError and any future kind: raw message, logged downstream
        return JSONResponse(
            status_code=400,
            content=UploadErrorResponse(error="Upload error", message=exc.message).to_content(),
        )

    logger.warning(
        "Upload rejected: %s", exc.message,
        extra={"code": exc.code, "field": exc.field, "request_id": request_id},
    )
    return JSONResponse(status_code=400, content=body.to_content())


async def upload_error_handler(request: Request, exc: UploadError) -> JSONResponse:
    # Registered for UploadError only; other exceptions never reach this handler.
    return translate_upload_error(exc, getattr(request.state, "request_id", None))


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        try:
            response = await call_next(request)
            return response
        except Exception as exc:
            logger.exception(
                "Unhandled error: %s", exc,
                extra={"request_id": getattr(request.state, "request_id", None), "path": request.url.path},
            )
            return JSONResponse(
                status_code=500,
                content=ErrorResponse(code="INTERNAL_ERROR", message=str(exc)).model_dump(exclude_none=True),
            )


class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())[:8]
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response
