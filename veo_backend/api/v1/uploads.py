"""Upload API routes — single, batch and named-asset uploads, media lookup."""

import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from veo_backend.dependencies import get_request_id, get_upload_service
from veo_backend.middleware.upload import IntakeResult, upload_assets, upload_multiple, upload_single
from veo_backend.schemas.upload import MediaDeleteResponse, MediaInfo, MediaResponse
from veo_backend.services.upload_service import (
    FileValidationError,
    MetadataError,
    UploadService,
    parse_upload_metadata,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/upload", tags=["upload"])


def _bad_request(error: str, message: str | None = None, details: list[str] | None = None) -> JSONResponse:
    content: dict = {"error": error}
    if message is not None:
        content["message"] = message
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=content)


def _not_found(media_id: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"error": "File not found", "message": f"Media with ID {media_id} does not exist"},
    )


@router.post("", response_model=MediaResponse, status_code=status.HTTP_201_CREATED)
async def upload_file(
    request: Request,
    intake: IntakeResult = Depends(upload_single),
    service: UploadService = Depends(get_upload_service),
    request_id: str | None = Depends(get_request_id),
):
    logger.info(
        "File upload request received",
        extra={"request_id": request_id, "has_file": intake.file is not None, "upload_type": intake.category.value},
    )
    if intake.file is None:
        return _bad_request("No file uploaded", "Please select a file to upload")

    try:
        metadata = parse_upload_metadata(request.query_params, intake.form_fields)
        return await service.save_upload(intake.file, metadata)
    except MetadataError as e:
        return _bad_request("Invalid upload metadata", str(e), e.details)
    except FileValidationError as e:
        return _bad_request("File validation failed", details=e.details)


@router.post("/batch", response_model=list[MediaResponse], status_code=status.HTTP_201_CREATED)
async def upload_batch(
    request: Request,
    intake: IntakeResult = Depends(upload_multiple),
    service: UploadService = Depends(get_upload_service),
):
    if not intake.files:
        return _bad_request("No files uploaded", "Please select at least one file to upload")

    try:
        metadata = parse_upload_metadata(request.query_params, intake.form_fields)
        return await service.save_multiple(intake.files, metadata)
    except MetadataError as e:
        return _bad_request("Invalid upload metadata", str(e), e.details)
    except FileValidationError as e:
        return _bad_request("File validation failed", details=e.details)


@router.post("/assets", response_model=dict[str, MediaResponse], status_code=status.HTTP_201_CREATED)
async def upload_generation_assets(
    request: Request,
    intake: IntakeResult = Depends(upload_assets),
    service: UploadService = Depends(get_upload_service),
):
    """Reference image, source video and audio track for a generation request."""
    if not intake.files:
        return _bad_request("No files uploaded", "Provide referenceImage, videoFile or audioFile")

    try:
        metadata = parse_upload_metadata(request.query_params, intake.form_fields)
        stored = await service.save_multiple(intake.files, metadata, upload_assets.categories)
    except MetadataError as e:
        return _bad_request("Invalid upload metadata", str(e), e.details)
    except FileValidationError as e:
        return _bad_request("File validation failed", details=e.details)

    return {f.field_name: media for f, media in zip(intake.files, stored)}


@router.get("/{media_id}", response_model=MediaInfo)
async def get_media(media_id: str, service: UploadService = Depends(get_upload_service)):
    media = await service.get_media(media_id)
    if media is None:
        return _not_found(media_id)
    return media


@router.delete("/{media_id}", response_model=MediaDeleteResponse)
async def delete_media(media_id: str, service: UploadService = Depends(get_upload_service)):
    if not await service.delete_media(media_id):
        return _not_found(media_id)
    return MediaDeleteResponse(message="File deleted successfully", media_id=media_id)
