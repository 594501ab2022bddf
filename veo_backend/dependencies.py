"""FastAPI dependency injection — intake config, storage, upload service."""

from fastapi import Depends, Request

from veo_backend.middleware.upload import IntakeConfig
from veo_backend.services.upload_service import UploadService
from veo_backend.utils.storage import LocalStorage


def get_storage(request: Request) -> LocalStorage:
    return request.app.state.storage


def get_intake_config(request: Request) -> IntakeConfig:
    return request.app.state.intake_config


def get_upload_service(
    storage: LocalStorage = Depends(get_storage),
    intake_config: IntakeConfig = Depends(get_intake_config),
) -> UploadService:
    return UploadService(storage, intake_config.limits.max_file_size_mb)


def get_request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)
