"""Upload request/response schemas."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from veo_backend.services.content_types import UploadCategory


class UploadPurpose(str, Enum):
    REFERENCE = "reference"
    IMPORT = "import"
    AVATAR = "avatar"
    THUMBNAIL = "thumbnail"


class UploadMetadata(BaseModel):
    type: UploadCategory = UploadCategory.IMAGE
    purpose: UploadPurpose = UploadPurpose.REFERENCE
    description: str | None = None
    tags: list[str] = Field(default_factory=list)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FileInfo(CamelModel):
    name: str
    size: int
    type: str
    uploaded_as: str


class FileValidation(CamelModel):
    is_valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    file_info: FileInfo


class MediaInfo(CamelModel):
    id: str
    filename: str
    mime_type: str
    file_size: int
    public_url: str
    storage_type: str = "LOCAL"
    status: str = "READY"
    uploaded_at: datetime


class MediaResponse(MediaInfo):
    original_name: str
    type: UploadCategory
    purpose: UploadPurpose
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    validation: FileValidation


class MediaDeleteResponse(CamelModel):
    message: str
    media_id: str
