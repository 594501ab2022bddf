"""Upload service — metadata parsing, file validation, permanent storage."""

import json
import logging
import mimetypes
from datetime import datetime, timezone
from pathlib import Path
from typing import Mapping

from pydantic import ValidationError

from veo_backend.middleware.upload import IncomingFile
from veo_backend.schemas.upload import FileInfo, FileValidation, MediaInfo, MediaResponse, UploadMetadata
from veo_backend.services.content_types import ALLOWED_MIME, UploadCategory
from veo_backend.utils.storage import LocalStorage

logger = logging.getLogger(__name__)

EXPECTED_EXTENSIONS = {
    "image/jpeg": [".jpg", ".jpeg"],
    "image/png": [".png"],
    "image/webp": [".webp"],
    "image/gif": [".gif"],
    "video/mp4": [".mp4"],
    "video/quicktime": [".mov"],
    "video/x-msvideo": [".avi"],
    "video/webm": [".webm"],
    "video/x-matroska": [".mkv"],
    "audio/mpeg": [".mp3"],
    "audio/wav": [".wav"],
    "audio/ogg": [".ogg", ".oga"],
}


class MetadataError(ValueError):
    def __init__(self, message: str, details: list[str] | None = None):
        super().__init__(message)
        self.details = details or []


class FileValidationError(ValueError):
    def __init__(self, validations: list[FileValidation]):
        super().__init__("File validation failed")
        self.validations = validations

    @property
    def details(self) -> list[str]:
        return [err for v in self.validations for err in v.errors]


def parse_upload_metadata(query: Mapping[str, str], form: Mapping[str, str]) -> UploadMetadata:
    """Merge query and form metadata (query wins). Raises MetadataError."""
    tags = None
    raw_tags = form.get("tags")
    if raw_tags is not None:
        try:
            tags = json.loads(raw_tags)
        except json.JSONDecodeError:
            raise MetadataError("tags must be a valid JSON array of strings")

    data = {
        "type": query.get("type") or form.get("type"),
        "purpose": query.get("purpose") or form.get("purpose"),
        "description": form.get("description"),
        "tags": tags,
    }
    try:
        return UploadMetadata.model_validate({k: v for k, v in data.items() if v is not None})
    except ValidationError as e:
        details = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
        raise MetadataError("Invalid upload metadata", details)


def validate_uploaded_file(incoming: IncomingFile, category: UploadCategory, max_size_mb: int) -> FileValidation:
    errors: list[str] = []
    warnings: list[str] = []

    if incoming.size == 0:
        errors.append("File is empty")
    if incoming.size > max_size_mb * 1024 * 1024:
        errors.append(f"File size exceeds {max_size_mb}MB limit")

    allowed = ALLOWED_MIME[category]
    if incoming.mime_type not in allowed:
        errors.append(f"Invalid {category.value} type. Allowed: {', '.join(allowed)}")

    extension = Path(incoming.original_name).suffix.lower()
    expected = EXPECTED_EXTENSIONS.get(incoming.mime_type)
    if expected and extension not in expected:
        warnings.append(f"File extension {extension} doesn't match MIME type {incoming.mime_type}")

    return FileValidation(
        is_valid=not errors,
        errors=errors,
        warnings=warnings,
        file_info=FileInfo(
            name=incoming.original_name,
            size=incoming.size,
            type=incoming.mime_type,
            uploaded_as=incoming.filename,
        ),
    )


class UploadService:
    def __init__(self, storage: LocalStorage, max_size_mb: int):
        self.storage = storage
        self.max_size_mb = max_size_mb

    async def save_upload(
        self,
        incoming: IncomingFile,
        metadata: UploadMetadata,
        category: UploadCategory | None = None,
    ) -> MediaResponse:
        """Validate a temp file and copy it into permanent storage."""
        category = category or metadata.type
        validation = validate_uploaded_file(incoming, category, self.max_size_mb)
        if not validation.is_valid:
            raise FileValidationError([validation])
        return await self._store(incoming, metadata, category, validation)

    async def save_multiple(
        self,
        files: list[IncomingFile],
        metadata: UploadMetadata,
        categories: Mapping[str, UploadCategory] | None = None,
    ) -> list[MediaResponse]:
        """Validate every file first; store only if all of them pass."""
        categories = categories or {}
        checked = []
        for f in files:
            category = categories.get(f.field_name, metadata.type)
            checked.append((f, category, validate_uploaded_file(f, category, self.max_size_mb)))

        failed = [v for _, _, v in checked if not v.is_valid]
        if failed:
            raise FileValidationError(failed)

        results = []
        for f, category, validation in checked:
            results.append(await self._store(f, metadata, category, validation))
        return results

    async def _store(
        self,
        incoming: IncomingFile,
        metadata: UploadMetadata,
        category: UploadCategory,
        validation: FileValidation,
    ) -> MediaResponse:
        key = await self.storage.store(incoming.path, incoming.filename)
        logger.info(
            "Stored upload %s (%s, %d bytes)", key, incoming.mime_type, incoming.size,
            extra={"original_name": incoming.original_name, "purpose": metadata.purpose.value},
        )
        return MediaResponse(
            id=key,
            filename=key,
            original_name=incoming.original_name,
            mime_type=incoming.mime_type,
            file_size=incoming.size,
            public_url=await self.storage.get_url(key),
            uploaded_at=datetime.now(timezone.utc),
            type=category,
            purpose=metadata.purpose,
            description=metadata.description,
            tags=metadata.tags,
            validation=validation,
        )

    async def get_media(self, media_id: str) -> MediaInfo | None:
        try:
            st = await self.storage.stat(media_id)
        except FileNotFoundError:
            return None
        mime_type, _ = mimetypes.guess_type(media_id)
        return MediaInfo(
            id=media_id,
            filename=media_id,
            mime_type=mime_type or "application/octet-stream",
            file_size=st.st_size,
            public_url=await self.storage.get_url(media_id),
            uploaded_at=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
        )

    async def delete_media(self, media_id: str) -> bool:
        try:
            await self.storage.retrieve(media_id)
        except FileNotFoundError:
            return False
        await self.storage.delete(media_id)
        logger.info("Media deleted: %s", media_id)
        return True
