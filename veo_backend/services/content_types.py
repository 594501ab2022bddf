"""Content-type gate — MIME allow-lists keyed by upload category."""

from enum import Enum

from veo_backend.services.upload_errors import InvalidFileType


class UploadCategory(str, Enum):
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"


ALLOWED_MIME: dict[UploadCategory, list[str]] = {
    UploadCategory.IMAGE: ["image/jpeg", "image/png", "image/webp", "image/gif"],
    UploadCategory.VIDEO: [
        "video/mp4",
        "video/quicktime",
        "video/x-msvideo",
        "video/webm",
        "video/x-matroska",
    ],
    UploadCategory.AUDIO: ["audio/mpeg", "audio/wav", "audio/ogg"],
}


def resolve_category(value: str | None) -> UploadCategory:
    """Map a client-declared category to a known one, defaulting to image."""
    try:
        return UploadCategory(value)
    except ValueError:
        return UploadCategory.IMAGE


def check_content_type(category: str | UploadCategory | None, mime_type: str, field: str | None = None) -> None:
    """Raise InvalidFileType unless ``mime_type`` is allowed for ``category``."""
    resolved = resolve_category(category)
    allowed = ALLOWED_MIME[resolved]
    if mime_type not in allowed:
        raise InvalidFileType(resolved.value, allowed, mime_type=mime_type, field=field)
