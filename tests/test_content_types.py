"""Tests for the content-type gate."""

import pytest

from veo_backend.services.content_types import (
    ALLOWED_MIME,
    UploadCategory,
    check_content_type,
    resolve_category,
)
from veo_backend.services.upload_errors import InvalidFileType, UploadError

ACCEPTED = [(category, mime) for category, mimes in ALLOWED_MIME.items() for mime in mimes]


@pytest.mark.parametrize("category,mime", ACCEPTED)
def test_allow_listed_types_are_accepted(category, mime):
    check_content_type(category, mime)


@pytest.mark.parametrize(
    "category,mime",
    [
        (UploadCategory.IMAGE, "video/mp4"),
        (UploadCategory.VIDEO, "image/png"),
        (UploadCategory.AUDIO, "audio/flac"),
        (UploadCategory.IMAGE, "text/plain"),
        (UploadCategory.VIDEO, ""),
    ],
)
def test_other_types_are_rejected_with_full_allow_list(category, mime):
    with pytest.raises(InvalidFileType) as exc_info:
        check_content_type(category, mime, field="file")

    err = exc_info.value
    assert isinstance(err, UploadError)
    assert err.category == category.value
    assert err.allowed == ALLOWED_MIME[category]
    assert err.field == "file"
    for allowed in ALLOWED_MIME[category]:
        assert allowed in err.message


@pytest.mark.parametrize("value", [None, "", "document", "IMAGE"])
def test_unknown_category_behaves_like_image(value):
    assert resolve_category(value) is UploadCategory.IMAGE
    check_content_type(value, "image/webp")
    with pytest.raises(InvalidFileType) as exc_info:
        check_content_type(value, "video/mp4")
    assert exc_info.value.message == (
        "Invalid file type. Allowed types for image: image/jpeg, image/png, image/webp, image/gif"
    )


def test_string_categories_resolve():
    assert resolve_category("video") is UploadCategory.VIDEO
    assert resolve_category("audio") is UploadCategory.AUDIO
    check_content_type("audio", "audio/ogg")
