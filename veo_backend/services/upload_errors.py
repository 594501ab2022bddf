"""Upload-layer error kinds raised during multipart intake."""


class UploadError(Exception):
    """Base class for every failure the upload intake reports to the client."""

    code = "UPLOAD_ERROR"

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.field = field


class FileTooLarge(UploadError):
    code = "LIMIT_FILE_SIZE"

    def __init__(self, field: str, max_size_mb: int):
        super().__init__("File too large", field)
        self.max_size_mb = max_size_mb


class TooManyFiles(UploadError):
    code = "LIMIT_FILE_COUNT"

    def __init__(self, limit: int, field: str | None = None):
        super().__init__("Too many files", field)
        self.limit = limit


class UnexpectedField(UploadError):
    code = "LIMIT_UNEXPECTED_FILE"

    def __init__(self, field: str):
        super().__init__("Unexpected field", field)


class InvalidFileType(UploadError):
    code = "INVALID_FILE_TYPE"

    def __init__(self, category: str, allowed: list[str], mime_type: str = "", field: str | None = None):
        super().__init__(
            f"Invalid file type. Allowed types for {category}: {', '.join(allowed)}",
            field,
        )
        self.category = category
        self.allowed = list(allowed)
        self.mime_type = mime_type


class OtherUploadError(UploadError):
    """Any other failure of the multipart layer (field limit, malformed body)."""
