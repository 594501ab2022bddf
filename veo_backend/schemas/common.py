"""Shared Pydantic schemas."""

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    code: str
    message: str
    details: dict | None = None


class UploadErrorResponse(BaseModel):
    """Body of every 400 produced by the upload layer."""

    error: str
    message: str
    max_size: int | None = Field(default=None, serialization_alias="maxSize")

    def to_content(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)
