"""Upload request/response schemas."""

from pydantic import BaseModel, Field


class Base64UploadRequest(BaseModel):
    """Base64 (optionally data-URL prefixed) file payload."""

    data: str = Field(min_length=1)
    filename: str = Field(min_length=1)
    type: str | None = None


class UploadResult(BaseModel):
    """Stored file location and metadata."""

    url: str
    filename: str
    size: int
    type: str | None
