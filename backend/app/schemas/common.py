"""Common API response schemas."""

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Consistent JSON envelope for successful API responses."""

    success: bool = True
    data: T


class ErrorResponse(BaseModel):
    """Envelope rendered for every failed request."""

    success: bool = False
    error: str
    details: list[dict[str, object]] | None = None
