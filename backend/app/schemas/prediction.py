"""Prediction request/response schemas."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

PredictionStatus = Literal["starting", "processing", "succeeded", "failed", "canceled"]


class Prediction(BaseModel):
    """Prediction as returned by the Replicate API."""

    model_config = ConfigDict(extra="allow")

    id: str
    model: str | None = None
    version: str | None = None
    input: dict[str, Any] = Field(default_factory=dict)
    output: Any = None
    status: str
    created_at: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    error: Any = None
    logs: str | None = None
    metrics: dict[str, Any] | None = None
    urls: dict[str, str] | None = None


class PredictionCreateRequest(BaseModel):
    """Create a prediction from a resolved version or an ``owner/name`` model."""

    version: str | None = Field(default=None, min_length=1)
    model: str | None = Field(default=None, pattern=r"^[^/\s]+/[^/\s]+$")
    input: dict[str, Any] = Field(default_factory=dict)
    webhook: str | None = Field(default=None, pattern=r"^https?://")
    webhook_events_filter: list[str] | None = None
    stream: bool = False

    @model_validator(mode="after")
    def _require_target(self) -> "PredictionCreateRequest":
        if not self.version and not self.model:
            raise ValueError("Either version or model is required")
        return self


class WebhookPayload(BaseModel):
    """Status update pushed by Replicate to our webhook endpoints."""

    model_config = ConfigDict(extra="allow")

    id: str = Field(min_length=1)
    status: PredictionStatus
    input: dict[str, Any] = Field(default_factory=dict)
    output: Any = None
    error: str | None = None
    logs: str | None = None
    started_at: str | None = None
    completed_at: str | None = None
    created_at: str = Field(min_length=1)
    version: str | None = None
    model: str | None = None


class CancelResult(BaseModel):
    """Cancellation acknowledgement."""

    id: str
    message: str = "Prediction canceled"
