"""Generation record request/response schemas."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

GenerationStatus = Literal["pending", "starting", "processing", "succeeded", "failed", "canceled"]


class GenerationCreate(BaseModel):
    """Payload for creating a generation record."""

    model_config = ConfigDict(protected_namespaces=())

    model_owner: str = Field(min_length=1)
    model_name: str = Field(min_length=1)
    model_version: str | None = None
    prompt: str = Field(min_length=1)
    parameters: dict[str, Any] = Field(default_factory=dict)
    replicate_id: str | None = None


class GenerationRunRequest(GenerationCreate):
    """Create a generation record and submit its prediction in one call."""


class GenerationUpdate(BaseModel):
    """Partial update; only explicitly set fields are applied."""

    status: GenerationStatus | None = None
    replicate_id: str | None = None
    output: Any = None
    image_urls: list[str] | None = None
    blob_urls: list[str] | None = None
    error: str | None = None
    completed_at: datetime | None = None
    duration_ms: int | None = Field(default=None, ge=0)


class GenerationRead(BaseModel):
    """Serialized generation record."""

    model_config = ConfigDict(from_attributes=True, protected_namespaces=())

    id: int
    model_owner: str
    model_name: str
    model_version: str | None
    prompt: str
    parameters_json: dict[str, Any]
    replicate_id: str | None
    status: str
    output_json: Any
    image_urls_json: list[str]
    blob_urls_json: list[str]
    error: str | None
    created_at: datetime
    started_at: datetime | None
    completed_at: datetime | None
    duration_ms: int | None


class GenerationSummary(BaseModel):
    """Display-oriented generation summary."""

    id: int
    model: str
    prompt: str
    status: str
    image_urls: list[str]
    created_at: datetime
    completed_at: datetime | None
    duration_ms: int | None
    error: str | None


class GenerationStats(BaseModel):
    """Aggregate counters across all generation records."""

    total: int
    successful: int
    failed: int
    pending: int
    success_rate: float
