"""Generation (prediction record) ORM model."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, CreatedAtMixin, IdMixin


class Generation(Base, IdMixin, CreatedAtMixin):
    """One submitted prediction and its tracked lifecycle."""

    __tablename__ = "generations"

    model_owner: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    model_name: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    model_version: Mapped[str | None] = mapped_column(String(255), nullable=True)
    prompt: Mapped[str] = mapped_column(Text, nullable=False)
    parameters_json: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    replicate_id: Mapped[str | None] = mapped_column(String(255), unique=True, index=True, nullable=True)
    status: Mapped[str] = mapped_column(String(32), default="pending", index=True, nullable=False)
    output_json: Mapped[Any | None] = mapped_column(JSON, nullable=True)
    image_urls_json: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    blob_urls_json: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    duration_ms: Mapped[int | None] = mapped_column(Integer, nullable=True)
