"""Generation record persistence services."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models.generation import Generation
from app.replicate.output import is_terminal_status
from app.schemas.generation import GenerationCreate, GenerationStats, GenerationSummary, GenerationUpdate

logger = logging.getLogger(__name__)

_PENDING_STATUSES = ("pending", "starting", "processing")
_UPDATE_COLUMNS: dict[str, str] = {
    "status": "status",
    "replicate_id": "replicate_id",
    "output": "output_json",
    "image_urls": "image_urls_json",
    "blob_urls": "blob_urls_json",
    "error": "error",
    "completed_at": "completed_at",
    "duration_ms": "duration_ms",
}


class GenerationNotFoundError(LookupError):
    """Raised when an update targets a generation that does not exist."""


def create_generation(db: Session, payload: GenerationCreate) -> Generation:
    """Persist a new generation in ``pending`` status."""

    generation = Generation(
        model_owner=payload.model_owner,
        model_name=payload.model_name,
        model_version=payload.model_version,
        prompt=payload.prompt,
        parameters_json=dict(payload.parameters),
        replicate_id=payload.replicate_id,
        status="pending",
        image_urls_json=[],
        blob_urls_json=[],
        started_at=datetime.now(timezone.utc),
    )
    db.add(generation)
    db.commit()
    db.refresh(generation)
    logger.info(
        "generations.created id=%s model=%s/%s replicate_id=%s",
        generation.id,
        generation.model_owner,
        generation.model_name,
        generation.replicate_id,
    )
    return generation


def update_generation(
    db: Session,
    generation_id: int,
    changes: GenerationUpdate | dict[str, Any],
) -> Generation:
    """Apply a partial update by primary key."""

    generation = get_generation(db, generation_id)
    if generation is None:
        raise GenerationNotFoundError(f"Generation {generation_id} not found")
    return _apply_update(db, generation, changes)


def update_generation_by_replicate_id(
    db: Session,
    replicate_id: str,
    changes: GenerationUpdate | dict[str, Any],
) -> Generation:
    """Apply a partial update by Replicate prediction id."""

    generation = get_generation_by_replicate_id(db, replicate_id)
    if generation is None:
        raise GenerationNotFoundError(f"Generation with Replicate ID {replicate_id} not found")
    return _apply_update(db, generation, changes)


def get_generation(db: Session, generation_id: int) -> Generation | None:
    return db.get(Generation, generation_id)


def get_generation_by_replicate_id(db: Session, replicate_id: str) -> Generation | None:
    return db.scalars(select(Generation).where(Generation.replicate_id == replicate_id)).first()


def list_generations_for_model(db: Session, model_owner: str, model_name: str) -> list[Generation]:
    """All generations for one model, newest first."""

    stmt = (
        select(Generation)
        .where(Generation.model_owner == model_owner, Generation.model_name == model_name)
        .order_by(Generation.created_at.desc(), Generation.id.desc())
    )
    return list(db.scalars(stmt).all())


def list_recent_generations(db: Session, limit: int = 10) -> list[Generation]:
    """Most recent generations across all models."""

    stmt = select(Generation).order_by(Generation.created_at.desc(), Generation.id.desc()).limit(limit)
    return list(db.scalars(stmt).all())


def get_generation_stats(db: Session) -> GenerationStats:
    """Counts by outcome plus the overall success rate."""

    total = db.scalar(select(func.count(Generation.id))) or 0
    successful = _count_with_status(db, ("succeeded",))
    failed = _count_with_status(db, ("failed",))
    pending = _count_with_status(db, _PENDING_STATUSES)
    return GenerationStats(
        total=total,
        successful=successful,
        failed=failed,
        pending=pending,
        success_rate=successful / total if total > 0 else 0.0,
    )


def format_generation(generation: Generation) -> GenerationSummary:
    """Display summary that prefers archived blob URLs over provider URLs."""

    return GenerationSummary(
        id=generation.id,
        model=f"{generation.model_owner}/{generation.model_name}",
        prompt=generation.prompt,
        status=generation.status,
        image_urls=list(generation.blob_urls_json or generation.image_urls_json or []),
        created_at=generation.created_at,
        completed_at=generation.completed_at,
        duration_ms=generation.duration_ms,
        error=generation.error,
    )


def _count_with_status(db: Session, statuses: tuple[str, ...]) -> int:
    return db.scalar(select(func.count(Generation.id)).where(Generation.status.in_(statuses))) or 0


def _apply_update(
    db: Session,
    generation: Generation,
    changes: GenerationUpdate | dict[str, Any],
) -> Generation:
    if is_terminal_status(generation.status):
        logger.info(
            "generations.update_ignored_terminal id=%s status=%s",
            generation.id,
            generation.status,
        )
        return generation

    values = changes.model_dump(exclude_unset=True) if isinstance(changes, GenerationUpdate) else changes
    for key, value in values.items():
        column = _UPDATE_COLUMNS.get(key)
        if column is None:
            raise ValueError(f"Unsupported generation field: {key}")
        setattr(generation, column, value)
    db.commit()
    db.refresh(generation)
    logger.info("generations.updated id=%s status=%s fields=%s", generation.id, generation.status, sorted(values))
    return generation


def completion_fields(generation: Generation, status: str) -> dict[str, Any]:
    """``completed_at``/``duration_ms`` changes for a transition into ``status``."""

    if not is_terminal_status(status):
        return {}
    completed_at = datetime.now(timezone.utc)
    fields: dict[str, Any] = {"completed_at": completed_at}
    if generation.started_at is not None:
        started_at = generation.started_at
        if started_at.tzinfo is None:
            started_at = started_at.replace(tzinfo=timezone.utc)
        fields["duration_ms"] = max(int((completed_at - started_at).total_seconds() * 1000), 0)
    return fields
