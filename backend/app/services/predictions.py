"""Prediction lifecycle services: submit, poll, cancel and generation tracking."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

from sqlalchemy.orm import Session

from app.config import get_settings
from app.models.generation import Generation
from app.replicate.client import (
    PredictionProvider,
    ReplicateClient,
    ReplicateConfigurationError,
    ReplicateError,
)
from app.replicate.output import extract_output_urls, is_terminal_status, parse_model_version
from app.schema.model_registry import format_model_id
from app.schema.validation import coerce_registry_input
from app.schemas.generation import GenerationCreate, GenerationUpdate
from app.schemas.prediction import Prediction
from app.services.generations import (
    GenerationNotFoundError,
    completion_fields,
    create_generation,
    get_generation,
    update_generation,
)

logger = logging.getLogger(__name__)

DEFAULT_EVENTS_FILTER = ["start", "output", "logs", "completed"]


class PredictionTimeoutError(RuntimeError):
    """Raised when polling exhausts its attempts before a terminal status."""


def get_default_replicate_client() -> PredictionProvider:
    """Return the configured Replicate client."""

    settings = get_settings()
    return ReplicateClient(
        api_token=settings.replicate_api_token,
        base_url=settings.replicate_base_url,
        timeout_seconds=settings.replicate_timeout_seconds,
    )


def resolve_model_version(
    client: PredictionProvider,
    owner: str,
    name: str,
    version_id: str | None = None,
) -> str:
    """Return ``owner/name:version``, fetching the latest version when none is given."""

    if version_id:
        return format_model_id(owner, name, version_id)

    logger.info("predictions.resolve_latest_version model=%s/%s", owner, name)
    model = client.get_model(owner, name)
    latest = model.get("latest_version") or {}
    latest_id = latest.get("id") if isinstance(latest, dict) else None
    if not latest_id:
        raise ReplicateConfigurationError(f"No latest version found for model {owner}/{name}")
    return format_model_id(owner, name, latest_id)


def submit_prediction(
    client: PredictionProvider,
    *,
    version: str | None,
    model: str | None = None,
    input: dict[str, Any],
    webhook: str | None = None,
    webhook_events_filter: list[str] | None = None,
    stream: bool = False,
) -> Prediction:
    """Resolve the target version, leniently coerce input and create the prediction.

    ``version`` may be a bare version id or ``owner/name[:version]``; ``model`` is
    an ``owner/name`` used when no version is given. When no webhook is supplied
    the app's own relay webhook is used.
    """

    ref = parse_model_version(version)
    if ref is None:
        model_ref = parse_model_version(model)
        if model_ref is not None:
            ref = model_ref._replace(version_id=version or model_ref.version_id)
    if ref is not None:
        resolved_version = resolve_model_version(client, ref.owner, ref.name, ref.version_id)
        payload = coerce_registry_input(ref.owner, ref.name, input)
    elif version:
        resolved_version = version
        payload = dict(input)
    else:
        raise ReplicateConfigurationError("A model version or owner/name is required")

    settings = get_settings()
    target_webhook = webhook or f"{settings.public_app_url.rstrip('/')}/api/webhooks/replicate"
    return client.create_prediction(
        resolved_version,
        payload,
        webhook=target_webhook,
        webhook_events_filter=webhook_events_filter or DEFAULT_EVENTS_FILTER,
        stream=stream,
    )


def poll_prediction(
    client: PredictionProvider,
    prediction_id: str,
    *,
    interval_seconds: float = 1.0,
    max_attempts: int = 60,
    on_update: Callable[[Prediction], None] | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Prediction:
    """Poll until the prediction reaches a terminal status.

    Transient provider errors are retried; the last attempt's error propagates.
    Raises ``PredictionTimeoutError`` when attempts run out first.
    """

    for attempt in range(max_attempts):
        try:
            prediction = client.get_prediction(prediction_id)
        except ReplicateError:
            logger.exception(
                "predictions.poll_attempt_failed id=%s attempt=%d", prediction_id, attempt + 1
            )
            if attempt == max_attempts - 1:
                raise
            sleep(interval_seconds)
            continue

        if on_update is not None:
            on_update(prediction)
        if is_terminal_status(prediction.status):
            return prediction
        if attempt < max_attempts - 1:
            sleep(interval_seconds)

    raise PredictionTimeoutError(
        f"Prediction {prediction_id} did not finish after {max_attempts} polling attempts"
    )


def start_generation(
    db: Session,
    client: PredictionProvider,
    payload: GenerationCreate,
) -> Generation:
    """Create a generation record and submit its prediction.

    If submission fails the record is marked ``failed`` with the error before
    the exception propagates.
    """

    generation = create_generation(db, payload)
    settings = get_settings()
    try:
        prediction = submit_prediction(
            client,
            version=payload.model_version,
            model=f"{payload.model_owner}/{payload.model_name}",
            input={"prompt": payload.prompt, **payload.parameters},
            webhook=f"{settings.public_app_url.rstrip('/')}/api/generations/webhook",
        )
    except (ReplicateError, ValueError) as exc:
        logger.warning("predictions.submit_failed generation_id=%s error=%s", generation.id, exc)
        update_generation(
            db,
            generation.id,
            {"status": "failed", "error": str(exc), **completion_fields(generation, "failed")},
        )
        raise
    return update_generation(
        db,
        generation.id,
        GenerationUpdate(replicate_id=prediction.id, status="starting"),
    )


def refresh_generation_status(
    db: Session,
    client: PredictionProvider,
    generation_id: int,
    *,
    wait: bool = False,
    sleep: Callable[[float], None] = time.sleep,
) -> Generation:
    """Re-poll a non-terminal generation and persist any status change.

    With ``wait`` the provider is polled until the prediction finishes, using
    the configured poll interval and attempt limit.
    """

    generation = get_generation(db, generation_id)
    if generation is None:
        raise GenerationNotFoundError(f"Generation {generation_id} not found")
    if not generation.replicate_id or is_terminal_status(generation.status):
        return generation

    if wait:
        settings = get_settings()
        prediction = poll_prediction(
            client,
            generation.replicate_id,
            interval_seconds=settings.poll_interval_seconds,
            max_attempts=settings.poll_max_attempts,
            sleep=sleep,
        )
    else:
        prediction = client.get_prediction(generation.replicate_id)
    status = prediction.status.lower()
    if status == generation.status:
        return generation

    changes: dict[str, Any] = {"status": status, **completion_fields(generation, status)}
    if prediction.output is not None:
        changes["output"] = prediction.output
        changes["image_urls"] = extract_output_urls(prediction.output)
    if prediction.error:
        changes["error"] = str(prediction.error)
    return update_generation(db, generation.id, changes)
