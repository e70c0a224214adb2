"""Inbound Replicate webhook verification and processing."""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.replicate.output import extract_output_urls, is_terminal_status
from app.schemas.prediction import WebhookPayload
from app.services.blob_storage import BlobStorageError, BlobStore, get_blob_store
from app.services.generations import (
    completion_fields,
    get_generation_by_replicate_id,
    update_generation,
)
from app.services.media_archive import MediaFetcher, archive_media, fetch_media
from app.services.relay import UpdateRelay

logger = logging.getLogger(__name__)

_SIGNATURE_PREFIX = "sha256="


class WebhookSignatureError(RuntimeError):
    """Raised when the webhook signature does not match the shared secret."""


class WebhookPayloadError(ValueError):
    """Raised when the webhook body is not a valid status update."""

    def __init__(self, message: str, details: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.details = details or []


@dataclass(slots=True)
class WebhookOutcome:
    """What a processed webhook touched."""

    prediction_id: str
    status: str
    relay_index: int
    generation_id: int | None = None
    archived_urls: int = 0


def verify_webhook_signature(body: bytes, signature: str, secret: str) -> bool:
    """Check an HMAC-SHA256 hex signature, tolerating a ``sha256=`` prefix."""

    candidate = signature.strip()
    if candidate.startswith(_SIGNATURE_PREFIX):
        candidate = candidate[len(_SIGNATURE_PREFIX):]
    expected = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(candidate.encode("utf-8"), expected.encode("ascii"))


def parse_webhook_payload(body: bytes) -> WebhookPayload:
    try:
        decoded = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise WebhookPayloadError("Webhook body is not valid JSON") from exc
    try:
        return WebhookPayload.model_validate(decoded)
    except ValidationError as exc:
        raise WebhookPayloadError(
            "Invalid webhook payload",
            details=exc.errors(include_url=False, include_context=False, include_input=False),
        ) from exc


def process_prediction_webhook(
    db: Session,
    relay: UpdateRelay,
    *,
    body: bytes,
    signature: str | None,
    secret: str | None,
    blob_store_factory: Callable[[], BlobStore] = get_blob_store,
    fetch: MediaFetcher = fetch_media,
) -> WebhookOutcome:
    """Verify, relay and persist one Replicate status update.

    The signature is checked before the body is parsed when a secret is
    configured. The update is always appended to the relay; if a generation
    record is linked to the prediction its status is persisted, and on success
    its output media is archived to blob storage.
    """

    if secret and not verify_webhook_signature(body, signature or "", secret):
        logger.warning("webhooks.invalid_signature")
        raise WebhookSignatureError("Invalid signature")

    payload = parse_webhook_payload(body)
    event = relay.append(payload.id, payload.model_dump(mode="json"))
    logger.info("webhooks.received prediction_id=%s status=%s", payload.id, payload.status)

    outcome = WebhookOutcome(prediction_id=payload.id, status=payload.status, relay_index=event.index)
    generation = get_generation_by_replicate_id(db, payload.id)
    if generation is None:
        logger.info("webhooks.no_generation prediction_id=%s", payload.id)
        return outcome
    outcome.generation_id = generation.id
    if is_terminal_status(generation.status):
        # Retried deliveries must not archive the same media twice.
        logger.info(
            "webhooks.generation_already_terminal id=%s status=%s", generation.id, generation.status
        )
        return outcome

    changes: dict[str, Any] = {"status": payload.status, **completion_fields(generation, payload.status)}
    if payload.output is not None:
        changes["output"] = payload.output
    if payload.error:
        changes["error"] = payload.error

    urls = extract_output_urls(payload.output) if payload.status == "succeeded" else []
    if urls:
        original_urls, archived_urls = _archive(generation.id, urls, blob_store_factory, fetch)
        changes["image_urls"] = original_urls or urls
        changes["blob_urls"] = archived_urls
        outcome.archived_urls = len(archived_urls)

    update_generation(db, generation.id, changes)
    return outcome


def _archive(
    generation_id: int,
    urls: list[str],
    blob_store_factory: Callable[[], BlobStore],
    fetch: MediaFetcher,
) -> tuple[list[str], list[str]]:
    try:
        blob_store = blob_store_factory()
    except BlobStorageError as exc:
        logger.warning("webhooks.archive_skipped generation_id=%s error=%s", generation_id, exc)
        return [], []
    return archive_media(generation_id, urls, blob_store=blob_store, fetch=fetch)
