"""User file uploads into blob storage."""

from __future__ import annotations

import base64
import binascii
import logging
from pathlib import PurePosixPath
from uuid import uuid4

from app.schemas.upload import UploadResult
from app.services.blob_storage import BlobStore

logger = logging.getLogger(__name__)


class UploadRejectedError(ValueError):
    """Raised when an upload is empty, malformed or too large."""


def build_storage_key(filename: str) -> str:
    """Collision-resistant object key that keeps the original extension."""

    suffix = PurePosixPath(filename).suffix.lower()
    return f"{uuid4().hex}{suffix}"


def decode_base64_payload(data: str) -> bytes:
    """Decode raw base64 or a ``data:<type>;base64,<payload>`` URL."""

    _, comma, encoded = data.partition(",")
    try:
        return base64.b64decode(encoded if comma else data, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise UploadRejectedError("Invalid base64 file data") from exc


def store_upload(
    blob_store: BlobStore,
    *,
    data: bytes,
    filename: str,
    content_type: str | None,
    max_bytes: int,
) -> UploadResult:
    """Enforce the size limit and write the file to blob storage."""

    if not data:
        raise UploadRejectedError("No file provided")
    if len(data) > max_bytes:
        raise UploadRejectedError(f"File size exceeds {max_bytes // (1024 * 1024)}MB limit")

    key = build_storage_key(filename)
    url = blob_store.put(key, data, content_type)
    logger.info("uploads.stored key=%s filename=%s size=%d", key, filename, len(data))
    return UploadResult(url=url, filename=filename, size=len(data), type=content_type)
