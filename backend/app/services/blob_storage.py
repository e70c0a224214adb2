"""Durable media storage backed by MinIO / S3-compatible object storage."""

from __future__ import annotations

import io
import logging
import threading
from dataclasses import dataclass
from functools import lru_cache
from typing import Protocol

from minio import Minio
from minio.error import S3Error

from app.config import get_settings

logger = logging.getLogger(__name__)

_client_lock = threading.Lock()


class BlobStorageError(RuntimeError):
    """Raised when blob storage is unconfigured or a write fails."""


class BlobStore(Protocol):
    """Store bytes under a key and return a public URL."""

    def put(self, key: str, data: bytes, content_type: str | None = None) -> str:
        """Persist ``data`` and return its URL."""


@dataclass(slots=True)
class MinioBlobStore:
    """``BlobStore`` that writes to a single MinIO bucket."""

    client: Minio
    bucket: str
    public_base_url: str

    def put(self, key: str, data: bytes, content_type: str | None = None) -> str:
        try:
            if not self.client.bucket_exists(self.bucket):
                self.client.make_bucket(self.bucket)
            self.client.put_object(
                self.bucket,
                key,
                io.BytesIO(data),
                length=len(data),
                content_type=content_type or "application/octet-stream",
            )
        except S3Error as exc:
            raise BlobStorageError(f"Failed to store '{key}' in bucket '{self.bucket}': {exc}") from exc
        logger.info("blob_storage.stored bucket=%s key=%s size=%d", self.bucket, key, len(data))
        return f"{self.public_base_url.rstrip('/')}/{self.bucket}/{key}"


@lru_cache(maxsize=1)
def _build_store() -> MinioBlobStore:
    settings = get_settings()
    if not settings.minio_access_key or not settings.minio_secret_key:
        raise BlobStorageError(
            "File storage is not configured. Set MINIO_ACCESS_KEY and MINIO_SECRET_KEY, or use direct URLs."
        )
    client = Minio(
        settings.minio_endpoint,
        access_key=settings.minio_access_key,
        secret_key=settings.minio_secret_key,
        secure=settings.minio_secure,
        region=settings.minio_region,
    )
    scheme = "https" if settings.minio_secure else "http"
    public_base_url = settings.minio_public_base_url or f"{scheme}://{settings.minio_endpoint}"
    return MinioBlobStore(client=client, bucket=settings.minio_bucket, public_base_url=public_base_url)


def get_blob_store() -> BlobStore:
    """Return the cached process-wide blob store."""

    if _build_store.cache_info().currsize:
        return _build_store()
    with _client_lock:
        return _build_store()
