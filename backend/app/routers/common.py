"""Shared router dependencies and error translation."""

import logging

from fastapi import HTTPException, Request

from app.replicate.client import ReplicateConfigurationError, ReplicateError, ReplicateNotFoundError
from app.services.blob_storage import BlobStorageError, BlobStore, get_blob_store
from app.services.relay import UpdateRelay

logger = logging.getLogger(__name__)


def get_update_relay(request: Request) -> UpdateRelay:
    """Return the process-wide relay created at application startup."""

    return request.app.state.update_relay


def provider_http_error(exc: ReplicateError) -> HTTPException:
    """Map a provider failure onto the response status the client sees."""

    if isinstance(exc, ReplicateNotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, ReplicateConfigurationError):
        logger.error("replicate.configuration_error error=%s", exc)
        return HTTPException(status_code=503, detail=str(exc))
    if exc.status_code in (400, 422):
        return HTTPException(status_code=400, detail=str(exc))
    return HTTPException(status_code=502, detail=str(exc))


def require_blob_store() -> BlobStore:
    """Blob store dependency that reports missing storage config as 503."""

    try:
        return get_blob_store()
    except BlobStorageError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
