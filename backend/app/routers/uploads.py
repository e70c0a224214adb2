"""File upload routes."""

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from starlette.concurrency import run_in_threadpool

from app.config import get_settings
from app.routers.common import require_blob_store
from app.schemas.common import ApiResponse
from app.schemas.upload import Base64UploadRequest, UploadResult
from app.services.blob_storage import BlobStorageError, BlobStore
from app.services.uploads import UploadRejectedError, decode_base64_payload, store_upload


router = APIRouter(prefix="/upload")


@router.post("", response_model=ApiResponse[UploadResult])
async def upload_file(
    file: UploadFile | None = File(default=None),
    blob_store: BlobStore = Depends(require_blob_store),
) -> ApiResponse[UploadResult]:
    """Store a multipart file upload and return its public URL."""

    if file is None:
        raise HTTPException(status_code=400, detail="No file provided")
    data = await file.read()
    return ApiResponse(
        data=await run_in_threadpool(
            _store,
            blob_store,
            data=data,
            filename=file.filename or "upload",
            content_type=file.content_type,
        )
    )


@router.put("", response_model=ApiResponse[UploadResult])
def upload_base64(
    payload: Base64UploadRequest,
    blob_store: BlobStore = Depends(require_blob_store),
) -> ApiResponse[UploadResult]:
    """Store a base64 or data-URL encoded file and return its public URL."""

    try:
        data = decode_base64_payload(payload.data)
    except UploadRejectedError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return ApiResponse(
        data=_store(blob_store, data=data, filename=payload.filename, content_type=payload.type)
    )


def _store(blob_store: BlobStore, *, data: bytes, filename: str, content_type: str | None) -> UploadResult:
    try:
        return store_upload(
            blob_store,
            data=data,
            filename=filename,
            content_type=content_type,
            max_bytes=get_settings().max_upload_bytes,
        )
    except UploadRejectedError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except BlobStorageError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
