"""Generation record routes."""

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from sqlalchemy.orm import Session

from app.db.dependencies import get_db
from app.replicate.client import PredictionProvider, ReplicateError
from app.routers.common import provider_http_error
from app.schemas.common import ApiResponse
from app.schemas.generation import (
    GenerationCreate,
    GenerationRead,
    GenerationRunRequest,
    GenerationStats,
    GenerationSummary,
    GenerationUpdate,
)
from app.services.generations import (
    GenerationNotFoundError,
    create_generation,
    format_generation,
    get_generation,
    get_generation_stats,
    list_generations_for_model,
    list_recent_generations,
    update_generation,
)
from app.services.predictions import (
    PredictionTimeoutError,
    get_default_replicate_client,
    refresh_generation_status,
    start_generation,
)


router = APIRouter(prefix="/generations")


@router.get("", response_model=ApiResponse[list[GenerationRead]])
def list_generations(
    model_owner: str | None = Query(default=None, min_length=1),
    model_name: str | None = Query(default=None, min_length=1),
    limit: int = Query(default=10, ge=1, le=100),
    db: Session = Depends(get_db),
) -> ApiResponse[list[GenerationRead]]:
    """List generations for one model, or the most recent ones overall."""

    if model_owner and model_name:
        records = list_generations_for_model(db, model_owner, model_name)
    else:
        records = list_recent_generations(db, limit=limit)
    return ApiResponse(data=[GenerationRead.model_validate(record) for record in records])


@router.post("", response_model=ApiResponse[GenerationRead], status_code=201)
def create_generation_record(
    payload: GenerationCreate,
    db: Session = Depends(get_db),
) -> ApiResponse[GenerationRead]:
    return ApiResponse(data=GenerationRead.model_validate(create_generation(db, payload)))


@router.post("/run", response_model=ApiResponse[GenerationRead], status_code=201)
def run_generation(
    payload: GenerationRunRequest,
    db: Session = Depends(get_db),
    client: PredictionProvider = Depends(get_default_replicate_client),
) -> ApiResponse[GenerationRead]:
    """Create a generation record and submit its prediction."""

    try:
        generation = start_generation(db, client, payload)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except ReplicateError as exc:
        raise provider_http_error(exc) from exc
    return ApiResponse(data=GenerationRead.model_validate(generation))


@router.get("/stats", response_model=ApiResponse[GenerationStats])
def get_stats(db: Session = Depends(get_db)) -> ApiResponse[GenerationStats]:
    return ApiResponse(data=get_generation_stats(db))


@router.get("/history", response_model=ApiResponse[list[GenerationSummary]])
def get_history(
    limit: int = Query(default=10, ge=1, le=100),
    db: Session = Depends(get_db),
) -> ApiResponse[list[GenerationSummary]]:
    """Display summaries of recent generations, preferring archived media URLs."""

    return ApiResponse(data=[format_generation(record) for record in list_recent_generations(db, limit=limit)])


@router.get("/{generation_id}", response_model=ApiResponse[GenerationRead])
def get_generation_record(
    generation_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
) -> ApiResponse[GenerationRead]:
    generation = get_generation(db, generation_id)
    if generation is None:
        raise HTTPException(status_code=404, detail="Generation not found")
    return ApiResponse(data=GenerationRead.model_validate(generation))


@router.patch("/{generation_id}", response_model=ApiResponse[GenerationRead])
def patch_generation_record(
    payload: GenerationUpdate,
    generation_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
) -> ApiResponse[GenerationRead]:
    """Apply a partial update; records in a terminal status are left unchanged."""

    try:
        generation = update_generation(db, generation_id, payload)
    except GenerationNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Generation not found") from exc
    return ApiResponse(data=GenerationRead.model_validate(generation))


@router.post("/{generation_id}/refresh", response_model=ApiResponse[GenerationRead])
def refresh_generation(
    generation_id: int = Path(..., ge=1),
    wait: bool = Query(default=False),
    db: Session = Depends(get_db),
    client: PredictionProvider = Depends(get_default_replicate_client),
) -> ApiResponse[GenerationRead]:
    """Re-poll the provider for a generation that has not finished yet.

    ``wait=true`` blocks until the prediction finishes or polling times out.
    """

    try:
        generation = refresh_generation_status(db, client, generation_id, wait=wait)
    except GenerationNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Generation not found") from exc
    except PredictionTimeoutError as exc:
        raise HTTPException(status_code=504, detail=str(exc)) from exc
    except ReplicateError as exc:
        raise provider_http_error(exc) from exc
    return ApiResponse(data=GenerationRead.model_validate(generation))
