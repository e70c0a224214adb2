"""Prediction submission, status, cancellation and live update routes."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Path, Request
from fastapi.responses import StreamingResponse

from app.config import get_settings
from app.replicate.client import PredictionProvider, ReplicateError
from app.replicate.output import format_prediction_for_client
from app.routers.common import get_update_relay, provider_http_error
from app.schemas.common import ApiResponse
from app.schemas.prediction import CancelResult, PredictionCreateRequest
from app.services.predictions import get_default_replicate_client, submit_prediction
from app.services.relay import UpdateRelay
from app.services.streaming import stream_prediction_updates


router = APIRouter(prefix="/predictions")


@router.post("", response_model=ApiResponse[dict[str, Any]], status_code=201)
def create_prediction(
    payload: PredictionCreateRequest,
    client: PredictionProvider = Depends(get_default_replicate_client),
) -> ApiResponse[dict[str, Any]]:
    """Submit a prediction; input is leniently coerced against the model registry."""

    try:
        prediction = submit_prediction(
            client,
            version=payload.version,
            model=payload.model,
            input=payload.input,
            webhook=payload.webhook,
            webhook_events_filter=payload.webhook_events_filter,
            stream=payload.stream,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except ReplicateError as exc:
        raise provider_http_error(exc) from exc
    return ApiResponse(data=format_prediction_for_client(prediction.model_dump(mode="json")))


@router.get("/{prediction_id}", response_model=ApiResponse[dict[str, Any]])
def get_prediction(
    prediction_id: str = Path(..., min_length=1),
    client: PredictionProvider = Depends(get_default_replicate_client),
) -> ApiResponse[dict[str, Any]]:
    try:
        prediction = client.get_prediction(prediction_id)
    except ReplicateError as exc:
        raise provider_http_error(exc) from exc
    return ApiResponse(data=format_prediction_for_client(prediction.model_dump(mode="json")))


@router.delete("/{prediction_id}", response_model=ApiResponse[CancelResult])
def cancel_prediction(
    prediction_id: str = Path(..., min_length=1),
    client: PredictionProvider = Depends(get_default_replicate_client),
) -> ApiResponse[CancelResult]:
    try:
        client.cancel_prediction(prediction_id)
    except ReplicateError as exc:
        raise provider_http_error(exc) from exc
    return ApiResponse(data=CancelResult(id=prediction_id))


@router.get("/{prediction_id}/stream")
def stream_prediction(
    request: Request,
    prediction_id: str = Path(..., min_length=1),
    relay: UpdateRelay = Depends(get_update_relay),
) -> StreamingResponse:
    """Server-sent events for webhook updates relayed for this prediction."""

    return StreamingResponse(
        stream_prediction_updates(
            relay,
            prediction_id,
            is_disconnected=request.is_disconnected,
            tick_seconds=get_settings().stream_tick_seconds,
        ),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )
