"""Inbound Replicate webhook routes."""

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from app.config import get_settings
from app.db.dependencies import get_db
from app.routers.common import get_update_relay
from app.schemas.common import ApiResponse
from app.services.relay import UpdateRelay
from app.services.webhooks import (
    WebhookOutcome,
    WebhookPayloadError,
    WebhookSignatureError,
    process_prediction_webhook,
)


router = APIRouter()


@router.post("/webhooks/replicate", response_model=ApiResponse[dict[str, object]])
@router.post("/generations/webhook", response_model=ApiResponse[dict[str, object]])
async def receive_replicate_webhook(
    request: Request,
    db: Session = Depends(get_db),
    relay: UpdateRelay = Depends(get_update_relay),
) -> ApiResponse[dict[str, object]]:
    """Verify the signature, relay the update and persist it for a linked generation."""

    body = await request.body()
    try:
        outcome = await run_in_threadpool(
            process_prediction_webhook,
            db,
            relay,
            body=body,
            signature=request.headers.get("webhook-signature"),
            secret=get_settings().webhook_secret,
        )
    except WebhookSignatureError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    except WebhookPayloadError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return ApiResponse(data=_outcome_data(outcome))


def _outcome_data(outcome: WebhookOutcome) -> dict[str, object]:
    return {
        "received": True,
        "prediction_id": outcome.prediction_id,
        "status": outcome.status,
        "generation_id": outcome.generation_id,
        "archived_urls": outcome.archived_urls,
    }
