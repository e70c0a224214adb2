"""Model catalog and dynamic form routes."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Path, Query

from app.replicate.client import PredictionProvider, ReplicateError
from app.routers.common import provider_http_error
from app.schemas.common import ApiResponse
from app.schemas.model import FormValidateRequest, FormValidateResult, ModelFormRead, ModelPage
from app.services.forms import (
    FormSchemaUnavailableError,
    build_model_form,
    load_form_fields,
    validate_form,
)
from app.services.predictions import get_default_replicate_client


router = APIRouter(prefix="/models")


@router.get("", response_model=ApiResponse[ModelPage])
def search_models(
    query: str | None = Query(default=None, min_length=1),
    cursor: str | None = Query(default=None),
    client: PredictionProvider = Depends(get_default_replicate_client),
) -> ApiResponse[ModelPage]:
    """Search public models, or list them when no query is given."""

    try:
        page = client.search_models(query, cursor)
    except ReplicateError as exc:
        raise provider_http_error(exc) from exc
    return ApiResponse(data=ModelPage.model_validate(page))


@router.get("/{owner}/{name}", response_model=ApiResponse[dict[str, Any]])
def get_model(
    owner: str = Path(..., min_length=1),
    name: str = Path(..., min_length=1),
    client: PredictionProvider = Depends(get_default_replicate_client),
) -> ApiResponse[dict[str, Any]]:
    try:
        return ApiResponse(data=client.get_model(owner, name))
    except ReplicateError as exc:
        raise provider_http_error(exc) from exc


@router.get("/{owner}/{name}/versions/{version_id}", response_model=ApiResponse[dict[str, Any]])
def get_model_version(
    owner: str = Path(..., min_length=1),
    name: str = Path(..., min_length=1),
    version_id: str = Path(..., min_length=1),
    client: PredictionProvider = Depends(get_default_replicate_client),
) -> ApiResponse[dict[str, Any]]:
    try:
        return ApiResponse(data=client.get_model_version(owner, name, version_id))
    except ReplicateError as exc:
        raise provider_http_error(exc) from exc


@router.get("/{owner}/{name}/form", response_model=ApiResponse[ModelFormRead])
def get_model_form(
    owner: str = Path(..., min_length=1),
    name: str = Path(..., min_length=1),
    version_id: str | None = Query(default=None, min_length=1),
    client: PredictionProvider = Depends(get_default_replicate_client),
) -> ApiResponse[ModelFormRead]:
    """Return ordered input field descriptors with registry overrides applied."""

    try:
        form = build_model_form(client, owner, name, version_id)
    except FormSchemaUnavailableError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ReplicateError as exc:
        raise provider_http_error(exc) from exc
    return ApiResponse(data=form)


@router.post("/{owner}/{name}/form/validate", response_model=ApiResponse[FormValidateResult])
def validate_model_form(
    payload: FormValidateRequest,
    owner: str = Path(..., min_length=1),
    name: str = Path(..., min_length=1),
    client: PredictionProvider = Depends(get_default_replicate_client),
) -> ApiResponse[FormValidateResult]:
    """Run field-level validation and return the payload that would be submitted."""

    try:
        fields, _ = load_form_fields(client, owner, name, payload.version_id)
    except ReplicateError as exc:
        raise provider_http_error(exc) from exc
    return ApiResponse(data=validate_form(fields, payload.values))
