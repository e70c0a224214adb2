"""Dynamic input forms derived from a model's remote schema and registry entry."""

from __future__ import annotations

import logging
from typing import Any

from app.replicate.client import PredictionProvider, ReplicateError, ReplicateNotFoundError
from app.schema.fields import FieldDescriptor
from app.schema.model_registry import get_model_config
from app.schema.parser import parse_fields_with_overrides
from app.schema.validation import prepare_input, validate_values
from app.schemas.model import FormFieldRead, FormValidateResult, ModelFormRead

logger = logging.getLogger(__name__)


class FormSchemaUnavailableError(LookupError):
    """Raised when a model has neither an input schema nor a registry entry."""


def fetch_openapi_schema(
    client: PredictionProvider,
    owner: str,
    name: str,
    version_id: str | None = None,
) -> tuple[dict[str, Any] | None, str | None]:
    """Return the version's OpenAPI document and the version id it belongs to."""

    if version_id:
        version = client.get_model_version(owner, name, version_id)
    else:
        model = client.get_model(owner, name)
        version = model.get("latest_version") or {}
    if not isinstance(version, dict):
        return None, version_id
    schema = version.get("openapi_schema")
    return (schema if isinstance(schema, dict) else None), version.get("id") or version_id


def load_form_fields(
    client: PredictionProvider,
    owner: str,
    name: str,
    version_id: str | None = None,
) -> tuple[list[FieldDescriptor], str | None]:
    """Merged field descriptors for a model.

    A model missing from the provider still yields its registry-only fields
    when it has a registry entry; otherwise the lookup error propagates.
    """

    schema, resolved_version = _load_schema(client, owner, name, version_id)
    return parse_fields_with_overrides(schema, owner, name), resolved_version


def build_model_form(
    client: PredictionProvider,
    owner: str,
    name: str,
    version_id: str | None = None,
) -> ModelFormRead:
    """Form definition for a model; an input schema with no properties gives an empty form.

    Raises ``FormSchemaUnavailableError`` when the version has no schema and
    the registry has no entry to fall back on.
    """

    schema, resolved_version = _load_schema(client, owner, name, version_id)
    config = get_model_config(owner, name)
    if schema is None and config is None:
        raise FormSchemaUnavailableError(f"No input schema available for {owner}/{name}")
    fields = parse_fields_with_overrides(schema, owner, name)
    return ModelFormRead(
        owner=owner,
        name=name,
        version_id=resolved_version,
        has_registry_overrides=config is not None,
        output_type=config.output_type if config else None,
        fields=[FormFieldRead.model_validate(field) for field in fields],
    )


def _load_schema(
    client: PredictionProvider,
    owner: str,
    name: str,
    version_id: str | None,
) -> tuple[dict[str, Any] | None, str | None]:
    try:
        return fetch_openapi_schema(client, owner, name, version_id)
    except ReplicateNotFoundError:
        if get_model_config(owner, name) is None:
            raise
        logger.warning("forms.schema_unavailable model=%s/%s using_registry=true", owner, name)
    except ReplicateError:
        if get_model_config(owner, name) is None:
            raise
        logger.exception("forms.schema_fetch_failed model=%s/%s using_registry=true", owner, name)
    return None, version_id


def validate_form(fields: list[FieldDescriptor], values: dict[str, Any]) -> FormValidateResult:
    """Strict per-field errors plus the payload ``values`` would submit."""

    errors = validate_values(values, fields)
    return FormValidateResult(valid=not errors, errors=errors, input=prepare_input(values, fields))
