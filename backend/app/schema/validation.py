"""Field-level validation and payload preparation for model inputs.

Two deliberately separate paths live here:

* ``validate_field`` / ``validate_values`` are strict. They reject missing,
  out-of-range and unknown-option values and are used for user-facing
  field errors. They never raise.
* ``prepare_input`` and ``coerce_registry_input`` shape raw form values into
  the payload Replicate expects. ``coerce_registry_input`` is lenient: it
  clamps numbers into the registry bounds and repairs invalid enum strings
  instead of rejecting them.
"""

from __future__ import annotations

import json
import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from app.schema.fields import FieldDescriptor, FieldKind
from app.schema.model_registry import InputConstraint, get_model_config

_FALSE_STRINGS = frozenset({"false", "0", "off", "no"})


@dataclass(frozen=True, slots=True)
class FieldValidationResult:
    """Outcome of validating a single value."""

    valid: bool
    error: str | None = None


_VALID = FieldValidationResult(valid=True)


def _is_empty(value: Any) -> bool:
    return value is None or value == ""


def _to_number(value: Any) -> float | int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return None if isinstance(value, float) and math.isnan(value) else value
    if isinstance(value, str):
        try:
            parsed = float(value.strip())
        except ValueError:
            return None
        if math.isnan(parsed):
            return None
        return int(parsed) if parsed.is_integer() else parsed
    return None


def _format_number(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() not in _FALSE_STRINGS and value != ""
    return bool(value)


def validate_field(value: Any, field: FieldDescriptor) -> FieldValidationResult:
    """Strictly validate ``value`` against ``field``."""

    if field.required and _is_empty(value):
        return FieldValidationResult(valid=False, error=f"{field.label} is required")

    if field.kind is FieldKind.NUMBER:
        if _is_empty(value):
            return _VALID
        number = _to_number(value)
        if number is None:
            return FieldValidationResult(valid=False, error=f"{field.label} must be a number")
        if field.minimum is not None and number < field.minimum:
            return FieldValidationResult(
                valid=False, error=f"{field.label} must be at least {_format_number(field.minimum)}"
            )
        if field.maximum is not None and number > field.maximum:
            return FieldValidationResult(
                valid=False, error=f"{field.label} must be at most {_format_number(field.maximum)}"
            )
    elif field.kind is FieldKind.FILE:
        if field.required and not value:
            return FieldValidationResult(valid=False, error=f"{field.label} is required")
    elif field.kind is FieldKind.SELECT:
        if not _is_empty(value) and field.options is not None and value not in field.options:
            return FieldValidationResult(valid=False, error=f"Invalid option for {field.label}")
    elif field.kind is FieldKind.ARRAY:
        if field.required and (not isinstance(value, list) or not value):
            return FieldValidationResult(valid=False, error=f"{field.label} must have at least one item")

    return _VALID


def validate_values(values: Mapping[str, Any], fields: list[FieldDescriptor]) -> dict[str, str]:
    """Return ``{field name: error}`` for every field that fails validation."""

    errors: dict[str, str] = {}
    for field in fields:
        result = validate_field(values.get(field.name), field)
        if not result.valid and result.error:
            errors[field.name] = result.error
    return errors


def prepare_input(values: Mapping[str, Any], fields: list[FieldDescriptor]) -> dict[str, Any]:
    """Coerce raw form values into the prediction payload.

    Empty values fall back to the field default or are omitted; keys are never
    emitted with a ``None`` value.
    """

    payload: dict[str, Any] = {}
    for field in fields:
        value = values.get(field.name)
        if _is_empty(value):
            if field.default_value is not None:
                payload[field.name] = field.default_value
            continue

        if field.kind is FieldKind.NUMBER:
            number = _to_number(value)
            if number is not None:
                payload[field.name] = number
        elif field.kind is FieldKind.BOOLEAN:
            payload[field.name] = _to_bool(value)
        elif field.kind is FieldKind.ARRAY:
            payload[field.name] = list(value) if isinstance(value, (list, tuple)) else [value]
        elif field.kind is FieldKind.JSON:
            payload[field.name] = _parse_json(value)
        else:
            payload[field.name] = value
    return payload


def _parse_json(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except ValueError:
        return value


def coerce_registry_input(owner: str, name: str, raw_input: Mapping[str, Any]) -> dict[str, Any]:
    """Leniently shape ``raw_input`` to the registry constraints for ``owner/name``.

    Inputs without a registry entry are returned unchanged. Keys the registry does
    not declare are dropped, numbers are clamped and invalid enum strings fall back
    to the declared default (or first option). Raises ``ValueError`` only when a
    required input is explicitly ``None``.
    """

    config = get_model_config(owner, name)
    if config is None:
        return dict(raw_input)

    coerced: dict[str, Any] = {}
    for key, value in raw_input.items():
        constraint = config.input_schema.get(key)
        if constraint is None:
            continue
        if value is None:
            if constraint.required:
                raise ValueError(f"Required field '{key}' is missing")
            continue
        coerced_value = _coerce_constraint_value(value, constraint)
        if coerced_value is not None:
            coerced[key] = coerced_value

    for key, constraint in config.input_schema.items():
        if key not in coerced and constraint.default is not None:
            coerced[key] = constraint.default
    return coerced


def _coerce_constraint_value(value: Any, constraint: InputConstraint) -> Any:
    if constraint.type in ("integer", "number"):
        number = _to_number(value)
        if number is None or math.isinf(number):
            return None
        if constraint.type == "integer":
            number = int(number)
        return _clamp(number, constraint.minimum, constraint.maximum)
    if constraint.type == "boolean":
        return _to_bool(value)
    if constraint.type == "string":
        text = value if isinstance(value, str) else str(value)
        if constraint.enum and text not in constraint.enum:
            return constraint.default if constraint.default is not None else constraint.enum[0]
        return text
    if constraint.type == "array":
        return list(value) if isinstance(value, (list, tuple)) else [value]
    return value


def _clamp(number: float | int, minimum: float | None, maximum: float | None) -> float | int:
    if minimum is not None and number < minimum:
        return minimum
    if maximum is not None and number > maximum:
        return maximum
    return number
