"""Model input schema parsing, registry overrides and validation."""

from app.schema.fields import FieldDescriptor, FieldKind
from app.schema.model_registry import MODEL_CONFIGS, ModelConfig, format_model_id, get_model_config
from app.schema.parser import parse_base_fields, parse_fields_with_overrides
from app.schema.validation import (
    FieldValidationResult,
    coerce_registry_input,
    prepare_input,
    validate_field,
    validate_values,
)

__all__ = [
    "MODEL_CONFIGS",
    "FieldDescriptor",
    "FieldKind",
    "FieldValidationResult",
    "ModelConfig",
    "coerce_registry_input",
    "format_model_id",
    "get_model_config",
    "parse_base_fields",
    "parse_fields_with_overrides",
    "prepare_input",
    "validate_field",
    "validate_values",
]
