"""Model catalog and dynamic form schemas."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from app.schema.fields import FieldKind


class ModelPage(BaseModel):
    """One page of model search results."""

    results: list[dict[str, Any]] = Field(default_factory=list)
    next: str | None = None
    previous: str | None = None


class FormFieldRead(BaseModel):
    """Serialized field descriptor for form rendering."""

    model_config = ConfigDict(from_attributes=True)

    name: str
    kind: FieldKind
    label: str
    description: str | None
    required: bool
    default_value: Any = None
    options: list[Any] | None = None
    minimum: float | None = None
    maximum: float | None = None
    accept: str | None = None
    multiple: bool
    order: int | None = None


class ModelFormRead(BaseModel):
    """Form definition for a model."""

    owner: str
    name: str
    version_id: str | None
    has_registry_overrides: bool
    output_type: str | None = None
    fields: list[FormFieldRead]


class FormValidateRequest(BaseModel):
    """Raw form values to validate and prepare."""

    values: dict[str, Any] = Field(default_factory=dict)
    version_id: str | None = None


class FormValidateResult(BaseModel):
    """Field errors plus the payload that would be submitted."""

    valid: bool
    errors: dict[str, str]
    input: dict[str, Any]
