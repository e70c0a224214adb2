"""Convert Replicate OpenAPI input schemas into form field descriptors."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from app.schema.fields import UNORDERED, FieldDescriptor, FieldKind, format_label, sort_fields
from app.schema.model_registry import InputConstraint, get_model_config

_REF_PREFIX = "#/components/schemas/"
_FILE_KEYWORDS: tuple[str, ...] = (
    "upload",
    "file upload",
    "input image",
    "input audio",
    "input video",
    "path to image",
    "path to audio",
    "path to video",
    "path to file",
    "url to image",
    "url to audio",
    "url to video",
    "url to file",
    "image file",
    "audio file",
    "video file",
    "image url",
    "audio url",
    "video url",
)
_FILE_TITLES = frozenset(
    {"image", "audio", "video", "file", "upload", "input_image", "input_audio", "input_video"}
)
_ACCEPT_HINTS: tuple[tuple[str, str], ...] = (
    ("image", "image/*"),
    ("audio", "audio/*"),
    ("video", "video/*"),
    ("pdf", ".pdf"),
    ("text", "text/*"),
)

COMMON_OPTIONAL_FIELDS = frozenset(
    {
        "seed",
        "guidance_scale",
        "num_inference_steps",
        "output_quality",
        "output_format",
        "width",
        "height",
        "safety_tolerance",
        "prompt_upsampling",
    }
)
COMMON_DEFAULTS: Mapping[str, Any] = {
    "num_outputs": 1,
    "aspect_ratio": "1:1",
    "output_format": "webp",
    "output_quality": 80,
    "guidance_scale": 3.5,
    "num_inference_steps": 28,
}


def parse_base_fields(schema: Any) -> list[FieldDescriptor]:
    """Parse ``components.schemas.Input`` into ordered field descriptors.

    Missing or malformed input definitions yield an empty list.
    """

    input_schema = _input_object(schema)
    if input_schema is None:
        return []

    properties = input_schema.get("properties")
    if not isinstance(properties, Mapping):
        return []
    required_raw = input_schema.get("required")
    required = set(required_raw) if isinstance(required_raw, list) else set()

    definitions = schema["components"]["schemas"]
    fields = [
        _parse_property(name, _flatten_all_of(prop, definitions), name in required)
        for name, prop in properties.items()
        if isinstance(prop, Mapping)
    ]
    return sort_fields(fields)


def parse_fields_with_overrides(schema: Any, owner: str, name: str) -> list[FieldDescriptor]:
    """Parse the schema, then overlay the registry entry for ``owner/name``.

    Registry constraints win on default, required, description, bounds and
    options. Registry-only inputs are appended after schema-derived fields.
    Inputs the registry does not constrain get the common-field heuristics.
    """

    base_fields = parse_base_fields(schema)
    config = get_model_config(owner, name)
    if config is None:
        return [apply_common_field_heuristics(field) for field in base_fields]

    merged: list[FieldDescriptor] = []
    for field in base_fields:
        constraint = config.input_schema.get(field.name)
        if constraint is None:
            merged.append(apply_common_field_heuristics(field))
        else:
            merged.append(_overlay_constraint(field, constraint))

    seen = {field.name for field in merged}
    for input_name, constraint in config.input_schema.items():
        if input_name not in seen:
            merged.append(_field_from_constraint(input_name, constraint))
    return sort_fields(merged)


def apply_common_field_heuristics(field: FieldDescriptor) -> FieldDescriptor:
    """Relax conventionally optional inputs and fill well-known defaults."""

    changes: dict[str, Any] = {}
    if field.name in COMMON_OPTIONAL_FIELDS and field.required:
        changes["required"] = False
    if field.name in COMMON_DEFAULTS and field.default_value is None:
        changes["default_value"] = COMMON_DEFAULTS[field.name]
    return field.with_changes(**changes) if changes else field


def _input_object(schema: Any) -> Mapping[str, Any] | None:
    node: Any = schema
    for key in ("components", "schemas", "Input"):
        if not isinstance(node, Mapping):
            return None
        node = node.get(key)
    return node if isinstance(node, Mapping) else None


def _flatten_all_of(prop: Mapping[str, Any], definitions: Mapping[str, Any]) -> dict[str, Any]:
    """Collapse ``allOf`` into one property; later sub-schemas win on key collisions."""

    sub_schemas = prop.get("allOf")
    if not isinstance(sub_schemas, list):
        return dict(prop)
    merged: dict[str, Any] = {key: value for key, value in prop.items() if key != "allOf"}
    for sub_schema in sub_schemas:
        resolved = _resolve_ref(sub_schema, definitions)
        if resolved is not None:
            merged.update(_flatten_all_of(resolved, definitions))
    return merged


def _resolve_ref(sub_schema: Any, definitions: Mapping[str, Any]) -> Mapping[str, Any] | None:
    if not isinstance(sub_schema, Mapping):
        return None
    ref = sub_schema.get("$ref")
    if not isinstance(ref, str) or not ref.startswith(_REF_PREFIX):
        return sub_schema
    target = definitions.get(ref[len(_REF_PREFIX):])
    return target if isinstance(target, Mapping) else None


def _parse_property(name: str, prop: Mapping[str, Any], required: bool) -> FieldDescriptor:
    kind = _kind_for_property(prop)
    title = prop.get("title")
    description = prop.get("description")

    minimum = maximum = None
    if kind is FieldKind.NUMBER:
        minimum = _as_number(prop.get("minimum"))
        maximum = _as_number(prop.get("maximum"))

    enum = prop.get("enum")
    return FieldDescriptor(
        name=name,
        kind=kind,
        label=title if isinstance(title, str) and title else format_label(name),
        description=description if isinstance(description, str) else None,
        required=required,
        default_value=prop.get("default"),
        options=tuple(enum) if kind is FieldKind.SELECT and isinstance(enum, list) else None,
        minimum=minimum,
        maximum=maximum,
        accept=_accept_hint(prop) if kind is FieldKind.FILE else None,
        order=_as_order(prop.get("x-order")),
    )


def _kind_for_property(prop: Mapping[str, Any]) -> FieldKind:
    if isinstance(prop.get("enum"), list):
        return FieldKind.SELECT
    if prop.get("format") == "uri":
        return FieldKind.FILE if _is_file_input(prop) else FieldKind.TEXT
    declared = prop.get("type")
    if declared == "array":
        return FieldKind.ARRAY
    if declared == "object":
        return FieldKind.JSON
    if declared == "boolean":
        return FieldKind.BOOLEAN
    if declared in ("number", "integer"):
        return FieldKind.NUMBER
    return FieldKind.TEXT


def _kind_for_constraint(constraint: InputConstraint) -> FieldKind:
    if constraint.enum:
        return FieldKind.SELECT
    if constraint.type == "boolean":
        return FieldKind.BOOLEAN
    if constraint.type in ("number", "integer"):
        return FieldKind.NUMBER
    if constraint.type == "array":
        return FieldKind.ARRAY
    if constraint.type == "object":
        return FieldKind.JSON
    return FieldKind.TEXT


def _lowered(prop: Mapping[str, Any], key: str) -> str:
    value = prop.get(key)
    return value.lower() if isinstance(value, str) else ""


def _is_file_input(prop: Mapping[str, Any]) -> bool:
    description = _lowered(prop, "description")
    title = _lowered(prop, "title")
    if any(keyword in description or keyword in title for keyword in _FILE_KEYWORDS):
        return True
    return title in _FILE_TITLES


def _accept_hint(prop: Mapping[str, Any]) -> str:
    combined = f"{_lowered(prop, 'description')} {_lowered(prop, 'title')}"
    for keyword, accept in _ACCEPT_HINTS:
        if keyword in combined:
            return accept
    return "*/*"


def _overlay_constraint(field: FieldDescriptor, constraint: InputConstraint) -> FieldDescriptor:
    kind = field.kind
    options = field.options
    if constraint.enum and kind in (FieldKind.TEXT, FieldKind.SELECT, FieldKind.NUMBER):
        kind = FieldKind.SELECT
        options = constraint.enum

    minimum = maximum = None
    if kind is FieldKind.NUMBER:
        minimum = constraint.minimum if constraint.minimum is not None else field.minimum
        maximum = constraint.maximum if constraint.maximum is not None else field.maximum

    return field.with_changes(
        kind=kind,
        default_value=constraint.default if constraint.default is not None else field.default_value,
        required=constraint.required is True,
        description=constraint.description or field.description,
        options=options if kind is FieldKind.SELECT else None,
        minimum=minimum,
        maximum=maximum,
    )


def _field_from_constraint(name: str, constraint: InputConstraint) -> FieldDescriptor:
    kind = _kind_for_constraint(constraint)
    is_number = kind is FieldKind.NUMBER
    return FieldDescriptor(
        name=name,
        kind=kind,
        label=format_label(name),
        description=constraint.description,
        required=constraint.required is True,
        default_value=constraint.default,
        options=constraint.enum if kind is FieldKind.SELECT else None,
        minimum=constraint.minimum if is_number else None,
        maximum=constraint.maximum if is_number else None,
        order=UNORDERED,
    )


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def _as_order(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return int(value)
