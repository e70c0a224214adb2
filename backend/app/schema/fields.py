"""Typed form field descriptors derived from model input schemas."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

UNORDERED = 999


class FieldKind(str, Enum):
    """Closed set of input kinds; drives rendering and coercion."""

    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    SELECT = "select"
    FILE = "file"
    ARRAY = "array"
    JSON = "json"


@dataclass(frozen=True, slots=True)
class FieldDescriptor:
    """One model input parameter, normalized for form rendering and validation.

    ``default_value`` of ``None`` means the field declares no default. ``options``
    is only populated for ``SELECT`` fields, ``minimum``/``maximum`` only for
    ``NUMBER`` fields and ``accept`` only for ``FILE`` fields.
    """

    name: str
    kind: FieldKind
    label: str
    description: str | None = None
    required: bool = False
    default_value: Any = None
    options: tuple[Any, ...] | None = None
    minimum: float | None = None
    maximum: float | None = None
    accept: str | None = None
    order: int | None = None

    @property
    def multiple(self) -> bool:
        return self.kind is FieldKind.ARRAY

    @property
    def sort_key(self) -> int:
        return self.order if self.order is not None else UNORDERED

    def with_changes(self, **changes: Any) -> FieldDescriptor:
        return replace(self, **changes)


def format_label(name: str) -> str:
    """Turn ``snake_case`` input names into ``Title Case`` labels."""

    return " ".join(word[:1].upper() + word[1:] for word in name.split("_"))


def sort_fields(fields: list[FieldDescriptor]) -> list[FieldDescriptor]:
    """Stable sort by display order; unordered fields go last."""

    return sorted(fields, key=lambda field: field.sort_key)
