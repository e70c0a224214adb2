"""Tests for OpenAPI input schema parsing into form fields."""

import unittest

from app.schema.fields import UNORDERED, FieldDescriptor, FieldKind, format_label, sort_fields
from app.schema.parser import parse_base_fields


def _schema(properties: dict, required: list[str] | None = None, extra_definitions: dict | None = None) -> dict:
    definitions = {"Input": {"type": "object", "properties": properties, "required": required or []}}
    definitions.update(extra_definitions or {})
    return {"components": {"schemas": definitions}}


_EXAMPLE_SCHEMA = _schema(
    {
        "prompt": {"type": "string", "title": "Prompt", "x-order": 0},
        "image": {"type": "string", "format": "uri", "title": "Input Image", "x-order": 1},
        "temperature": {
            "type": "number",
            "title": "Temperature",
            "minimum": 0,
            "maximum": 2,
            "default": 0.7,
            "x-order": 2,
        },
        "style": {
            "allOf": [{"$ref": "#/components/schemas/style"}],
            "default": "realistic",
            "x-order": 3,
        },
    },
    required=["prompt"],
    extra_definitions={
        "style": {"title": "style", "type": "string", "enum": ["realistic", "cartoon", "abstract"]},
    },
)


class ParseBaseFieldsTests(unittest.TestCase):
    def test_example_schema_yields_four_ordered_fields(self) -> None:
        fields = parse_base_fields(_EXAMPLE_SCHEMA)

        self.assertEqual([field.name for field in fields], ["prompt", "image", "temperature", "style"])
        prompt, image, temperature, style = fields
        self.assertEqual(prompt.kind, FieldKind.TEXT)
        self.assertTrue(prompt.required)
        self.assertEqual(image.kind, FieldKind.FILE)
        self.assertEqual(image.accept, "image/*")
        self.assertEqual(temperature.kind, FieldKind.NUMBER)
        self.assertEqual((temperature.minimum, temperature.maximum), (0, 2))
        self.assertEqual(temperature.default_value, 0.7)
        self.assertEqual(style.kind, FieldKind.SELECT)
        self.assertEqual(style.options, ("realistic", "cartoon", "abstract"))
        self.assertEqual(style.default_value, "realistic")

    def test_parsing_is_deterministic(self) -> None:
        first = parse_base_fields(_EXAMPLE_SCHEMA)
        second = parse_base_fields(_EXAMPLE_SCHEMA)
        self.assertEqual(first, second)

    def test_unordered_fields_sort_last_and_keep_declaration_order(self) -> None:
        fields = parse_base_fields(
            _schema(
                {
                    "zeta": {"type": "string"},
                    "alpha": {"type": "string"},
                    "prompt": {"type": "string", "x-order": 5},
                }
            )
        )
        self.assertEqual([field.name for field in fields], ["prompt", "zeta", "alpha"])
        self.assertEqual(fields[1].sort_key, UNORDERED)

    def test_malformed_schemas_yield_no_fields(self) -> None:
        self.assertEqual(parse_base_fields(None), [])
        self.assertEqual(parse_base_fields({}), [])
        self.assertEqual(parse_base_fields({"components": {"schemas": {}}}), [])
        self.assertEqual(parse_base_fields({"components": {"schemas": {"Input": {"properties": []}}}}), [])

    def test_kinds_for_structural_types(self) -> None:
        fields = {
            field.name: field
            for field in parse_base_fields(
                _schema(
                    {
                        "tags": {"type": "array", "items": {"type": "string"}},
                        "options": {"type": "object"},
                        "enabled": {"type": "boolean"},
                        "steps": {"type": "integer", "minimum": 1, "maximum": 50},
                        "callback": {"type": "string", "format": "uri", "title": "Callback"},
                    }
                )
            )
        }

        self.assertEqual(fields["tags"].kind, FieldKind.ARRAY)
        self.assertTrue(fields["tags"].multiple)
        self.assertEqual(fields["options"].kind, FieldKind.JSON)
        self.assertEqual(fields["enabled"].kind, FieldKind.BOOLEAN)
        self.assertEqual(fields["steps"].kind, FieldKind.NUMBER)
        self.assertEqual(fields["steps"].maximum, 50)
        self.assertEqual(fields["callback"].kind, FieldKind.TEXT)
        self.assertIsNone(fields["callback"].accept)

    def test_file_inputs_pick_accept_hint_from_description(self) -> None:
        fields = parse_base_fields(
            _schema(
                {
                    "song": {"type": "string", "format": "uri", "description": "Input audio to separate"},
                    "clip": {"type": "string", "format": "uri", "title": "Video"},
                    "doc": {"type": "string", "format": "uri", "title": "File"},
                }
            )
        )
        accepts = {field.name: field.accept for field in fields}
        self.assertEqual(accepts, {"song": "audio/*", "clip": "video/*", "doc": "*/*"})

    def test_labels_fall_back_to_formatted_name(self) -> None:
        fields = parse_base_fields(_schema({"num_inference_steps": {"type": "integer"}}))
        self.assertEqual(fields[0].label, "Num Inference Steps")
        self.assertEqual(format_label("go_fast"), "Go Fast")

    def test_bounds_and_options_only_kept_for_matching_kinds(self) -> None:
        fields = parse_base_fields(
            _schema({"caption": {"type": "string", "minimum": 1, "maximum": 3}})
        )
        self.assertIsNone(fields[0].minimum)
        self.assertIsNone(fields[0].maximum)
        self.assertIsNone(fields[0].options)

    def test_sort_fields_is_stable(self) -> None:
        fields = [
            FieldDescriptor(name="b", kind=FieldKind.TEXT, label="B", order=1),
            FieldDescriptor(name="a", kind=FieldKind.TEXT, label="A"),
            FieldDescriptor(name="c", kind=FieldKind.TEXT, label="C", order=1),
        ]
        self.assertEqual([field.name for field in sort_fields(fields)], ["b", "c", "a"])


if __name__ == "__main__":
    unittest.main()
