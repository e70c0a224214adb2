"""Tests for lenient registry-driven input coercion."""

import unittest

from app.schema.validation import coerce_registry_input


class RegistryCoercionTests(unittest.TestCase):
    def test_unregistered_model_input_passes_through(self) -> None:
        raw = {"prompt": "cat", "anything": [1, 2]}
        coerced = coerce_registry_input("someone", "custom", raw)
        self.assertEqual(coerced, raw)
        self.assertIsNot(coerced, raw)

    def test_unknown_keys_dropped_and_defaults_filled(self) -> None:
        coerced = coerce_registry_input("black-forest-labs", "flux-dev", {"prompt": "cat", "foo": 1})
        self.assertEqual(
            coerced,
            {
                "prompt": "cat",
                "aspect_ratio": "1:1",
                "num_outputs": 1,
                "num_inference_steps": 28,
                "guidance_scale": 3.5,
                "output_format": "webp",
                "output_quality": 80,
            },
        )
        self.assertNotIn("seed", coerced)

    def test_numbers_are_parsed_and_clamped(self) -> None:
        coerced = coerce_registry_input(
            "black-forest-labs",
            "flux-dev",
            {"prompt": "cat", "num_outputs": 10, "num_inference_steps": "0", "guidance_scale": "12.5"},
        )
        self.assertEqual(coerced["num_outputs"], 4)
        self.assertEqual(coerced["num_inference_steps"], 1)
        self.assertEqual(coerced["guidance_scale"], 10)

    def test_integers_are_truncated(self) -> None:
        coerced = coerce_registry_input("black-forest-labs", "flux-dev", {"prompt": "cat", "num_outputs": "2.7"})
        self.assertEqual(coerced["num_outputs"], 2)

    def test_unparseable_number_falls_back_to_default(self) -> None:
        coerced = coerce_registry_input(
            "black-forest-labs", "flux-dev", {"prompt": "cat", "guidance_scale": "strong", "seed": "abc"}
        )
        self.assertEqual(coerced["guidance_scale"], 3.5)
        self.assertNotIn("seed", coerced)

    def test_invalid_enum_is_repaired(self) -> None:
        coerced = coerce_registry_input(
            "black-forest-labs", "flux-dev", {"prompt": "cat", "aspect_ratio": "7:3", "output_format": "gif"}
        )
        self.assertEqual(coerced["aspect_ratio"], "1:1")
        self.assertEqual(coerced["output_format"], "webp")

    def test_strings_and_booleans(self) -> None:
        coerced = coerce_registry_input(
            "tylerbishopdev", "tyler", {"prompt": "cat", "megapixels": 2, "go_fast": "false"}
        )
        self.assertEqual(coerced["megapixels"], "2")
        self.assertIs(coerced["go_fast"], False)

    def test_arrays_are_wrapped(self) -> None:
        coerced = coerce_registry_input(
            "meta", "sam-2-video", {"video_url": "https://example.com/v.mp4", "box": 4}
        )
        self.assertEqual(coerced, {"video_url": "https://example.com/v.mp4", "box": [4]})

    def test_explicit_none_for_required_input_raises(self) -> None:
        with self.assertRaisesRegex(ValueError, "Required field 'prompt' is missing"):
            coerce_registry_input("black-forest-labs", "flux-dev", {"prompt": None})

    def test_explicit_none_for_optional_input_uses_default(self) -> None:
        coerced = coerce_registry_input("black-forest-labs", "flux-dev", {"prompt": "cat", "num_outputs": None})
        self.assertEqual(coerced["num_outputs"], 1)


if __name__ == "__main__":
    unittest.main()
