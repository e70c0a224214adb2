"""Tests for upload decoding, limits and storage keys."""

import base64
import unittest

from app.services.uploads import (
    UploadRejectedError,
    build_storage_key,
    decode_base64_payload,
    store_upload,
)


class _StubBlobStore:
    def __init__(self) -> None:
        self.puts: list[tuple[str, bytes, str | None]] = []

    def put(self, key: str, data: bytes, content_type: str | None = None) -> str:
        self.puts.append((key, data, content_type))
        return f"https://blob.example.com/uploads/{key}"


class UploadServiceTests(unittest.TestCase):
    def test_storage_keys_are_unique_and_keep_extension(self) -> None:
        first = build_storage_key("Portrait.JPG")
        second = build_storage_key("Portrait.JPG")
        self.assertNotEqual(first, second)
        self.assertTrue(first.endswith(".jpg"))
        self.assertEqual(len(first), 32 + len(".jpg"))
        self.assertEqual(len(build_storage_key("noext")), 32)

    def test_decode_raw_and_data_url_payloads(self) -> None:
        encoded = base64.b64encode(b"hello").decode("ascii")
        self.assertEqual(decode_base64_payload(encoded), b"hello")
        self.assertEqual(decode_base64_payload(f"data:text/plain;base64,{encoded}"), b"hello")

    def test_invalid_base64_is_rejected(self) -> None:
        with self.assertRaisesRegex(UploadRejectedError, "Invalid base64"):
            decode_base64_payload("!!not base64!!")

    def test_store_upload_enforces_limits(self) -> None:
        blob_store = _StubBlobStore()
        with self.assertRaisesRegex(UploadRejectedError, "No file provided"):
            store_upload(blob_store, data=b"", filename="a.png", content_type="image/png", max_bytes=10)
        with self.assertRaisesRegex(UploadRejectedError, "File size exceeds 50MB limit"):
            store_upload(
                blob_store,
                data=b"x" * (50 * 1024 * 1024 + 1),
                filename="a.png",
                content_type="image/png",
                max_bytes=50 * 1024 * 1024,
            )
        self.assertEqual(blob_store.puts, [])

    def test_store_upload_returns_public_location(self) -> None:
        blob_store = _StubBlobStore()

        result = store_upload(blob_store, data=b"abc", filename="cat.png", content_type="image/png", max_bytes=10)

        key, data, content_type = blob_store.puts[0]
        self.assertEqual(result.url, f"https://blob.example.com/uploads/{key}")
        self.assertEqual((result.filename, result.size, result.type), ("cat.png", 3, "image/png"))
        self.assertEqual((data, content_type), (b"abc", "image/png"))


if __name__ == "__main__":
    unittest.main()
