"""Tests for inbound webhook verification, relay and media archival."""

from __future__ import annotations

import hashlib
import hmac
import json
import unittest

from sqlalchemy import create_engine, delete
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.models.base import Base
from app.models.generation import Generation
from app.schemas.generation import GenerationCreate
from app.services.blob_storage import BlobStorageError
from app.services.generations import create_generation, get_generation, update_generation
from app.services.media_archive import MediaFetchError
from app.services.relay import UpdateRelay
from app.services.webhooks import (
    WebhookPayloadError,
    WebhookSignatureError,
    process_prediction_webhook,
    verify_webhook_signature,
)

_SECRET = "whsec-test"


class _StubBlobStore:
    def __init__(self) -> None:
        self.puts: list[tuple[str, bytes, str | None]] = []

    def put(self, key: str, data: bytes, content_type: str | None = None) -> str:
        self.puts.append((key, data, content_type))
        return f"https://blob.example.com/media/{key}"


def _fetch(url: str) -> tuple[bytes, str | None]:
    if "broken" in url:
        raise MediaFetchError(f"HTTP 404 fetching {url}")
    return b"image-bytes", "image/png"


def _unconfigured_store():
    raise BlobStorageError("File storage is not configured")


def _body(prediction_id: str = "pred-1", status: str = "succeeded", output=None, **extra) -> bytes:
    payload = {
        "id": prediction_id,
        "status": status,
        "created_at": "2026-10-17T10:00:00Z",
        "input": {"prompt": "fox"},
        "output": output,
    }
    payload.update(extra)
    return json.dumps(payload).encode("utf-8")


def _sign(body: bytes) -> str:
    return hmac.new(_SECRET.encode("utf-8"), body, hashlib.sha256).hexdigest()


class SignatureTests(unittest.TestCase):
    def test_accepts_plain_and_prefixed_signatures(self) -> None:
        body = _body()
        signature = _sign(body)
        self.assertTrue(verify_webhook_signature(body, signature, _SECRET))
        self.assertTrue(verify_webhook_signature(body, f"sha256={signature}", _SECRET))

    def test_rejects_mismatch(self) -> None:
        body = _body()
        self.assertFalse(verify_webhook_signature(body, _sign(b"other"), _SECRET))
        self.assertFalse(verify_webhook_signature(body, "", _SECRET))

    def test_non_ascii_signature_is_a_mismatch(self) -> None:
        self.assertFalse(verify_webhook_signature(b"{}", "café", _SECRET))
        self.assertFalse(verify_webhook_signature(b"{}", "sha256=ünïcode", _SECRET))


class ProcessWebhookTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls.engine = create_engine(
            "sqlite+pysqlite:///:memory:",
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        cls.SessionLocal = sessionmaker(bind=cls.engine, autoflush=False, autocommit=False, future=True)
        Base.metadata.create_all(cls.engine)

    @classmethod
    def tearDownClass(cls) -> None:
        Base.metadata.drop_all(cls.engine)
        cls.engine.dispose()

    def setUp(self) -> None:
        self.db = self.SessionLocal()
        self.relay = UpdateRelay(schedule_sweeps=False)
        self.blob_store = _StubBlobStore()

    def tearDown(self) -> None:
        self.relay.shutdown()
        self.db.execute(delete(Generation))
        self.db.commit()
        self.db.close()

    def _generation(self, replicate_id: str = "pred-1") -> Generation:
        return create_generation(
            self.db,
            GenerationCreate(model_owner="acme", model_name="painter", prompt="fox", replicate_id=replicate_id),
        )

    def _process(self, body: bytes, *, signature: str | None = None, secret: str | None = None, **kwargs):
        kwargs.setdefault("blob_store_factory", lambda: self.blob_store)
        kwargs.setdefault("fetch", _fetch)
        return process_prediction_webhook(
            self.db, self.relay, body=body, signature=signature, secret=secret, **kwargs
        )

    def test_bad_signature_is_rejected_before_parsing(self) -> None:
        with self.assertRaises(WebhookSignatureError):
            self._process(b"not json", signature="sha256=deadbeef", secret=_SECRET)
        self.assertEqual(self.relay.prediction_ids(), [])

    def test_signed_update_without_generation_is_only_relayed(self) -> None:
        body = _body(status="processing")

        outcome = self._process(body, signature=f"sha256={_sign(body)}", secret=_SECRET)

        self.assertIsNone(outcome.generation_id)
        self.assertEqual(outcome.relay_index, 0)
        events = self.relay.drain("pred-1")
        self.assertEqual(events[0].payload["status"], "processing")

    def test_succeeded_update_archives_media(self) -> None:
        generation = self._generation()
        urls = ["https://replicate.delivery/a.png", "https://replicate.delivery/broken.png"]

        outcome = self._process(_body(output=urls))

        self.assertEqual(outcome.generation_id, generation.id)
        self.assertEqual(outcome.archived_urls, 1)
        stored = get_generation(self.db, generation.id)
        self.assertEqual(stored.status, "succeeded")
        self.assertEqual(stored.output_json, urls)
        self.assertEqual(stored.image_urls_json, ["https://replicate.delivery/a.png"])
        self.assertEqual(len(stored.blob_urls_json), 1)
        prefix = f"https://blob.example.com/media/generations/{generation.id}/image-0-"
        self.assertTrue(stored.blob_urls_json[0].startswith(prefix))
        self.assertTrue(stored.blob_urls_json[0].endswith(".png"))
        self.assertIsNotNone(stored.completed_at)

    def test_missing_blob_storage_keeps_provider_urls(self) -> None:
        generation = self._generation()

        outcome = self._process(
            _body(output="https://replicate.delivery/a.png"),
            blob_store_factory=_unconfigured_store,
        )

        stored = get_generation(self.db, generation.id)
        self.assertEqual(outcome.archived_urls, 0)
        self.assertEqual(stored.image_urls_json, ["https://replicate.delivery/a.png"])
        self.assertEqual(stored.blob_urls_json, [])

    def test_failed_update_records_error(self) -> None:
        generation = self._generation()

        self._process(_body(status="failed", error="CUDA out of memory"))

        stored = get_generation(self.db, generation.id)
        self.assertEqual(stored.status, "failed")
        self.assertEqual(stored.error, "CUDA out of memory")
        self.assertEqual(self.blob_store.puts, [])

    def test_updates_after_terminal_status_are_ignored(self) -> None:
        generation = self._generation()
        update_generation(self.db, generation.id, {"status": "canceled"})

        self._process(_body(status="processing"))

        self.assertEqual(get_generation(self.db, generation.id).status, "canceled")
        self.assertEqual(len(self.relay.drain("pred-1")), 1)

    def test_repeated_success_archives_media_once(self) -> None:
        generation = self._generation()
        body = _body(output=["https://replicate.delivery/a.png"])

        first = self._process(body)
        stored_urls = list(get_generation(self.db, generation.id).blob_urls_json)
        second = self._process(body)

        self.assertEqual(first.archived_urls, 1)
        self.assertEqual(second.archived_urls, 0)
        self.assertEqual(second.generation_id, generation.id)
        self.assertEqual(len(self.blob_store.puts), 1)
        self.assertEqual(get_generation(self.db, generation.id).blob_urls_json, stored_urls)
        self.assertEqual(len(self.relay.drain("pred-1")), 2)

    def test_non_ascii_signature_is_rejected(self) -> None:
        with self.assertRaises(WebhookSignatureError):
            self._process(_body(), signature="sha256=café", secret=_SECRET)

    def test_invalid_payloads(self) -> None:
        with self.assertRaises(WebhookPayloadError):
            self._process(b"{not json")
        with self.assertRaises(WebhookPayloadError) as ctx:
            self._process(json.dumps({"id": "pred-1", "status": "succeeded"}).encode("utf-8"))
        self.assertTrue(ctx.exception.details)
        with self.assertRaises(WebhookPayloadError):
            self._process(_body(status="exploded"))


if __name__ == "__main__":
    unittest.main()
