"""Copy provider-hosted prediction media into durable blob storage."""

from __future__ import annotations

import logging
import mimetypes
import time
from collections.abc import Callable
from pathlib import PurePosixPath
from urllib import error as urllib_error
from urllib import parse as urllib_parse
from urllib import request as urllib_request

from app.services.blob_storage import BlobStorageError, BlobStore

logger = logging.getLogger(__name__)

MediaFetcher = Callable[[str], tuple[bytes, str | None]]


class MediaFetchError(RuntimeError):
    """Raised when a media URL cannot be downloaded."""


def fetch_media(url: str, timeout_seconds: int = 60) -> tuple[bytes, str | None]:
    """Download ``url`` and return its bytes and declared content type."""

    try:
        with urllib_request.urlopen(url, timeout=timeout_seconds) as resp:
            return resp.read(), resp.headers.get_content_type()
    except urllib_error.HTTPError as exc:
        raise MediaFetchError(f"HTTP {exc.code} fetching {url}") from exc
    except urllib_error.URLError as exc:
        raise MediaFetchError(f"Failed to fetch {url}: {exc.reason}") from exc


def archive_media(
    generation_id: int,
    urls: list[str],
    *,
    blob_store: BlobStore,
    fetch: MediaFetcher = fetch_media,
) -> tuple[list[str], list[str]]:
    """Re-upload each URL; return ``(original_urls, archived_urls)`` for successes.

    A failing item is logged and skipped without affecting the others.
    """

    original_urls: list[str] = []
    archived_urls: list[str] = []
    for index, url in enumerate(urls):
        try:
            data, content_type = fetch(url)
            stamp = int(time.time() * 1000)
            key = f"generations/{generation_id}/image-{index}-{stamp}{_extension(url, content_type)}"
            archived_urls.append(blob_store.put(key, data, content_type))
            original_urls.append(url)
        except (MediaFetchError, BlobStorageError, OSError) as exc:
            logger.warning(
                "media_archive.item_failed generation_id=%s index=%d url=%s error=%s",
                generation_id,
                index,
                url,
                exc,
            )
    logger.info(
        "media_archive.completed generation_id=%s archived=%d total=%d",
        generation_id,
        len(archived_urls),
        len(urls),
    )
    return original_urls, archived_urls


def _extension(url: str, content_type: str | None) -> str:
    suffix = PurePosixPath(urllib_parse.urlparse(url).path).suffix.lower()
    if suffix:
        return suffix
    guessed = mimetypes.guess_extension(content_type or "")
    return guessed or ".png"
