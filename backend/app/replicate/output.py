"""Helpers for normalizing Replicate prediction output and status."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, NamedTuple

from app.schema.model_registry import get_model_config

TERMINAL_STATUSES = frozenset({"succeeded", "failed", "canceled"})

_STATUS_MESSAGES: dict[str, str] = {
    "pending": "Queued...",
    "starting": "Starting up...",
    "processing": "Processing...",
    "succeeded": "Completed",
    "failed": "Failed",
    "canceled": "Canceled",
}
_CATEGORY_ESTIMATES: dict[str, str] = {
    "image": "5-30s",
    "video": "1-5min",
    "3d": "2-10min",
    "audio": "30s-2min",
}
_DEFAULT_ESTIMATE = "~30s"


class ModelRef(NamedTuple):
    owner: str
    name: str
    version_id: str | None


def is_terminal_status(status: str | None) -> bool:
    """Return whether ``status`` ends the prediction lifecycle."""

    return bool(status) and status.lower() in TERMINAL_STATUSES


def normalize_output(output: Any) -> Any:
    """Reduce Replicate output to a URL string or a flat list of them.

    Items that are neither strings nor URL-bearing objects are passed through.
    """

    if output is None or output == "" or output == []:
        return None
    if isinstance(output, (list, tuple)):
        flattened: list[Any] = []
        for item in output:
            normalized = normalize_output(item)
            if isinstance(normalized, list):
                flattened.extend(normalized)
            elif normalized is not None:
                flattened.append(normalized)
        return flattened
    return _normalize_item(output)


def _normalize_item(item: Any) -> Any:
    if isinstance(item, str):
        return item
    if isinstance(item, Mapping):
        if "output" in item:
            return normalize_output(item["output"])
        url = item.get("url")
        if isinstance(url, str):
            return url
        return item
    url_attr = getattr(item, "url", None)
    if callable(url_attr):
        return str(url_attr())
    if isinstance(url_attr, str):
        return url_attr
    return item


def extract_output_urls(output: Any) -> list[str]:
    """Return every URL string contained in ``output``."""

    normalized = normalize_output(output)
    if isinstance(normalized, str):
        return [normalized]
    if isinstance(normalized, list):
        return [item for item in normalized if isinstance(item, str)]
    return []


def parse_model_version(version: str | None) -> ModelRef | None:
    """Split ``owner/name[:version]``; return ``None`` for anything else."""

    if not version:
        return None
    model_part, _, version_id = version.partition(":")
    owner, slash, name = model_part.partition("/")
    if not slash or not owner or not name or "/" in name:
        return None
    return ModelRef(owner=owner, name=name, version_id=version_id or None)


def format_prediction_for_client(prediction: Mapping[str, Any]) -> dict[str, Any]:
    """Copy of ``prediction`` with normalized output and lower-cased status."""

    formatted = dict(prediction)
    if formatted.get("output"):
        formatted["output"] = normalize_output(formatted["output"])
    status = formatted.get("status")
    if isinstance(status, str):
        formatted["status"] = status.lower()
    return formatted


def is_output_ready(prediction: Mapping[str, Any]) -> bool:
    return prediction.get("status") == "succeeded" and prediction.get("output") is not None


def status_message(status: str) -> str:
    """Human-readable progress text for a status value."""

    return _STATUS_MESSAGES.get(status.lower(), status)


def estimated_time(model: str) -> str:
    """Rough runtime estimate for ``owner/name`` based on its registry category."""

    ref = parse_model_version(model)
    config = get_model_config(ref.owner, ref.name) if ref else None
    if config is None:
        return _DEFAULT_ESTIMATE
    return _CATEGORY_ESTIMATES.get(config.category, _DEFAULT_ESTIMATE)
