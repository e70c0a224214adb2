"""Minimal Replicate HTTP API client."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Protocol
from urllib import error as urllib_error
from urllib import parse as urllib_parse
from urllib import request as urllib_request

from app.schemas.prediction import Prediction

logger = logging.getLogger(__name__)


class ReplicateError(RuntimeError):
    """Raised when the Replicate API returns a non-success response."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ReplicateNotFoundError(ReplicateError):
    """Raised when the requested model, version or prediction does not exist."""


class ReplicateConfigurationError(ReplicateError):
    """Raised for missing credentials or unresolvable model versions."""


class PredictionProvider(Protocol):
    """Operations needed from the remote prediction service."""

    def search_models(self, query: str | None = None, cursor: str | None = None) -> dict[str, Any]:
        """Return a page of models, optionally filtered by ``query``."""

    def get_model(self, owner: str, name: str) -> dict[str, Any]:
        """Return model metadata including ``latest_version``."""

    def get_model_version(self, owner: str, name: str, version_id: str) -> dict[str, Any]:
        """Return a model version including its ``openapi_schema``."""

    def create_prediction(
        self,
        version: str,
        input: dict[str, Any],
        *,
        webhook: str | None = None,
        webhook_events_filter: list[str] | None = None,
        stream: bool = False,
    ) -> Prediction:
        """Start a prediction."""

    def get_prediction(self, prediction_id: str) -> Prediction:
        """Return the current state of a prediction."""

    def cancel_prediction(self, prediction_id: str) -> None:
        """Request cancellation of a running prediction."""


@dataclass(slots=True)
class ReplicateClient:
    """Replicate REST client using stdlib HTTP."""

    api_token: str | None
    base_url: str = "https://api.replicate.com/v1"
    timeout_seconds: int = 60

    def search_models(self, query: str | None = None, cursor: str | None = None) -> dict[str, Any]:
        params = {key: value for key, value in (("query", query), ("cursor", cursor)) if value}
        data = self._request("GET", "/models", query=params)
        return {
            "results": data.get("results") or [],
            "next": data.get("next"),
            "previous": data.get("previous"),
        }

    def get_model(self, owner: str, name: str) -> dict[str, Any]:
        return self._request("GET", f"/models/{_segment(owner)}/{_segment(name)}")

    def get_model_version(self, owner: str, name: str, version_id: str) -> dict[str, Any]:
        return self._request(
            "GET",
            f"/models/{_segment(owner)}/{_segment(name)}/versions/{_segment(version_id)}",
        )

    def create_prediction(
        self,
        version: str,
        input: dict[str, Any],
        *,
        webhook: str | None = None,
        webhook_events_filter: list[str] | None = None,
        stream: bool = False,
    ) -> Prediction:
        body: dict[str, Any] = {"version": version, "input": input}
        if webhook:
            body["webhook"] = webhook
            body["webhook_events_filter"] = webhook_events_filter or ["completed"]
        if stream:
            body["stream"] = True

        logger.info(
            "replicate.prediction_create version=%s webhook=%s stream=%s input_keys=%s",
            version,
            "configured" if webhook else "none",
            stream,
            sorted(input),
        )
        prediction = Prediction.model_validate(self._request("POST", "/predictions", payload=body))
        logger.info("replicate.prediction_created id=%s status=%s", prediction.id, prediction.status)
        return prediction

    def get_prediction(self, prediction_id: str) -> Prediction:
        return Prediction.model_validate(self._request("GET", f"/predictions/{_segment(prediction_id)}"))

    def cancel_prediction(self, prediction_id: str) -> None:
        self._request("POST", f"/predictions/{_segment(prediction_id)}/cancel")

    def _request(
        self,
        method: str,
        path: str,
        *,
        payload: dict[str, Any] | None = None,
        query: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        if not self.api_token:
            raise ReplicateConfigurationError("REPLICATE_API_TOKEN is not configured")

        url = f"{self.base_url.rstrip('/')}{path}"
        if query:
            url = f"{url}?{urllib_parse.urlencode(query)}"
        req = urllib_request.Request(
            url=url,
            data=json.dumps(payload).encode("utf-8") if payload is not None else None,
            method=method,
            headers={
                "Authorization": f"Bearer {self.api_token}",
                "Content-Type": "application/json",
            },
        )
        try:
            with urllib_request.urlopen(req, timeout=self.timeout_seconds) as resp:
                raw = resp.read().decode("utf-8")
        except urllib_error.HTTPError as exc:
            detail = _error_detail(exc)
            logger.error(
                "replicate.request_failed method=%s path=%s status=%s detail=%s",
                method,
                path,
                exc.code,
                detail,
            )
            error_cls = ReplicateNotFoundError if exc.code == 404 else ReplicateError
            raise error_cls(detail, status_code=exc.code) from exc
        except urllib_error.URLError as exc:
            raise ReplicateError(f"Replicate request failed: {exc.reason}") from exc

        if not raw.strip():
            return {}
        try:
            decoded = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ReplicateError("Replicate returned a non-JSON response") from exc
        if not isinstance(decoded, dict):
            raise ReplicateError("Replicate returned an unexpected response shape")
        return decoded


def _segment(value: str) -> str:
    return urllib_parse.quote(value, safe="")


def _error_detail(exc: urllib_error.HTTPError) -> str:
    """Prefer the provider's ``detail``/``message``; fall back to the HTTP reason."""

    body = exc.read().decode("utf-8", errors="replace")
    try:
        decoded = json.loads(body)
    except json.JSONDecodeError:
        decoded = None
    if isinstance(decoded, dict):
        for key in ("detail", "message", "error"):
            value = decoded.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    return str(exc.reason or f"HTTP {exc.code}")
