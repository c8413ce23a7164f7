"""
Backend REST client.

Each operation is one HTTP call, never retried. Calls are made with
``urllib.request`` on the loop's executor so the event loop stays free
while a request is pending. Any failure surfaces as RemoteError.
"""

import asyncio
import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass
from typing import List, Optional

from backend.multipart import encode_multipart
from core.errors import RemoteError
from core.types import Capture, Model, Prediction, SamplesInfo

logger = logging.getLogger(__name__)


@dataclass
class BackendConfig:
    """Backend connection settings."""
    base_url: str = "http://127.0.0.1:8000"
    timeout_s: Optional[float] = None

    @classmethod
    def from_dict(cls, config: dict) -> "BackendConfig":
        return cls(
            base_url=config.get("base_url", "http://127.0.0.1:8000"),
            timeout_s=config.get("timeout_s"),
        )


def _error_detail(body: bytes) -> Optional[str]:
    """Pull the ``detail`` field out of a JSON error body, if any."""
    try:
        payload = json.loads(body.decode("utf-8"))
    except (ValueError, UnicodeDecodeError):
        return None
    if isinstance(payload, dict) and payload.get("detail") is not None:
        return str(payload["detail"])
    return None


class BackendClient:
    """
    Thin adapter over the training/inference service.

    Example:
        >>> client = BackendClient(BackendConfig())
        >>> info = await client.list_samples()
        >>> model = await client.train("lenguaje_senas_v1")
    """

    def __init__(self, config: Optional[BackendConfig] = None):
        self.config = config or BackendConfig()
        self._base_url = self.config.base_url.rstrip("/")

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def upload(self, capture: Capture) -> None:
        """POST /api/upload_sample"""
        body, content_type = encode_multipart(
            {
                "label": capture.label,
                "hands_detected": str(capture.hands_detected),
                "category": capture.category,
            },
            {"file": (capture.filename, capture.image, "image/jpeg")},
        )
        await self._call("POST", "/api/upload_sample", body, content_type)
        logger.debug("Uploaded sample label=%s category=%s", capture.label, capture.category)

    async def list_samples(self) -> SamplesInfo:
        """GET /api/samples"""
        payload = await self._call("GET", "/api/samples")
        return SamplesInfo.from_dict(self._expect_dict(payload, "/api/samples"))

    async def clear_samples(self) -> None:
        """DELETE /api/clear_samples"""
        await self._call("DELETE", "/api/clear_samples")
        logger.info("All samples cleared")

    async def train(self, model_name: str) -> Model:
        """POST /api/train"""
        body, content_type = encode_multipart({"name": model_name})
        payload = self._expect_dict(await self._call("POST", "/api/train", body, content_type), "/api/train")
        model_data = payload.get("model") if isinstance(payload.get("model"), dict) else payload
        model = Model.from_dict(model_data, default_name=model_name)
        logger.info("Trained model %s (accuracy=%.3f)", model.name, model.accuracy)
        return model

    async def list_models(self) -> List[Model]:
        """GET /api/models"""
        payload = self._expect_dict(await self._call("GET", "/api/models"), "/api/models")
        return [Model.from_dict(m) for m in payload.get("models") or []]

    async def delete_model(self, name: str) -> None:
        """DELETE /api/model/{name}"""
        await self._call("DELETE", f"/api/model/{urllib.parse.quote(name, safe='')}")
        logger.info("Deleted model %s", name)

    async def predict(self, image: bytes, model_name: str, hands_detected: int) -> Prediction:
        """POST /api/predict

        Callers must check hand presence first; this client does not.
        """
        body, content_type = encode_multipart(
            {"model": model_name, "hands_detected": str(hands_detected)},
            {"file": ("frame.jpg", image, "image/jpeg")},
        )
        payload = await self._call("POST", "/api/predict", body, content_type)
        return Prediction.from_dict(self._expect_dict(payload, "/api/predict"))

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _call(self, method: str, path: str, body: Optional[bytes] = None,
                    content_type: Optional[str] = None):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._request, method, path, body, content_type)

    def _request(self, method: str, path: str, body: Optional[bytes] = None,
                 content_type: Optional[str] = None):
        """Blocking HTTP request. Returns the decoded JSON body or None."""
        url = self._base_url + path
        request = urllib.request.Request(url, data=body, method=method)
        request.add_header("Accept", "application/json")
        if content_type:
            request.add_header("Content-Type", content_type)

        kwargs = {}
        if self.config.timeout_s is not None:
            kwargs["timeout"] = self.config.timeout_s

        try:
            with urllib.request.urlopen(request, **kwargs) as response:
                raw = response.read()
        except urllib.error.HTTPError as e:
            detail = _error_detail(e.read() or b"")
            logger.debug("%s %s -> HTTP %d", method, path, e.code)
            raise RemoteError(f"{method} {path} failed with HTTP {e.code}",
                              status=e.code, detail=detail) from e
        except (urllib.error.URLError, OSError) as e:
            reason = getattr(e, "reason", e)
            raise RemoteError(f"{method} {path} failed", detail=str(reason)) from e

        if not raw:
            return None
        try:
            return json.loads(raw.decode("utf-8"))
        except (ValueError, UnicodeDecodeError) as e:
            raise RemoteError(f"{method} {path} returned invalid JSON") from e

    @staticmethod
    def _expect_dict(payload, path: str) -> dict:
        if not isinstance(payload, dict):
            raise RemoteError(f"{path} returned an unexpected response")
        return payload
