"""photo_capture.services.upload_client

Multipart upload of one still to the relay. One POST, no retry.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

import httpx

from photo_capture.core.errors import CaptureError, NetworkFailure, ServerRejected
from photo_capture.core.models import Coordinates, StillImage, UploadPayload

logger = logging.getLogger(__name__)


class UploadOutcome(str, Enum):
    SUCCESS = "success"
    SERVER_REJECTED = "server_rejected"
    NETWORK_FAILURE = "network_failure"


@dataclass(frozen=True)
class UploadResult:
    outcome: UploadOutcome
    status_code: Optional[int] = None
    body: Any = None
    error: Optional[CaptureError] = None

    @property
    def ok(self) -> bool:
        return self.outcome is UploadOutcome.SUCCESS


def make_filename(now: Optional[float] = None) -> str:
    return f"capture_{int((time.time() if now is None else now) * 1000)}.png"


def _read_body(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return resp.text or None


def _error_text(resp: httpx.Response, body: Any) -> str:
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return resp.reason_phrase or str(resp.status_code)


class UploadClient:
    def __init__(self, client: Optional[httpx.AsyncClient] = None, timeout: float = 30.0):
        self._client = client or httpx.AsyncClient(timeout=timeout)

    def build_payload(self, image: StillImage, coordinates: Coordinates, now: Optional[float] = None) -> UploadPayload:
        return UploadPayload(image=image.data, filename=make_filename(now), coordinates=coordinates)

    async def send(
        self,
        endpoint: str,
        image: StillImage,
        coordinates: Coordinates,
        teardown: Optional[Callable[[], None]] = None,
    ) -> UploadResult:
        """POST the still; `teardown` runs afterwards whatever the outcome."""
        payload = self.build_payload(image, coordinates)
        try:
            logger.info("Uploading %s (%s bytes) to %s", payload.filename, len(payload.image), endpoint)
            try:
                resp = await self._client.post(
                    endpoint,
                    data=payload.form_fields(),
                    files={"file": (payload.filename, payload.image, "image/png")},
                )
            except httpx.RequestError as e:
                logger.error("Network/upload error: %s", e)
                return UploadResult(UploadOutcome.NETWORK_FAILURE, error=NetworkFailure(str(e) or type(e).__name__))

            body = _read_body(resp)
            if resp.is_success:
                logger.info("Upload accepted (%s)", resp.status_code)
                return UploadResult(UploadOutcome.SUCCESS, status_code=resp.status_code, body=body)

            logger.error("Upload failed %s: %s", resp.status_code, body)
            return UploadResult(
                UploadOutcome.SERVER_REJECTED,
                status_code=resp.status_code,
                body=body,
                error=ServerRejected(resp.status_code, _error_text(resp, body), body),
            )
        finally:
            if teardown is not None:
                teardown()

    async def aclose(self) -> None:
        await self._client.aclose()
