"""photo_relay.services.telegram

Async client for the Telegram Bot API.

A relay job fans out to two sequential, independent calls: sendPhoto (with caption),
then sendLocation when the job carries coordinates. A failed call is logged and
reported but never stops the next one.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import httpx

from photo_relay.config import Settings
from photo_relay.core.models import GeoPoint, RelayJob
from photo_relay.errors import RelayForwardFailed

logger = logging.getLogger(__name__)


def format_timestamp(moment: datetime) -> str:
    """Local time with UTC offset suffix, e.g. `2025-11-09 20:01:23 UTC+05:30`."""
    if moment.tzinfo is None:
        moment = moment.astimezone()
    offset = moment.utcoffset()
    total_min = int(offset.total_seconds() // 60) if offset is not None else 0
    sign = "+" if total_min >= 0 else "-"
    hours, minutes = divmod(abs(total_min), 60)
    return f"{moment:%Y-%m-%d %H:%M:%S} UTC{sign}{hours:02d}:{minutes:02d}"


def build_caption(moment: datetime, coordinates: Optional[GeoPoint]) -> str:
    parts = [f"📸 New photo captured — {format_timestamp(moment)}"]
    if coordinates is not None:
        parts.append(f"📍 {coordinates.latitude}, {coordinates.longitude}")
    return "\n".join(parts)


@dataclass(frozen=True)
class ForwardResult:
    method: str
    ok: bool
    status_code: Optional[int] = None
    payload: Any = None
    error: Optional[str] = None


@dataclass(frozen=True)
class ForwardReport:
    photo: ForwardResult
    location: Optional[ForwardResult] = None

    @property
    def ok(self) -> bool:
        return self.photo.ok and (self.location is None or self.location.ok)


class TelegramForwarder:
    """Sends relay jobs to one chat via the Bot API."""

    def __init__(
        self,
        token: str,
        chat_id: str,
        api_base: str = "https://api.telegram.org",
        timeout_sec: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._token = token
        self.chat_id = chat_id
        self.api_base = api_base.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout_sec)

    @classmethod
    def from_settings(cls, settings: Settings) -> "TelegramForwarder":
        return cls(
            token=settings.TELEGRAM_BOT_TOKEN.get_secret_value(),
            chat_id=settings.TELEGRAM_CHAT_ID,
            api_base=settings.TELEGRAM_API_BASE,
            timeout_sec=settings.TELEGRAM_TIMEOUT_SEC,
        )

    def _method_url(self, method: str) -> str:
        return f"{self.api_base}/bot{self._token}/{method}"

    async def _call(self, method: str, **request_kwargs: Any) -> ForwardResult:
        try:
            resp = await self._client.post(self._method_url(method), **request_kwargs)
        except httpx.HTTPError as e:
            # str(e) of transport errors does not include the URL (and the token in it)
            err = RelayForwardFailed(method, f"{type(e).__name__}: {e}")
            logger.warning("%s", err)
            return ForwardResult(method=method, ok=False, error=str(err))

        try:
            payload = resp.json()
        except ValueError:
            payload = None
        logger.info("%s response (%s): %s", method, resp.status_code, payload)

        api_ok = isinstance(payload, dict) and bool(payload.get("ok"))
        ok = resp.is_success and api_ok
        error = None
        if not ok:
            description = payload.get("description") if isinstance(payload, dict) else None
            error = description or f"HTTP {resp.status_code}"
        return ForwardResult(method=method, ok=ok, status_code=resp.status_code, payload=payload, error=error)

    async def send_photo(self, path: Path, caption: str) -> ForwardResult:
        """POST sendPhoto (multipart: chat_id, photo, caption)."""
        # File I/O errors propagate: they are failures of the request itself.
        photo = await asyncio.to_thread(path.read_bytes)
        return await self._call(
            "sendPhoto",
            data={"chat_id": self.chat_id, "caption": caption},
            files={"photo": (path.name, photo, "application/octet-stream")},
        )

    async def send_location(self, point: GeoPoint) -> ForwardResult:
        """POST sendLocation (JSON: chat_id, latitude, longitude)."""
        return await self._call(
            "sendLocation",
            json={"chat_id": self.chat_id, "latitude": point.latitude, "longitude": point.longitude},
        )

    async def forward(self, job: RelayJob) -> ForwardReport:
        caption = build_caption(job.caption_timestamp, job.coordinates)
        photo = await self.send_photo(job.received_file_path, caption)
        if not photo.ok:
            logger.warning("sendPhoto failed (%s); location is still attempted", photo.error)

        location = None
        if job.coordinates is not None:
            location = await self.send_location(job.coordinates)
        else:
            logger.info("No coordinates provided; skipping sendLocation.")
        return ForwardReport(photo=photo, location=location)

    async def aclose(self) -> None:
        await self._client.aclose()
