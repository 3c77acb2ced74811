from __future__ import annotations

import asyncio
import json
from datetime import datetime, timedelta, timezone

import httpx

from photo_relay.core.models import GeoPoint, RelayJob, parse_coordinates
from photo_relay.services.telegram import TelegramForwarder, build_caption, format_timestamp


def test_format_timestamp_positive_offset():
    tz = timezone(timedelta(hours=5, minutes=30))
    assert format_timestamp(datetime(2025, 11, 9, 20, 1, 23, tzinfo=tz)) == "2025-11-09 20:01:23 UTC+05:30"


def test_format_timestamp_negative_offset():
    tz = timezone(-timedelta(hours=3, minutes=30))
    assert format_timestamp(datetime(2024, 1, 2, 3, 4, 5, tzinfo=tz)) == "2024-01-02 03:04:05 UTC-03:30"


def test_caption_with_and_without_coordinates():
    moment = datetime(2025, 11, 9, 20, 1, 23, tzinfo=timezone.utc)
    assert build_caption(moment, None) == "📸 New photo captured — 2025-11-09 20:01:23 UTC+00:00"
    caption = build_caption(moment, GeoPoint(12.9, 77.6))
    assert caption.splitlines() == [
        "📸 New photo captured — 2025-11-09 20:01:23 UTC+00:00",
        "📍 12.9, 77.6",
    ]


def test_parse_coordinates():
    assert parse_coordinates("12.9", "77.6") == (12.9, 77.6)
    assert parse_coordinates(" -33.5 ", "151") == (-33.5, 151.0)
    assert parse_coordinates("", "") is None
    assert parse_coordinates(None, None) is None
    assert parse_coordinates("abc", "77.6") is None
    assert parse_coordinates("12.9", None) is None
    assert parse_coordinates("nan", "1") is None
    assert parse_coordinates("91", "0") is None


def test_location_attempted_even_when_photo_fails(tmp_path):
    photo = tmp_path / "p.png"
    photo.write_bytes(b"\x89PNG fake")
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        method = request.url.path.rsplit("/", 1)[-1]
        seen.append(method)
        if method == "sendPhoto":
            return httpx.Response(400, json={"ok": False, "description": "Bad Request: wrong file"})
        return httpx.Response(200, json={"ok": True, "result": {}})

    async def go():
        fwd = TelegramForwarder("T", "42", client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        job = RelayJob(photo, GeoPoint(1.5, 2.5), datetime.now().astimezone())
        try:
            return await fwd.forward(job)
        finally:
            await fwd.aclose()

    report = asyncio.run(go())
    assert seen == ["sendPhoto", "sendLocation"]
    assert report.photo.ok is False
    assert report.photo.error == "Bad Request: wrong file"
    assert report.location.ok is True
    assert report.ok is False


def test_transport_error_is_reported_not_raised(tmp_path):
    photo = tmp_path / "p.png"
    photo.write_bytes(b"x")
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    async def go():
        fwd = TelegramForwarder("T", "42", client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        try:
            return await fwd.forward(RelayJob(photo, GeoPoint(3.0, 4.0), datetime.now().astimezone()))
        finally:
            await fwd.aclose()

    report = asyncio.run(go())
    assert len(requests) == 2
    assert not report.photo.ok and "sendPhoto failed" in report.photo.error
    assert not report.location.ok
    assert json.loads(requests[1].content) == {"chat_id": "42", "latitude": 3.0, "longitude": 4.0}
