from __future__ import annotations

import json
import re

import httpx
from fastapi.testclient import TestClient

from photo_capture.devices import Position
from photo_relay.main import create_app
from photo_relay.services.telegram import TelegramForwarder
from photo_relay.utils.files import TempFileManager
from tests.fakes import FakeGeolocation, FakeTrack, Harness, make_frame, parse_multipart

TIMESTAMP_LINE = re.compile(r"📸 New photo captured — \d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2} UTC[+-]\d{2}:\d{2}")


def test_capture_to_telegram(tmp_path):
    # Client: 640x480 front camera, 2s countdown, location within timeout.
    track = FakeTrack(label="FaceTime HD", frame=make_frame(640, 480))
    client = Harness(track=track, geo=FakeGeolocation([Position(37.7749, -122.4194)]), COUNTDOWN_SEC=2)
    report = client.run()

    assert report.succeeded
    assert len(client.requests) == 1
    upload = client.requests[0]
    uploaded_png = parse_multipart(upload.content, upload.headers["content-type"])["file"]["value"]

    # Relay: replay the exact multipart body the client produced.
    telegram_calls: list[httpx.Request] = []

    def telegram(request: httpx.Request) -> httpx.Response:
        telegram_calls.append(request)
        return httpx.Response(200, json={"ok": True, "result": {}})

    app = create_app(
        forwarder_factory=lambda: TelegramForwarder(
            "T", "42", client=httpx.AsyncClient(transport=httpx.MockTransport(telegram))
        ),
        temp_files_factory=lambda: TempFileManager(tmp_path / "uploads"),
    )
    with TestClient(app) as c:
        r = c.post("/upload", content=upload.content, headers={"Content-Type": upload.headers["content-type"]})
        assert r.status_code == 200
        assert r.json()["success"] is True

    assert [req.url.path for req in telegram_calls] == ["/botT/sendPhoto", "/botT/sendLocation"]

    photo = parse_multipart(telegram_calls[0].content, telegram_calls[0].headers["content-type"])
    assert photo["photo"]["value"] == uploaded_png
    caption_lines = photo["caption"]["value"].decode().splitlines()
    assert len(caption_lines) == 2
    assert TIMESTAMP_LINE.fullmatch(caption_lines[0])
    assert caption_lines[1] == "📍 37.7749, -122.4194"

    assert json.loads(telegram_calls[1].content) == {
        "chat_id": "42",
        "latitude": 37.7749,
        "longitude": -122.4194,
    }
    assert list((tmp_path / "uploads").iterdir()) == []
