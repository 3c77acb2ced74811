from __future__ import annotations

import asyncio

import pytest

from photo_capture.core.errors import DeviceUnavailable, PermissionDenied
from photo_capture.devices import MediaError
from photo_capture.services.camera_session import CameraSession
from tests.fakes import FakeMediaDevices, FakeStream, FakeTrack, FakeVideo


def test_start_requests_video_only_with_facing():
    track = FakeTrack()
    devices = FakeMediaDevices(FakeStream([track]))
    video = FakeVideo()
    session = CameraSession(devices, video)

    stream = asyncio.run(session.start("environment"))

    assert devices.calls == [{"video": {"facing_mode": "environment"}, "audio": False}]
    assert session.active and session.stream is stream
    assert video.src_object is stream
    assert video.play_calls == 1


def test_playback_failure_is_not_fatal():
    devices = FakeMediaDevices(FakeStream([FakeTrack()]))
    session = CameraSession(devices, FakeVideo(play_error=RuntimeError("gesture required")))
    asyncio.run(session.start())
    assert session.active


@pytest.mark.parametrize("name", ["NotAllowedError", "SecurityError"])
def test_denied_maps_to_permission_denied(name):
    session = CameraSession(FakeMediaDevices(error=MediaError(name, "Permission denied")), FakeVideo())
    with pytest.raises(PermissionDenied, match="Permission denied"):
        asyncio.run(session.start())
    assert not session.active


@pytest.mark.parametrize("name", ["NotFoundError", "NotReadableError", "OverconstrainedError"])
def test_missing_device_maps_to_device_unavailable(name):
    session = CameraSession(FakeMediaDevices(error=MediaError(name, "Requested device not found")), FakeVideo())
    with pytest.raises(DeviceUnavailable):
        asyncio.run(session.start())


def test_stop_is_idempotent():
    tracks = [FakeTrack(), FakeTrack(label="second")]
    video = FakeVideo()
    session = CameraSession(FakeMediaDevices(FakeStream(tracks)), video)
    asyncio.run(session.start())

    session.stop()
    session.stop()

    assert all(t.stopped for t in tracks)
    assert [t.stop_calls for t in tracks] == [1, 1]
    assert session.stream is None
    assert video.src_object is None


def test_stop_before_start_is_safe():
    session = CameraSession(FakeMediaDevices(), FakeVideo())
    session.stop()
    assert not session.active
