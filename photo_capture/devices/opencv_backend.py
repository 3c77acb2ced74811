# photo_capture/devices/opencv_backend.py
"""
Desktop adapter: a local camera opened through cv2.VideoCapture, presented with the
same media-devices / stream / track / preview-element surface as a browser.

Desktop webcams have no facing sensor; the track reports the facing that was
requested in the constraints.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, Dict, List, Optional

import cv2

from photo_capture.devices import Frame, MediaError, Position, PositionError

logger = logging.getLogger(__name__)


class OpenCvVideoTrack:
    kind = "video"

    def __init__(self, capture: cv2.VideoCapture, label: str, facing_mode: Optional[str] = None):
        self._capture = capture
        self.label = label
        self.facing_mode = facing_mode
        self.ready_state = "live"
        self._lock = threading.Lock()

    def read(self) -> Optional[Frame]:
        with self._lock:
            if self.ready_state != "live":
                return None
            ok, frame = self._capture.read()
        return frame if ok else None

    async def grab_frame(self) -> Frame:
        frame = await asyncio.to_thread(self.read)
        if frame is None:
            raise RuntimeError(f"{self.label}: camera returned no frame")
        return frame

    def get_settings(self) -> Dict[str, Any]:
        with self._lock:
            if self.ready_state != "live":
                return {}
            width = int(self._capture.get(cv2.CAP_PROP_FRAME_WIDTH) or 0)
            height = int(self._capture.get(cv2.CAP_PROP_FRAME_HEIGHT) or 0)
        settings: Dict[str, Any] = {"width": width, "height": height}
        if self.facing_mode:
            settings["facing_mode"] = self.facing_mode
        return settings

    def get_capabilities(self) -> Dict[str, Any]:
        return {"facing_mode": [self.facing_mode]} if self.facing_mode else {}

    def stop(self) -> None:
        with self._lock:
            if self.ready_state == "ended":
                return
            self.ready_state = "ended"
            self._capture.release()
        logger.info("Track stopped: %s", self.label)


class OpenCvMediaStream:
    def __init__(self, tracks: List[OpenCvVideoTrack]):
        self._tracks = list(tracks)

    def get_tracks(self) -> List[OpenCvVideoTrack]:
        return list(self._tracks)

    def get_video_tracks(self) -> List[OpenCvVideoTrack]:
        return [t for t in self._tracks if t.kind == "video"]


class OpenCvMediaDevices:
    def __init__(self, device_index: int = 0, label: Optional[str] = None):
        self.device_index = device_index
        self.label = label or f"OpenCV camera {device_index}"

    async def get_user_media(self, constraints: Dict[str, Any]) -> OpenCvMediaStream:
        video = constraints.get("video")
        if not video:
            raise MediaError("TypeError", "a video constraint is required")
        facing = video.get("facing_mode") if isinstance(video, dict) else None

        logger.info("Opening camera index=%s (facing=%s)", self.device_index, facing)
        capture = await asyncio.to_thread(cv2.VideoCapture, self.device_index)
        if not capture.isOpened():
            capture.release()
            raise MediaError("NotFoundError", f"No camera available at index {self.device_index}")
        return OpenCvMediaStream([OpenCvVideoTrack(capture, self.label, facing)])


class OpenCvVideoElement:
    """Headless stand-in for a <video> preview bound to an OpenCV stream."""

    def __init__(self):
        self.src_object: Optional[OpenCvMediaStream] = None
        self._last_frame: Optional[Frame] = None

    def _track(self) -> Optional[OpenCvVideoTrack]:
        if self.src_object is None:
            return None
        tracks = self.src_object.get_video_tracks()
        return tracks[0] if tracks else None

    @property
    def video_width(self) -> int:
        if self._last_frame is not None:
            return int(self._last_frame.shape[1])
        track = self._track()
        return int(track.get_settings().get("width", 0)) if track else 0

    @property
    def video_height(self) -> int:
        if self._last_frame is not None:
            return int(self._last_frame.shape[0])
        track = self._track()
        return int(track.get_settings().get("height", 0)) if track else 0

    async def play(self) -> None:
        self._last_frame = None
        track = self._track()
        if track is None:
            raise MediaError("NotSupportedError", "no source attached")
        # Decode the first frame so dimensions are known.
        self._last_frame = await asyncio.to_thread(track.read)

    def draw_frame(self) -> Optional[Frame]:
        track = self._track()
        frame = track.read() if track is not None else None
        if frame is not None:
            self._last_frame = frame
        return self._last_frame if self.src_object is not None else None


class FixedGeolocation:
    """Position source for hosts without a GPS: a configured fixed point, or none."""

    def __init__(self, latitude: Optional[float] = None, longitude: Optional[float] = None):
        self.latitude = latitude
        self.longitude = longitude

    async def get_current_position(
        self,
        *,
        enable_high_accuracy: bool,
        timeout_ms: int,
        maximum_age_ms: int,
    ) -> Position:
        if self.latitude is None or self.longitude is None:
            raise PositionError(PositionError.POSITION_UNAVAILABLE, "No fixed position configured")
        return Position(latitude=self.latitude, longitude=self.longitude)
