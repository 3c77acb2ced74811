"""photo_capture.devices

Interfaces of the platform surfaces the capture flow talks to (media devices,
streams, tracks, the preview element, geolocation) and concrete adapters.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol

import numpy as np

# HxW (grey) or HxWx3 (BGR) uint8 image, OpenCV layout.
Frame = np.ndarray


class MediaError(Exception):
    """
    Media failure raised by device adapters.

    `name` follows the DOM exception names: NotAllowedError / SecurityError mean the
    user or policy refused access; NotFoundError / NotReadableError /
    OverconstrainedError mean no usable device.
    """

    def __init__(self, name: str, message: str = ""):
        super().__init__(message or name)
        self.name = name
        self.message = message or name


class PositionError(Exception):
    PERMISSION_DENIED = 1
    POSITION_UNAVAILABLE = 2
    TIMEOUT = 3

    def __init__(self, code: int, message: str = ""):
        super().__init__(message or f"position error {code}")
        self.code = code
        self.message = message or f"position error {code}"


@dataclass(frozen=True)
class Position:
    latitude: float
    longitude: float
    accuracy: Optional[float] = None


class VideoTrack(Protocol):
    """
    Tracks MAY additionally expose `async grab_frame() -> Frame`; the capturer
    prefers it when present.
    """

    kind: str
    label: str
    ready_state: str  # "live" | "ended"

    def stop(self) -> None: ...
    def get_settings(self) -> Dict[str, Any]: ...
    def get_capabilities(self) -> Dict[str, Any]: ...


class MediaStream(Protocol):
    def get_tracks(self) -> List[VideoTrack]: ...
    def get_video_tracks(self) -> List[VideoTrack]: ...


class MediaDevices(Protocol):
    async def get_user_media(self, constraints: Dict[str, Any]) -> MediaStream: ...


class VideoElement(Protocol):
    src_object: Optional[MediaStream]

    @property
    def video_width(self) -> int: ...

    @property
    def video_height(self) -> int: ...

    async def play(self) -> None: ...

    def draw_frame(self) -> Optional[Frame]:
        """Current presented frame (None if nothing decoded yet)."""
        ...


class GeolocationProvider(Protocol):
    async def get_current_position(
        self,
        *,
        enable_high_accuracy: bool,
        timeout_ms: int,
        maximum_age_ms: int,
    ) -> Position: ...
