"""photo_capture.services.frame_capturer

Single-still capture. Strategies are tried in order; each one only produces a raw
frame and the raster size, the sizing / mirroring / PNG encoding is shared.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence, Tuple

import cv2

from photo_capture.core.errors import CaptureFailed
from photo_capture.core.models import StillImage
from photo_capture.devices import Frame, MediaStream, VideoElement, VideoTrack
from photo_capture.services.facing import ChainedFacingDetector, default_facing_detector

logger = logging.getLogger(__name__)

FALLBACK_SIZE = (1280, 720)


@dataclass(frozen=True)
class CaptureResult:
    image: Optional[StillImage] = None
    error: Optional[CaptureFailed] = None
    strategy: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.image is not None


class CaptureStrategy(Protocol):
    name: str

    def available(self, track: Optional[VideoTrack], video: Optional[VideoElement]) -> bool: ...

    async def produce(
        self, track: Optional[VideoTrack], video: Optional[VideoElement]
    ) -> Tuple[Frame, int, int]: ...


class TrackGrabStrategy:
    """Grab one bitmap straight from the video track."""

    name = "track_grab"

    def __init__(self, fallback_size: Tuple[int, int] = FALLBACK_SIZE):
        self.fallback_size = fallback_size

    def available(self, track, video) -> bool:
        return track is not None and callable(getattr(track, "grab_frame", None))

    async def produce(self, track, video):
        bitmap = await track.grab_frame()
        if bitmap is None or bitmap.size == 0:
            raise CaptureFailed("track returned an empty frame")
        height, width = bitmap.shape[:2]
        if not (width and height):
            settings = track.get_settings() or {}
            width = int(settings.get("width") or self.fallback_size[0])
            height = int(settings.get("height") or self.fallback_size[1])
        return bitmap, width, height


class VideoDrawStrategy:
    """Draw whatever the preview element currently shows."""

    name = "video_draw"

    def __init__(self, settle_delay: float = 0.1, fallback_size: Tuple[int, int] = FALLBACK_SIZE):
        self.settle_delay = settle_delay
        self.fallback_size = fallback_size

    def available(self, track, video) -> bool:
        return video is not None

    async def produce(self, track, video):
        # Let the decoder present a frame before drawing.
        await asyncio.sleep(self.settle_delay)
        width = video.video_width or self.fallback_size[0]
        height = video.video_height or self.fallback_size[1]
        frame = video.draw_frame()
        if frame is None or frame.size == 0:
            raise CaptureFailed("video element has no frame to draw")
        return frame, width, height


def render_still(frame: Frame, width: int, height: int, mirrored: bool) -> StillImage:
    raster = frame
    if raster.shape[:2] != (height, width):
        raster = cv2.resize(raster, (width, height), interpolation=cv2.INTER_LINEAR)
    if mirrored:
        raster = cv2.flip(raster, 1)
    ok, buf = cv2.imencode(".png", raster)
    if not ok:
        raise CaptureFailed("PNG encoding failed")
    return StillImage(width=width, height=height, data=buf.tobytes(), mirrored=mirrored)


class FrameCapturer:
    def __init__(
        self,
        strategies: Optional[Sequence[CaptureStrategy]] = None,
        facing_detector: Optional[ChainedFacingDetector] = None,
    ):
        self.strategies: List[CaptureStrategy] = list(
            strategies if strategies is not None else (TrackGrabStrategy(), VideoDrawStrategy())
        )
        self.facing = facing_detector or default_facing_detector()

    async def capture(self, stream: Optional[MediaStream], video: Optional[VideoElement]) -> CaptureResult:
        """Never raises on strategy failure: returns a result carrying CaptureFailed."""
        tracks = stream.get_video_tracks() if stream is not None else []
        track = tracks[0] if tracks else None
        mirrored = self.facing.is_front(track)

        failures: List[str] = []
        for strategy in self.strategies:
            if not strategy.available(track, video):
                logger.debug("Capture strategy %s not available", strategy.name)
                continue
            try:
                frame, width, height = await strategy.produce(track, video)
                image = render_still(frame, width, height, mirrored)
            except Exception as e:
                logger.warning("Capture strategy %s failed: %s", strategy.name, e)
                failures.append(f"{strategy.name}: {e}")
                continue
            logger.info(
                "Captured %sx%s still via %s (mirrored=%s)", image.width, image.height, strategy.name, mirrored
            )
            return CaptureResult(image=image, strategy=strategy.name)

        reason = "; ".join(failures) or "no capture strategy available"
        return CaptureResult(error=CaptureFailed(reason))
