from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Optional

from photo_capture.devices import VideoElement

log = logging.getLogger(__name__)

DISPLAY_TICK_SEC = 1 / 60


class ReadinessDetector:
    """Waits until the preview reports non-zero frame dimensions."""

    def __init__(self, tick_sec: float = DISPLAY_TICK_SEC, clock: Callable[[], float] = time.monotonic):
        self.tick_sec = tick_sec
        self._clock = clock

    async def wait_until_ready(
        self,
        video: VideoElement,
        timeout: float,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> bool:
        """
        Poll once per display tick. Returns True when dimensions appear, False on
        timeout or cancellation; it never raises, capture falls back to default
        dimensions when the stream never reports any.
        """
        deadline = self._clock() + timeout
        while True:
            if video.video_width and video.video_height:
                log.debug("Video ready: %sx%s", video.video_width, video.video_height)
                return True
            if cancel_event is not None and cancel_event.is_set():
                return False
            if self._clock() >= deadline:
                log.warning("Video not ready after %.2fs; continuing with fallback dimensions", timeout)
                return False
            await asyncio.sleep(self.tick_sec)
