from __future__ import annotations

import logging
from typing import Optional

from photo_capture.core.errors import DeviceUnavailable, PermissionDenied
from photo_capture.devices import MediaDevices, MediaError, MediaStream, VideoElement

log = logging.getLogger(__name__)

PERMISSION_ERROR_NAMES = {"NotAllowedError", "SecurityError", "PermissionDeniedError"}


class CameraSession:
    """Acquires and releases one video-only camera stream."""

    def __init__(self, media_devices: MediaDevices, video: VideoElement):
        self._devices = media_devices
        self.video = video
        self.stream: Optional[MediaStream] = None

    @property
    def active(self) -> bool:
        return self.stream is not None

    async def start(self, facing: str = "user") -> MediaStream:
        """
        Request a stream with a logical facing ("user" / "environment"). The device
        may substitute the nearest match.
        """
        constraints = {"video": {"facing_mode": facing}, "audio": False}
        try:
            stream = await self._devices.get_user_media(constraints)
        except MediaError as e:
            log.error("Camera init error: %s: %s", e.name, e.message)
            if e.name in PERMISSION_ERROR_NAMES:
                raise PermissionDenied(e.message) from e
            raise DeviceUnavailable(e.message) from e

        self.stream = stream
        self.video.src_object = stream
        try:
            await self.video.play()
        except Exception as e:
            # Some environments need a user gesture; frames may still arrive.
            log.warning("Video playback did not start: %s", e)
        return stream

    def stop(self) -> None:
        """Stop all tracks and release the stream. Safe to call repeatedly."""
        stream, self.stream = self.stream, None
        if stream is not None:
            for track in stream.get_tracks():
                try:
                    track.stop()
                except Exception as e:
                    log.warning("Error stopping track %r: %s", getattr(track, "label", track), e)
            log.info("Camera stopped.")
        self.video.src_object = None
