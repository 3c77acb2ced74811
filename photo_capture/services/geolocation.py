from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Optional

from photo_capture.core.errors import (
    CaptureError,
    GeolocationTimeout,
    GeolocationUnavailable,
    PermissionDenied,
)
from photo_capture.core.models import Coordinates
from photo_capture.devices import GeolocationProvider, PositionError

log = logging.getLogger(__name__)


class GeolocationProbe:
    """One-shot, high-accuracy, never-cached position query with a hard timeout."""

    def __init__(self, provider: Optional[GeolocationProvider]):
        self._provider = provider

    async def locate(self, timeout: float) -> Coordinates:
        if self._provider is None:
            raise GeolocationUnavailable("Geolocation not supported")

        query = self._provider.get_current_position(
            enable_high_accuracy=True,
            timeout_ms=int(timeout * 1000),
            maximum_age_ms=0,
        )
        try:
            # Own timeout: some providers ignore timeout_ms.
            position = await asyncio.wait_for(query, timeout=timeout)
        except asyncio.TimeoutError as e:
            raise GeolocationTimeout(f"No position within {timeout:.1f}s") from e
        except PositionError as e:
            if e.code == PositionError.PERMISSION_DENIED:
                raise PermissionDenied(e.message) from e
            if e.code == PositionError.TIMEOUT:
                raise GeolocationTimeout(e.message) from e
            raise GeolocationUnavailable(e.message) from e

        return Coordinates(
            latitude=position.latitude,
            longitude=position.longitude,
            acquired_at=datetime.now().astimezone(),
        )

    async def try_locate(self, timeout: float) -> Coordinates:
        """Best-effort variant: any failure degrades to absent coordinates."""
        try:
            coords = await self.locate(timeout)
        except CaptureError as e:
            log.warning("Geolocation failed (%s): %s", type(e).__name__, e)
            return Coordinates.absent()
        log.info("Got coordinates: %s, %s", coords.latitude, coords.longitude)
        return coords
