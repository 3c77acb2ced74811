from __future__ import annotations

import logging
from typing import Optional, Protocol, Sequence

from photo_capture.devices import VideoTrack

log = logging.getLogger(__name__)

FRONT_LABEL_TERMS = ("front", "user", "selfie", "facetime")
FRONT_FACING = "user"
REAR_FACING = "environment"


class FacingDetector(Protocol):
    def detect(self, track: VideoTrack) -> Optional[bool]:
        """True = front-facing, False = rear-facing, None = cannot tell."""
        ...


class CapabilityFacingDetector:
    """Uses what the track reports about itself (settings, then capabilities)."""

    def detect(self, track: VideoTrack) -> Optional[bool]:
        try:
            mode = (track.get_settings() or {}).get("facing_mode")
            if not mode:
                modes = (track.get_capabilities() or {}).get("facing_mode") or []
                mode = modes[0] if len(modes) == 1 else None
        except Exception as e:
            log.debug("Track capability query failed: %s", e)
            return None
        if mode == FRONT_FACING:
            return True
        if mode == REAR_FACING:
            return False
        return None


class LabelFacingDetector:
    def __init__(self, terms: Sequence[str] = FRONT_LABEL_TERMS):
        self.terms = tuple(t.lower() for t in terms)

    def detect(self, track: VideoTrack) -> Optional[bool]:
        label = (getattr(track, "label", "") or "").lower()
        if not label:
            return None
        return True if any(term in label for term in self.terms) else None


class ChainedFacingDetector:
    """First detector with an answer wins; unknown is treated as rear-facing."""

    def __init__(self, detectors: Sequence[FacingDetector]):
        self.detectors = list(detectors)

    def detect(self, track: VideoTrack) -> Optional[bool]:
        for detector in self.detectors:
            result = detector.detect(track)
            if result is not None:
                return result
        return None

    def is_front(self, track: Optional[VideoTrack]) -> bool:
        return track is not None and bool(self.detect(track))


def default_facing_detector() -> ChainedFacingDetector:
    return ChainedFacingDetector([CapabilityFacingDetector(), LabelFacingDetector()])
