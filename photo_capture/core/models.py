from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

log = logging.getLogger(__name__)


class SessionState(str, Enum):
    IDLE = "idle"
    AWAITING_PERMISSION = "awaiting_permission"
    STREAMING = "streaming"
    READY_WAIT = "ready_wait"
    COUNTDOWN = "countdown"
    CAPTURING = "capturing"
    UPLOADING = "uploading"
    STOPPED = "stopped"
    FAILED = "failed"


TERMINAL_STATES = frozenset({SessionState.STOPPED, SessionState.FAILED})


class GeoOrder(str, Enum):
    # Ask before the camera prompt (mobile permission ordering), retry once after capture.
    BEFORE_CAMERA = "before_camera"
    # Ask only once the still is taken, so the countdown is never delayed.
    AFTER_CAPTURE = "after_capture"


@dataclass(frozen=True)
class Coordinates:
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    acquired_at: Optional[datetime] = None

    @classmethod
    def absent(cls) -> "Coordinates":
        return cls()

    @property
    def present(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def as_form_fields(self) -> Dict[str, str]:
        """Wire contract: both fields always sent, empty strings when absent."""
        if not self.present:
            return {"latitude": "", "longitude": ""}
        return {"latitude": str(self.latitude), "longitude": str(self.longitude)}


@dataclass(frozen=True)
class StillImage:
    width: int
    height: int
    data: bytes  # PNG
    mirrored: bool = False


@dataclass(frozen=True)
class UploadPayload:
    image: bytes
    filename: str
    coordinates: Coordinates
    kind: str = "image"

    def form_fields(self) -> Dict[str, str]:
        return {"type": self.kind, **self.coordinates.as_form_fields()}


@dataclass
class CaptureSession:
    """State of one capture attempt. Owned by the orchestrator; one live at a time."""

    state: SessionState = SessionState.IDLE
    stream: Any = None
    started_at: datetime = field(default_factory=lambda: datetime.now().astimezone())
    error: Optional[BaseException] = None
    coordinates: Coordinates = field(default_factory=Coordinates.absent)
    image: Optional[StillImage] = None
    upload: Any = None  # UploadResult
    cancelled: bool = False
    captures: int = 0
    uploads: int = 0

    @property
    def terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def transition(self, state: SessionState) -> None:
        log.debug("Session %s -> %s", self.state.value, state.value)
        self.state = state

    def fail(self, error: BaseException) -> None:
        self.error = error
        self.transition(SessionState.FAILED)
