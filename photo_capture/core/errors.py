from __future__ import annotations

from typing import Any, Optional


class CaptureError(Exception):
    """Base class for capture session failures."""


class PermissionDenied(CaptureError):
    pass


class DeviceUnavailable(CaptureError):
    pass


class CaptureFailed(CaptureError):
    pass


class GeolocationUnavailable(CaptureError):
    pass


class GeolocationTimeout(CaptureError):
    pass


class NetworkFailure(CaptureError):
    pass


class ServerRejected(CaptureError):
    def __init__(self, status_code: int, message: str, body: Any = None):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.body = body


class SessionBusy(CaptureError):
    """Another session is still live."""


class SessionCancelled(CaptureError):
    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "Capture cancelled.")
