from __future__ import annotations

from typing import Optional


class IngestInvalid(Exception):
    """Malformed upload request (missing/empty/oversized file)."""

    def __init__(self, message: str, details: Optional[str] = None, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.details = details
        self.status_code = status_code


class RelayForwardFailed(Exception):
    """Outbound Bot API call did not get a response."""

    def __init__(self, method: str, reason: str):
        super().__init__(f"{method} failed: {reason}")
        self.method = method
        self.reason = reason
