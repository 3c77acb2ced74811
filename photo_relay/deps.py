from __future__ import annotations

from fastapi import Request

from photo_relay.services.telegram import TelegramForwarder
from photo_relay.utils.files import TempFileManager


def get_forwarder(request: Request) -> TelegramForwarder:
    """
    Dependency: forwarder stored in app.state (easy to replace in tests).
    """
    return request.app.state.forwarder


def get_temp_files(request: Request) -> TempFileManager:
    return request.app.state.temp_files
