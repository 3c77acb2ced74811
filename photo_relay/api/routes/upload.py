from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.responses import JSONResponse

from photo_relay.api.schemas import ErrorResponse, UploadResponse
from photo_relay.core.models import RelayJob, parse_coordinates
from photo_relay.deps import get_forwarder, get_temp_files
from photo_relay.errors import IngestInvalid
from photo_relay.services.telegram import TelegramForwarder
from photo_relay.utils.files import TempFileManager

log = logging.getLogger(__name__)

router = APIRouter(tags=["Upload"])


@router.post(
    "/upload",
    response_model=UploadResponse,
    responses={400: {"model": ErrorResponse}, 413: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def upload_photo(
    file: Optional[UploadFile] = File(default=None),
    kind: Optional[str] = Form(default=None, alias="type"),
    latitude: Optional[str] = Form(default=None),
    longitude: Optional[str] = Form(default=None),
    forwarder: TelegramForwarder = Depends(get_forwarder),
    temp_files: TempFileManager = Depends(get_temp_files),
):
    """
    Receive one photo (+ optional coordinates) and relay it to Telegram.

    Bot API failures are logged and do not change the response; only failures of
    the request handling itself (file I/O, request construction) return 500.
    """
    log.info(
        "Received upload: file=%s type=%s latitude=%r longitude=%r",
        file.filename if file is not None else None,
        kind,
        latitude,
        longitude,
    )

    try:
        async with temp_files.receive(file) as path:
            job = RelayJob(
                received_file_path=path,
                coordinates=parse_coordinates(latitude, longitude),
                caption_timestamp=datetime.now().astimezone(),
            )
            report = await forwarder.forward(job)
    except IngestInvalid:
        raise
    except Exception as e:
        log.error("Upload handler error: %s", e, exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(error="Upload/send failed", details=str(e) or type(e).__name__).model_dump(),
        )

    if not report.ok:
        log.warning(
            "Relay finished with failures: photo=%s location=%s",
            report.photo.error,
            report.location.error if report.location is not None else None,
        )
    return UploadResponse(success=True, message="Photo and (optional) location sent to Telegram.")
