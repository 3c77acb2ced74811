"""
FastAPI application entrypoint for the photo relay.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Callable, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from photo_relay.api.routes import health_router, upload_router
from photo_relay.api.schemas import ErrorResponse
from photo_relay.config import get_settings
from photo_relay.errors import IngestInvalid
from photo_relay.logging_config import setup_logging
from photo_relay.services.telegram import TelegramForwarder
from photo_relay.utils.files import TempFileManager

log = logging.getLogger("photo-relay")


def create_app(
    forwarder_factory: Optional[Callable[[], TelegramForwarder]] = None,
    temp_files_factory: Optional[Callable[[], TempFileManager]] = None,
) -> FastAPI:
    # Raises a validation error when TELEGRAM_BOT_TOKEN / TELEGRAM_CHAT_ID are missing.
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)

    if forwarder_factory is None:
        def forwarder_factory() -> TelegramForwarder:
            return TelegramForwarder.from_settings(settings)

    if temp_files_factory is None:
        def temp_files_factory() -> TempFileManager:
            return TempFileManager(settings.upload_root, max_bytes=settings.MAX_UPLOAD_BYTES)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.temp_files = temp_files_factory()
        app.state.forwarder = forwarder_factory()
        log.info(
            "Service starting (host=%s port=%s prefix=%s upload_dir=%s)",
            settings.HOST,
            settings.PORT,
            settings.API_PREFIX or "",
            app.state.temp_files.base_dir,
        )
        try:
            yield
        finally:
            try:
                await app.state.forwarder.aclose()
            except Exception as e:
                log.warning("Failed to close Telegram client: %s", e)
            log.info("Service stopped")

    app = FastAPI(
        title=settings.API_TITLE,
        version=settings.API_VERSION,
        description="Receives single photo uploads and relays them to a Telegram chat.",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @app.exception_handler(IngestInvalid)
    async def ingest_invalid_handler(_: Request, exc: IngestInvalid):
        log.warning("Rejected upload: %s (%s)", exc.message, exc.details)
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(error=exc.message, details=exc.details).model_dump(),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_handler(_: Request, exc: RequestValidationError):
        log.warning("Malformed upload request: %s", exc.errors())
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(error="Invalid upload request", details=str(exc.errors())).model_dump(),
        )

    prefix = settings.API_PREFIX.rstrip("/")
    app.include_router(health_router, prefix=prefix)
    app.include_router(upload_router, prefix=prefix)
    return app


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "photo_relay.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=(settings.LOG_LEVEL or "INFO").lower(),
        reload=False,
    )


app = create_app()


if __name__ == "__main__":
    run()
