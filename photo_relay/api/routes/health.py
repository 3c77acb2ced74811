from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from photo_relay.api.schemas import HealthResponse
from photo_relay.config import Settings, get_settings

router = APIRouter(tags=["Health"])


@router.get("/", response_class=PlainTextResponse)
async def root():
    return "📷 Photo relay backend running..."


@router.get("/health", response_model=HealthResponse)
async def health_check(settings: Settings = Depends(get_settings)):
    return HealthResponse(status="ok", service="photo-relay", version=settings.API_VERSION)
