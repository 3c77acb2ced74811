"""photo_capture.config

Capture client configuration (environment with `CAPTURE_` prefix, optional `.env`).

The delays and timeouts below are tuned values, not derived ones; adjust per device.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from photo_capture.core.models import GeoOrder


class CaptureSettings(BaseSettings):
    # ===== Upload =====
    UPLOAD_URL: str = Field(default="http://localhost:10000/upload")
    UPLOAD_TIMEOUT_SEC: float = Field(default=30.0, ge=0.1, le=300.0)

    # ===== Camera =====
    FACING_MODE: Literal["user", "environment"] = Field(default="user")
    DEVICE_INDEX: int = Field(default=0, ge=0)

    # ===== Timing =====
    COUNTDOWN_SEC: int = Field(default=2, ge=0, le=60)
    READY_TIMEOUT_SEC: float = Field(default=1.2, ge=0.0, le=30.0)
    # Sensor settling time between countdown end and capture.
    WARMUP_DELAY_SEC: float = Field(default=0.2, ge=0.0, le=5.0)
    DRAW_SETTLE_DELAY_SEC: float = Field(default=0.1, ge=0.0, le=2.0)

    # Raster size when the stream never reports dimensions.
    FALLBACK_WIDTH: int = Field(default=1280, ge=1, le=10000)
    FALLBACK_HEIGHT: int = Field(default=720, ge=1, le=10000)

    # ===== Geolocation =====
    GEO_ENABLED: bool = Field(default=True)
    GEO_ORDER: GeoOrder = Field(default=GeoOrder.BEFORE_CAMERA)
    GEO_TIMEOUT_SEC: float = Field(default=8.0, ge=0.1, le=60.0)
    # Fixed position for hosts without a location source.
    LATITUDE: Optional[float] = Field(default=None, ge=-90.0, le=90.0)
    LONGITUDE: Optional[float] = Field(default=None, ge=-180.0, le=180.0)

    LOG_LEVEL: str = Field(default="INFO")

    model_config = SettingsConfigDict(
        env_prefix="CAPTURE_",
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def fallback_size(self) -> tuple[int, int]:
        return (self.FALLBACK_WIDTH, self.FALLBACK_HEIGHT)


@lru_cache(maxsize=1)
def get_settings() -> CaptureSettings:
    """Return cached settings instance."""
    return CaptureSettings()
