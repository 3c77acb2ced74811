from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import NamedTuple, Optional

log = logging.getLogger(__name__)


class GeoPoint(NamedTuple):
    latitude: float
    longitude: float


@dataclass(frozen=True)
class RelayJob:
    """Per-request bundle: received file + parsed coordinates."""

    received_file_path: Path
    coordinates: Optional[GeoPoint]
    caption_timestamp: datetime


def _parse_float(raw: Optional[str]) -> Optional[float]:
    if raw is None:
        return None
    raw = raw.strip()
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def parse_coordinates(latitude: Optional[str], longitude: Optional[str]) -> Optional[GeoPoint]:
    """
    Parse form fields into a GeoPoint.

    Empty/absent values mean "no coordinates". Non-numeric or out-of-range values are
    logged and also treated as "no coordinates" (never rejected).
    """
    if not (latitude or "").strip() and not (longitude or "").strip():
        return None

    lat = _parse_float(latitude)
    lon = _parse_float(longitude)
    if lat is None or lon is None:
        log.warning("Latitude/longitude could not be parsed to numbers: %r, %r", latitude, longitude)
        return None
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
        log.warning("Latitude/longitude out of range: %s, %s", lat, lon)
        return None
    return GeoPoint(latitude=lat, longitude=lon)
