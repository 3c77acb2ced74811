"""
Capture client entrypoint: one session against a local camera, then exit.

    photo-capture --upload-url https://relay.example.com/upload --countdown 3
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
from typing import Optional, Sequence

import httpx

from photo_capture.config import CaptureSettings, get_settings
from photo_capture.core.models import GeoOrder
from photo_capture.core.orchestrator import CaptureOrchestrator, CaptureReport
from photo_capture.devices import GeolocationProvider, MediaDevices, VideoElement
from photo_capture.devices.opencv_backend import FixedGeolocation, OpenCvMediaDevices, OpenCvVideoElement
from photo_capture.services.camera_session import CameraSession
from photo_capture.services.frame_capturer import FrameCapturer, TrackGrabStrategy, VideoDrawStrategy
from photo_capture.services.geolocation import GeolocationProbe
from photo_capture.services.upload_client import UploadClient

logger = logging.getLogger("photo-capture")


def _configure_logging(level_name: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level_name.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def build_orchestrator(
    settings: CaptureSettings,
    *,
    media_devices: Optional[MediaDevices] = None,
    video: Optional[VideoElement] = None,
    geolocation: Optional[GeolocationProvider] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> CaptureOrchestrator:
    media_devices = media_devices or OpenCvMediaDevices(device_index=settings.DEVICE_INDEX)
    video = video or OpenCvVideoElement()
    if geolocation is None:
        geolocation = FixedGeolocation(settings.LATITUDE, settings.LONGITUDE)

    capturer = FrameCapturer(
        strategies=[
            TrackGrabStrategy(fallback_size=settings.fallback_size),
            VideoDrawStrategy(settle_delay=settings.DRAW_SETTLE_DELAY_SEC, fallback_size=settings.fallback_size),
        ]
    )
    return CaptureOrchestrator(
        camera=CameraSession(media_devices, video),
        capturer=capturer,
        uploader=UploadClient(client=http_client, timeout=settings.UPLOAD_TIMEOUT_SEC),
        geolocation=GeolocationProbe(geolocation),
        settings=settings,
    )


async def run_once(orchestrator: CaptureOrchestrator) -> CaptureReport:
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, orchestrator.cancel)
    except (NotImplementedError, RuntimeError):
        logger.debug("Signal handlers not supported; Ctrl+C will abort instead of cancel")
    try:
        return await orchestrator.run()
    finally:
        try:
            loop.remove_signal_handler(signal.SIGINT)
        except (NotImplementedError, RuntimeError):
            pass
        await orchestrator.uploader.aclose()


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Capture one photo after a countdown and upload it.")
    p.add_argument("--upload-url", help="Relay upload endpoint (overrides CAPTURE_UPLOAD_URL)")
    p.add_argument("--facing", choices=["user", "environment"], help="Preferred camera facing")
    p.add_argument("--countdown", type=int, help="Countdown length in seconds")
    p.add_argument("--device-index", type=int, help="OpenCV camera index")
    p.add_argument("--geo-order", choices=[o.value for o in GeoOrder], help="When to query location")
    p.add_argument("--no-geo", action="store_true", help="Do not query location")
    return p.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)

    overrides = {
        "UPLOAD_URL": args.upload_url,
        "FACING_MODE": args.facing,
        "COUNTDOWN_SEC": args.countdown,
        "DEVICE_INDEX": args.device_index,
        "GEO_ORDER": GeoOrder(args.geo_order) if args.geo_order else None,
        "GEO_ENABLED": False if args.no_geo else None,
    }
    settings = get_settings().model_copy(update={k: v for k, v in overrides.items() if v is not None})
    _configure_logging(settings.LOG_LEVEL)

    report = asyncio.run(run_once(build_orchestrator(settings)))
    logger.info(
        "Session finished: state=%s cancelled=%s upload=%s",
        report.state.value,
        report.cancelled,
        report.upload.outcome.value if report.upload else None,
    )
    if report.error is not None:
        logger.error("%s: %s", type(report.error).__name__, report.error)
    return 0 if report.succeeded else 1


if __name__ == "__main__":
    raise SystemExit(main())
