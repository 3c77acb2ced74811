"""photo_capture.core.orchestrator

End-to-end single capture:

    camera permission -> readiness wait -> countdown -> warm-up -> capture
    -> (geolocation, best-effort) -> upload -> teardown

Strictly sequential. `cancel()` is cooperative: it sets the session cancel signal
(checked at every suspension point), stops the countdown and releases the camera at
once. An upload already in flight is left to finish and its result is discarded.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from photo_capture.config import CaptureSettings
from photo_capture.core.errors import CaptureError, SessionBusy, SessionCancelled
from photo_capture.core.models import CaptureSession, Coordinates, GeoOrder, SessionState
from photo_capture.services.camera_session import CameraSession
from photo_capture.services.countdown import CountdownController, countdown_text
from photo_capture.services.frame_capturer import FrameCapturer
from photo_capture.services.geolocation import GeolocationProbe
from photo_capture.services.readiness import ReadinessDetector
from photo_capture.services.upload_client import UploadClient, UploadOutcome, UploadResult

logger = logging.getLogger(__name__)


class CaptureObserver(Protocol):
    """User-facing text channels (overlay notice line, status line, countdown)."""

    def notice(self, text: str) -> None: ...
    def status(self, text: str) -> None: ...
    def countdown(self, text: str) -> None: ...


class LoggingObserver:
    def __init__(self, name: str = "photo_capture.ui"):
        self._log = logging.getLogger(name)

    def notice(self, text: str) -> None:
        self._log.info("%s", text)

    def status(self, text: str) -> None:
        self._log.info("%s", text)

    def countdown(self, text: str) -> None:
        if text:
            self._log.info("%s...", text)


@dataclass(frozen=True)
class CaptureReport:
    state: SessionState
    cancelled: bool
    coordinates: Coordinates
    upload: Optional[UploadResult] = None
    error: Optional[BaseException] = None

    @property
    def succeeded(self) -> bool:
        return self.upload is not None and self.upload.ok and not self.cancelled


class CaptureOrchestrator:
    def __init__(
        self,
        camera: CameraSession,
        capturer: FrameCapturer,
        uploader: UploadClient,
        geolocation: Optional[GeolocationProbe] = None,
        settings: Optional[CaptureSettings] = None,
        observer: Optional[CaptureObserver] = None,
        readiness: Optional[ReadinessDetector] = None,
        countdown_interval: float = 1.0,
    ):
        self.camera = camera
        self.capturer = capturer
        self.uploader = uploader
        self.geolocation = geolocation
        self.settings = settings or CaptureSettings()
        self.observer: CaptureObserver = observer or LoggingObserver()
        self.readiness = readiness or ReadinessDetector()
        self.countdown_interval = countdown_interval

        # Upload target can be changed at runtime.
        self.upload_url = self.settings.UPLOAD_URL

        self._session: Optional[CaptureSession] = None
        self._cancel: Optional[asyncio.Event] = None
        self._countdown: Optional[CountdownController] = None

    @property
    def session(self) -> Optional[CaptureSession]:
        return self._session

    @property
    def busy(self) -> bool:
        return self._session is not None and not self._session.terminal

    # --------------------------------------------
    # Cancellation
    # --------------------------------------------
    def cancel(self) -> None:
        session = self._session
        if session is None or session.terminal or session.cancelled:
            return
        logger.info("Cancelling capture session (state=%s)", session.state.value)
        session.cancelled = True
        if self._cancel is not None:
            self._cancel.set()
        if self._countdown is not None:
            self._countdown.cancel()
        self.camera.stop()
        session.stream = None
        self.observer.countdown("")
        self.observer.status("Capture cancelled.")

    def _checkpoint(self) -> None:
        if self._cancel is not None and self._cancel.is_set():
            raise SessionCancelled()

    async def _sleep(self, seconds: float) -> None:
        """Cancellable delay."""
        try:
            await asyncio.wait_for(self._cancel.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return
        raise SessionCancelled()

    # --------------------------------------------
    # Flow
    # --------------------------------------------
    async def run(self) -> CaptureReport:
        if self.busy:
            raise SessionBusy("A capture session is already running")

        session = CaptureSession()
        self._session = session
        self._cancel = asyncio.Event()
        self._countdown = CountdownController(self.countdown_interval, self._cancel)

        try:
            await self._run(session)
        except SessionCancelled:
            logger.info("Capture session cancelled")
            session.cancelled = True
            session.transition(SessionState.STOPPED)
        except CaptureError as e:
            logger.error("Capture session failed: %s: %s", type(e).__name__, e)
            session.fail(e)
        except Exception as e:
            logger.exception("Capture session crashed")
            session.fail(e)
        finally:
            self.camera.stop()
            session.stream = None
            if not session.terminal:
                session.transition(SessionState.STOPPED)
            self._countdown = None

        return CaptureReport(
            state=session.state,
            cancelled=session.cancelled,
            coordinates=session.coordinates,
            upload=session.upload,
            error=session.error,
        )

    async def _locate(self, session: CaptureSession) -> None:
        if session.coordinates.present:
            return
        session.coordinates = await self.geolocation.try_locate(self.settings.GEO_TIMEOUT_SEC)

    async def _run(self, session: CaptureSession) -> None:
        s = self.settings
        use_geo = s.GEO_ENABLED and self.geolocation is not None

        if use_geo and s.GEO_ORDER is GeoOrder.BEFORE_CAMERA:
            await self._locate(session)
            self._checkpoint()

        # 1) Camera permission + stream
        session.transition(SessionState.AWAITING_PERMISSION)
        self.observer.notice("Requesting camera permission...")
        try:
            stream = await self.camera.start(s.FACING_MODE)
        except CaptureError as e:
            self.observer.notice("Camera permission denied or unavailable.")
            self.observer.status(str(e))
            raise
        self._checkpoint()
        session.stream = stream
        session.transition(SessionState.STREAMING)

        # 2) Wait for real frames (resolves on timeout too)
        session.transition(SessionState.READY_WAIT)
        await self.readiness.wait_until_ready(self.camera.video, s.READY_TIMEOUT_SEC, self._cancel)
        self._checkpoint()

        self.observer.notice("Permission granted — capturing shortly.")
        self.observer.status("You will see a visible countdown and the camera indicator.")

        # 3) Countdown + sensor warm-up
        session.transition(SessionState.COUNTDOWN)
        await self._countdown.run(s.COUNTDOWN_SEC, on_tick=lambda t: self.observer.countdown(countdown_text(t)))
        self.observer.countdown(countdown_text(0))
        await self._sleep(s.WARMUP_DELAY_SEC)

        # 4) Capture (exactly once)
        session.transition(SessionState.CAPTURING)
        session.captures += 1
        result = await self.capturer.capture(session.stream, self.camera.video)
        # cancel() releases the camera, so a capture it interrupts fails; the cancel wins.
        self._checkpoint()
        if not result.ok:
            self.observer.status("Capture failed.")
            raise result.error
        session.image = result.image
        self.observer.status("Preparing image...")

        # Fallback (BEFORE_CAMERA) or only attempt (AFTER_CAPTURE); skipped once coordinates exist.
        if use_geo:
            await self._locate(session)
            self._checkpoint()

        # 5) Upload (exactly once); camera is released when it completes
        session.transition(SessionState.UPLOADING)
        self.observer.status("Uploading photo to server...")
        session.uploads += 1
        upload = await self.uploader.send(
            self.upload_url, session.image, session.coordinates, teardown=self.camera.stop
        )
        session.stream = None
        if session.cancelled:
            logger.info("Discarding upload result of cancelled session: %s", upload.outcome.value)
            raise SessionCancelled()

        session.upload = upload
        self.observer.notice("Camera stopped.")
        if upload.outcome is UploadOutcome.SUCCESS:
            self.observer.status("✅ Photo sent successfully.")
            session.transition(SessionState.STOPPED)
        elif upload.outcome is UploadOutcome.SERVER_REJECTED:
            self.observer.status(f"❌ Upload failed: {upload.error}")
            session.fail(upload.error)
        else:
            self.observer.status("❌ Network error while uploading.")
            session.fail(upload.error)
