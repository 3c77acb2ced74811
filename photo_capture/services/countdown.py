from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from photo_capture.core.errors import SessionCancelled

log = logging.getLogger(__name__)


class CountdownController:
    """
    Visible countdown: `run(n)` emits ticks n, n-1, ..., 1 one interval apart and
    returns one interval after the last tick.
    """

    def __init__(self, interval: float = 1.0, cancel_event: Optional[asyncio.Event] = None):
        self.interval = interval
        self._cancel = cancel_event if cancel_event is not None else asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def cancel(self) -> None:
        self._cancel.set()

    async def run(self, seconds: int, on_tick: Optional[Callable[[int], None]] = None) -> None:
        for remaining in range(seconds, 0, -1):
            if self._cancel.is_set():
                raise SessionCancelled("Countdown cancelled.")
            if on_tick is not None:
                on_tick(remaining)
            try:
                await asyncio.wait_for(self._cancel.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                continue
            log.info("Countdown cancelled at %s", remaining)
            raise SessionCancelled("Countdown cancelled.")


def countdown_text(remaining: int) -> str:
    return str(remaining) if remaining > 0 else ""
