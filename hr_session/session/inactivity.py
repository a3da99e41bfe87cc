# hr_session/session/inactivity.py — Idle detection and forced sign-out trigger

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Callable

logger = logging.getLogger(__name__)


class InteractionSignal(str, Enum):
    POINTER_DOWN = "mousedown"
    POINTER_MOVE = "mousemove"
    KEY_DOWN = "keydown"
    SCROLL = "scroll"
    TOUCH_START = "touchstart"


class InactivityMonitor:
    """
    Single idle timer reset by every observed interaction signal.

    When the timer fires uninterrupted the callback runs exactly once and the
    monitor disarms itself. Must be used from within a running event loop.
    """

    def __init__(self, idle_timeout_seconds: float = 300.0) -> None:
        self._idle_timeout_seconds = idle_timeout_seconds
        self._callback: Callable[[], None] | None = None
        self._handle: asyncio.TimerHandle | None = None

    @property
    def armed(self) -> bool:
        return self._callback is not None

    def arm(self, on_idle_timeout: Callable[[], None]) -> None:
        self.disarm()
        self._callback = on_idle_timeout
        self._reset_timer()

    def disarm(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._callback = None

    def record_activity(self, signal: InteractionSignal | str) -> bool:
        """Returns True when the signal reset the idle window."""
        if not self.armed:
            return False
        try:
            InteractionSignal(signal)
        except ValueError:
            return False
        self._reset_timer()
        return True

    def _reset_timer(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self._idle_timeout_seconds, self._fire)

    def _fire(self) -> None:
        callback = self._callback
        self._handle = None
        self.disarm()
        if callback is None:
            return
        logger.info(
            "User inactive, idle timeout reached",
            extra={"idle_timeout_seconds": self._idle_timeout_seconds},
        )
        callback()
