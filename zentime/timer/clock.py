"""QTimer-backed periodic tick source."""

from __future__ import annotations

import logging
import time
from typing import Callable

from PyQt6 import sip
from PyQt6.QtCore import QObject, Qt, QTimer

logger = logging.getLogger(__name__)


class QtClock(QObject):
    """Hands out one ``QTimer`` per subscription.

    Usage::

        clock = QtClock(parent=self)
        handle = clock.subscribe(1.0, self._on_tick)
        ...
        clock.cancel(handle)

    Ticks are delivered on the Qt event loop, so a callback always runs
    to completion before the next one fires.
    """

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._timers: dict[int, QTimer] = {}
        self._next_handle: int = 1

    def now(self) -> float:
        """Monotonic seconds; only differences are meaningful."""
        return time.monotonic()

    def subscribe(self, period_seconds: float, callback: Callable[[], None]) -> int:
        if period_seconds <= 0:
            raise ValueError(f"tick period must be positive, got {period_seconds!r}")
        timer = QTimer(self)
        timer.setTimerType(Qt.TimerType.PreciseTimer)
        timer.setInterval(max(1, round(period_seconds * 1000)))
        timer.timeout.connect(callback)
        timer.start()

        handle = self._next_handle
        self._next_handle += 1
        self._timers[handle] = timer
        logger.debug("subscribed handle %d every %.3fs", handle, period_seconds)
        return handle

    def cancel(self, handle: int) -> None:
        """Stop a subscription.  Unknown or stale handles are ignored."""
        timer = self._timers.pop(handle, None)
        if timer is None:
            return
        if sip.isdeleted(timer):
            # Already gone with a destroyed clock.
            return
        timer.stop()
        timer.timeout.disconnect()
        timer.deleteLater()
        logger.debug("cancelled handle %d", handle)

    @property
    def active_subscriptions(self) -> int:
        return len(self._timers)

    def is_active(self, handle: int) -> bool:
        timer = self._timers.get(handle)
        return timer is not None and not sip.isdeleted(timer) and timer.isActive()
