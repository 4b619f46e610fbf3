"""Desktop notifications via the system tray icon, plus the daily reminder."""

from __future__ import annotations

import logging
from datetime import datetime, time, timedelta
from typing import Callable

from PyQt6.QtCore import QObject, Qt, QTimer, pyqtSignal
from PyQt6.QtGui import QColor, QIcon, QImage, QPainter, QPixmap
from PyQt6.QtWidgets import QSystemTrayIcon

from .timer.common import fire_and_forget

logger = logging.getLogger(__name__)

REMINDER_TITLE = "Time to Meditate"
REMINDER_BODY = "Take a few quiet minutes for yourself today."


def _make_tray_icon() -> QIcon:
    """A 32×32 template icon: a ring with a small dot in the centre."""
    size = 64  # drawn at 2× for Retina
    img = QImage(size, size, QImage.Format.Format_ARGB32_Premultiplied)
    img.fill(Qt.GlobalColor.transparent)
    p = QPainter(img)
    p.setRenderHint(QPainter.RenderHint.Antialiasing)
    colour = QColor(0, 0, 0, 220)

    cx, cy, r = size // 2, size // 2, size // 2 - 4
    pen = p.pen()
    pen.setColor(colour)
    pen.setWidth(5)
    p.setPen(pen)
    p.setBrush(Qt.BrushStyle.NoBrush)
    p.drawEllipse(cx - r, cy - r, r * 2, r * 2)

    p.setPen(Qt.PenStyle.NoPen)
    p.setBrush(colour)
    dot = 7
    p.drawEllipse(cx - dot, cy - dot, dot * 2, dot * 2)
    p.end()

    icon = QIcon(QPixmap.fromImage(img))
    icon.setIsMask(True)
    return icon


class TrayNotifier(QObject):
    """Notification collaborator: ``deliver(title, body)``.

    Shows a tray balloon on the given icon.  Without one it creates a
    visible tray icon of its own.  When disabled, deliveries are dropped
    silently.

    Signals
    -------
    delivered(title: str, body: str)
        Emitted after a message was handed to the tray.
    """

    delivered = pyqtSignal(str, str)

    def __init__(
        self,
        tray_icon: QSystemTrayIcon | None = None,
        parent: QObject | None = None,
        *,
        enabled: bool = True,
    ) -> None:
        super().__init__(parent)
        if tray_icon is None:
            if not QSystemTrayIcon.isSystemTrayAvailable():
                logger.warning("no system tray available; notifications may not show")
            tray_icon = QSystemTrayIcon(self)
            tray_icon.setIcon(_make_tray_icon())
            tray_icon.setToolTip("ZenTime")
            tray_icon.show()
        self._tray_icon = tray_icon
        self._enabled = enabled

    @property
    def tray_icon(self):
        return self._tray_icon

    @property
    def enabled(self) -> bool:
        return self._enabled

    def set_enabled(self, enabled: bool) -> None:
        self._enabled = enabled

    def deliver(self, title: str, body: str) -> None:
        if not self._enabled:
            return
        self._tray_icon.showMessage(title, body)
        logger.info("notification delivered: %s", title)
        self.delivered.emit(title, body)


# ═══════════════════════════════════════════════════════════════════════════
#  DAILY REMINDER
# ═══════════════════════════════════════════════════════════════════════════


def next_occurrence(at: time, now: datetime) -> datetime:
    """The first moment strictly after *now* whose wall-clock time is *at*."""
    candidate = now.replace(
        hour=at.hour, minute=at.minute, second=0, microsecond=0,
    )
    if candidate <= now:
        candidate += timedelta(days=1)
    return candidate


class DailyReminder(QObject):
    """Delivers a "time to meditate" notification once a day.

    Usage::

        reminder = DailyReminder(notifier, parent=self)
        reminder.schedule(time(8, 0))
        ...
        reminder.cancel()

    Signals
    -------
    fired()
        Emitted each time the reminder goes off.
    """

    fired = pyqtSignal()

    def __init__(
        self,
        notifier,
        parent: QObject | None = None,
        *,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        super().__init__(parent)
        self._notifier = notifier
        self._now = now
        self._at: time | None = None
        self._next_fire: datetime | None = None

        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.timeout.connect(self._on_timeout)

    @property
    def is_scheduled(self) -> bool:
        return self._at is not None

    @property
    def reminder_time(self) -> time | None:
        return self._at

    @property
    def next_fire(self) -> datetime | None:
        return self._next_fire

    def schedule(self, at: time) -> None:
        """Remind every day at *at*, replacing any earlier schedule."""
        self._at = at
        self._arm(self._now())
        logger.info("daily reminder set for %s", at.strftime("%H:%M"))

    def cancel(self) -> None:
        self._timer.stop()
        self._at = None
        self._next_fire = None

    def _arm(self, after: datetime) -> None:
        self._next_fire = next_occurrence(self._at, after)
        delay = self._next_fire - self._now()
        self._timer.start(max(0, int(delay.total_seconds() * 1000)))

    def _on_timeout(self) -> None:
        if self._at is None:
            return
        fire_and_forget(
            "reminder notification",
            self._notifier.deliver, REMINDER_TITLE, REMINDER_BODY,
        )
        self.fired.emit()
        # Timers can fire a little early; never re-arm for the same day.
        self._arm(max(self._now(), self._next_fire))
