"""Pieces shared by the countdown and breathing engines.

Collaborators
-------------
Both engines talk to three duck-typed collaborators:

clock
    ``now() -> float`` (monotonic seconds), ``subscribe(period, callback)
    -> handle`` and ``cancel(handle)``.  See :class:`~.clock.QtClock`.
feedback
    ``notify_impact(kind)`` with kind ``"light"`` or ``"medium"``,
    ``notify_success()``, ``play_ambient(sound_id)`` and
    ``stop_ambient()``.  See :class:`~zentime.audio.feedback.SoundFeedback`.
notifier
    ``deliver(title, body)``.  See
    :class:`~zentime.notifications.TrayNotifier`.

Calls into *feedback* and *notifier* are fire-and-forget: a failure is
logged and the timer carries on.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable

from PyQt6.QtCore import QObject

logger = logging.getLogger(__name__)


# ── enums ─────────────────────────────────────────────────────────────────


class RunState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"


# ── errors ────────────────────────────────────────────────────────────────


class TimerError(Exception):
    """Base class for timer engine errors."""


class InvalidConfiguration(TimerError, ValueError):
    """A duration that cannot drive a countdown (zero, negative, NaN)."""


class IllegalTransition(TimerError):
    """A control call the current state does not allow.

    Only raised by engines created with ``strict=True``; otherwise the
    call is logged and ignored.
    """


# ── formatting ────────────────────────────────────────────────────────────


def format_clock(seconds: float) -> str:
    """Whole seconds as ``MM:SS`` (``600`` → ``"10:00"``)."""
    whole = int(max(0.0, seconds))
    minutes, secs = divmod(whole, 60)
    return f"{minutes:02d}:{secs:02d}"


# ── null collaborators ────────────────────────────────────────────────────


class NullFeedback:
    """Feedback sink that does nothing."""

    def notify_impact(self, kind: str = "medium") -> None:
        pass

    def notify_success(self) -> None:
        pass

    def play_ambient(self, sound_id: str) -> None:
        pass

    def stop_ambient(self) -> None:
        pass


class NullNotifier:
    """Notification sink that does nothing."""

    def deliver(self, title: str, body: str) -> None:
        pass


# ── side effects ──────────────────────────────────────────────────────────


def fire_and_forget(what: str, fn: Callable[..., Any], *args: Any) -> None:
    """Call a collaborator, logging (never raising) any failure."""
    try:
        fn(*args)
    except Exception:
        logger.exception("%s failed; timer continues", what)


# ── subscription lifetime ─────────────────────────────────────────────────


def cancel_on_destroy(owner: QObject, clock, handle):
    """Cancel *handle* on *clock* when *owner* is destroyed.

    Covers engines that are garbage-collected or deleted along with their
    Qt parent without ``dispose()`` being called.  Returns the connection
    so the caller can drop it once it cancels the handle itself.
    """
    # Must not reference owner: it runs while owner is being torn down.
    def release(*_args) -> None:
        logger.debug("owner destroyed; releasing tick handle %r", handle)
        clock.cancel(handle)

    return owner.destroyed.connect(release)
