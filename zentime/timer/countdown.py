"""Meditation countdown state machine.

States
------
IDLE        Configured, waiting for the user to start.
RUNNING     Counting down once per second.
PAUSED      Frozen; remaining time is kept.
COMPLETED   Reached zero.  Stays here until reset / configure / start.

Transitions
-----------
IDLE → RUNNING                  (start)
RUNNING → PAUSED                (pause)
PAUSED → RUNNING                (resume, or start)
RUNNING → COMPLETED             (tick reaches 0)
COMPLETED → RUNNING             (start, a fresh session)
COMPLETED → IDLE                (reset / configure)
Any → IDLE                      (reset)
RUNNING / PAUSED → IDLE         (dispose)

Timing
------
Each tick takes one second off the clock, but never lets ``remaining``
sit above ``ceil(deadline - now)``.  If ticks were missed (the machine
slept, the event loop stalled) the next tick catches up instead of
drifting.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime

from PyQt6.QtCore import QObject, pyqtSignal

from .common import (
    RunState,
    InvalidConfiguration,
    IllegalTransition,
    NullFeedback,
    NullNotifier,
    cancel_on_destroy,
    fire_and_forget,
    format_clock,
)

logger = logging.getLogger(__name__)


# ── constants ─────────────────────────────────────────────────────────────

DEFAULT_DURATION_SECONDS = 10 * 60
DURATION_PRESETS = (1, 5, 10, 15, 20, 30, 45, 60)  # minutes
COUNTDOWN_TICK_SECONDS = 1.0

COMPLETION_TITLE = "Meditation Complete"
COMPLETION_BODY = "Amazingly Done! Your meditation session has finished."

NO_AMBIENT = "none"


# ── value types ───────────────────────────────────────────────────────────


@dataclass(frozen=True)
class CountdownSnapshot:
    remaining: float
    total: float
    progress: float  # 1.0 → 0.0
    state: RunState

    @property
    def time_string(self) -> str:
        return format_clock(self.remaining)

    @property
    def is_running(self) -> bool:
        return self.state == RunState.RUNNING


@dataclass(frozen=True)
class CompletionEvent:
    """Published once when a countdown reaches zero."""

    duration_minutes: int
    duration_seconds: float
    ambient_sound_id: str
    finished_at: datetime


# ── engine ────────────────────────────────────────────────────────────────


class CountdownEngine(QObject):
    """Single countdown from a configured total down to zero.

    Signals
    -------
    snapshot_changed(snapshot: CountdownSnapshot)
        Emitted whenever the published snapshot is replaced.
    state_changed(new_state: RunState)
        Emitted on every state transition.
    completed(event: CompletionEvent)
        Emitted once per countdown that reaches zero.  Never emitted by
        ``pause()`` or ``reset()``.
    """

    snapshot_changed = pyqtSignal(object)
    state_changed = pyqtSignal(object)
    completed = pyqtSignal(object)

    def __init__(
        self,
        clock,
        feedback=None,
        notifier=None,
        parent: QObject | None = None,
        *,
        total_seconds: float = DEFAULT_DURATION_SECONDS,
        strict: bool = False,
    ) -> None:
        super().__init__(parent)
        _validate_total(total_seconds)

        self._clock = clock
        self._feedback = feedback if feedback is not None else NullFeedback()
        self._notifier = notifier if notifier is not None else NullNotifier()
        self._strict = strict

        self._total: float = float(total_seconds)
        self._ambient_sound: str = NO_AMBIENT
        self._deadline: float | None = None
        self._handle = None
        self._release = None
        self._pending_completion: CompletionEvent | None = None

        self._snapshot = CountdownSnapshot(
            remaining=self._total,
            total=self._total,
            progress=1.0,
            state=RunState.IDLE,
        )

    # ══════════════════════════════════════════════════════════════════
    #  PUBLIC PROPERTIES
    # ══════════════════════════════════════════════════════════════════

    @property
    def snapshot(self) -> CountdownSnapshot:
        return self._snapshot

    @property
    def state(self) -> RunState:
        return self._snapshot.state

    @property
    def remaining(self) -> float:
        return self._snapshot.remaining

    @property
    def progress(self) -> float:
        return self._snapshot.progress

    @property
    def total(self) -> float:
        """The configured total; applies to the next ``start()``."""
        return self._total

    @property
    def time_string(self) -> str:
        return self._snapshot.time_string

    @property
    def is_running(self) -> bool:
        return self._snapshot.state == RunState.RUNNING

    @property
    def is_paused(self) -> bool:
        return self._snapshot.state == RunState.PAUSED

    @property
    def is_completed(self) -> bool:
        return self._snapshot.state == RunState.COMPLETED

    @property
    def ambient_sound(self) -> str:
        return self._ambient_sound

    @property
    def has_subscription(self) -> bool:
        return self._handle is not None

    # ══════════════════════════════════════════════════════════════════
    #  CONTROLS
    # ══════════════════════════════════════════════════════════════════

    def configure(self, total_seconds: float) -> None:
        """Set the countdown length.

        Raises :class:`InvalidConfiguration` unless *total_seconds* is a
        finite number above zero.  A running countdown keeps going with
        its old total; otherwise the clock is refilled immediately.
        """
        _validate_total(total_seconds)
        self._total = float(total_seconds)
        if self.is_running:
            return

        state = self.state
        if state == RunState.COMPLETED:
            state = RunState.IDLE
            self._pending_completion = None
        self._publish(self._full_snapshot(state))

    def set_duration_minutes(self, minutes: int) -> None:
        self.configure(minutes * 60)

    def set_ambient_sound(self, sound_id: str, *, preview: bool = True) -> None:
        """Switch the background loop.  ``"none"`` just stops it.

        With ``preview=False`` the choice is only remembered for the
        next ``start()`` (used when restoring saved settings).
        """
        self._ambient_sound = sound_id or NO_AMBIENT
        if not preview:
            return
        fire_and_forget("stop ambient", self._feedback.stop_ambient)
        if self._ambient_sound != NO_AMBIENT:
            fire_and_forget(
                "play ambient", self._feedback.play_ambient, self._ambient_sound,
            )

    def start(self) -> None:
        """Begin a fresh countdown.  From PAUSED this is ``resume()``."""
        if self.state == RunState.PAUSED:
            self.resume()
            return
        if self.state == RunState.RUNNING:
            self._reject("start")
            return

        self._pending_completion = None
        self._deadline = self._clock.now() + self._total
        self._publish(self._full_snapshot(RunState.RUNNING))
        fire_and_forget("start feedback", self._feedback.notify_impact, "medium")
        if self._ambient_sound != NO_AMBIENT:
            fire_and_forget(
                "play ambient", self._feedback.play_ambient, self._ambient_sound,
            )
        self._subscribe()

    def pause(self) -> None:
        if self.state != RunState.RUNNING:
            self._reject("pause")
            return
        self._unsubscribe()
        self._deadline = None
        self._publish(self._with_state(RunState.PAUSED))

    def resume(self) -> None:
        if self.state != RunState.PAUSED:
            self._reject("resume")
            return
        self._deadline = self._clock.now() + self._snapshot.remaining
        self._publish(self._with_state(RunState.RUNNING))
        self._subscribe()

    def reset(self) -> None:
        """Stop and refill the clock.  Safe to call repeatedly."""
        self._unsubscribe()
        self._deadline = None
        self._pending_completion = None
        fire_and_forget("stop ambient", self._feedback.stop_ambient)
        self._publish(self._full_snapshot(RunState.IDLE))

    def take_completion(self) -> CompletionEvent | None:
        """Return the pending completion event once, then ``None``."""
        event, self._pending_completion = self._pending_completion, None
        return event

    def dispose(self) -> None:
        """Release the tick subscription and any ambient audio.

        A running or paused countdown drops back to IDLE with a full
        clock, so a later ``start()`` begins a fresh session.  A pending
        completion is kept for :meth:`take_completion`.
        """
        self._unsubscribe()
        self._deadline = None
        fire_and_forget("stop ambient", self._feedback.stop_ambient)
        if self.state in (RunState.RUNNING, RunState.PAUSED):
            self._publish(self._full_snapshot(RunState.IDLE))

    def __enter__(self) -> CountdownEngine:
        return self

    def __exit__(self, *exc_info) -> None:
        self.dispose()

    # ══════════════════════════════════════════════════════════════════
    #  INTERNAL: timer mechanics
    # ══════════════════════════════════════════════════════════════════

    def _on_tick(self) -> None:
        # A tick queued before cancellation must not move the clock.
        if self.state != RunState.RUNNING or self._deadline is None:
            return

        by_clock = math.ceil(self._deadline - self._clock.now())
        remaining = max(0.0, min(self._snapshot.remaining - 1, by_clock))

        if remaining > 0:
            total = self._snapshot.total
            self._publish(CountdownSnapshot(
                remaining=remaining,
                total=total,
                progress=remaining / total,
                state=RunState.RUNNING,
            ))
        else:
            self._finish()

    def _finish(self) -> None:
        self._unsubscribe()
        self._deadline = None
        total = self._snapshot.total

        self._publish(CountdownSnapshot(
            remaining=0.0,
            total=total,
            progress=0.0,
            state=RunState.COMPLETED,
        ))

        fire_and_forget("end feedback", self._feedback.notify_success)
        fire_and_forget("stop ambient", self._feedback.stop_ambient)
        fire_and_forget(
            "completion notification",
            self._notifier.deliver, COMPLETION_TITLE, COMPLETION_BODY,
        )

        event = CompletionEvent(
            duration_minutes=round(total / 60),
            duration_seconds=total,
            ambient_sound_id=self._ambient_sound,
            finished_at=datetime.now(),
        )
        self._pending_completion = event
        logger.info("countdown of %.0fs completed", total)
        self.completed.emit(event)

    def _subscribe(self) -> None:
        if self._handle is None:
            self._handle = self._clock.subscribe(
                COUNTDOWN_TICK_SECONDS, self._on_tick,
            )
            self._release = cancel_on_destroy(self, self._clock, self._handle)

    def _unsubscribe(self) -> None:
        if self._handle is not None:
            handle, self._handle = self._handle, None
            self.destroyed.disconnect(self._release)
            self._release = None
            self._clock.cancel(handle)

    def _full_snapshot(self, state: RunState) -> CountdownSnapshot:
        return CountdownSnapshot(
            remaining=self._total,
            total=self._total,
            progress=1.0,
            state=state,
        )

    def _with_state(self, state: RunState) -> CountdownSnapshot:
        s = self._snapshot
        return CountdownSnapshot(
            remaining=s.remaining, total=s.total, progress=s.progress, state=state,
        )

    def _publish(self, snapshot: CountdownSnapshot) -> None:
        previous = self._snapshot.state
        self._snapshot = snapshot
        if snapshot.state != previous:
            self.state_changed.emit(snapshot.state)
        self.snapshot_changed.emit(snapshot)

    def _reject(self, action: str) -> None:
        message = f"cannot {action} while {self.state.value}"
        if self._strict:
            raise IllegalTransition(message)
        logger.debug("ignored: %s", message)


def _validate_total(total_seconds: float) -> None:
    try:
        ok = math.isfinite(total_seconds) and total_seconds > 0
    except TypeError:
        ok = False
    if not ok:
        raise InvalidConfiguration(
            f"countdown total must be a positive number of seconds, got {total_seconds!r}"
        )
