"""Box-breathing phase cycle (4-4-4-4 style, five seconds a side).

Phases run IN → HOLD_IN → OUT → HOLD_OUT → IN ... until the user resets
or leaves.  Every finished HOLD_OUT counts one cycle.

The engine ticks ten times a second so the breathing circle can animate
smoothly.  Each tick recomputes elapsed time from the moment the current
phase started; pausing freezes the numbers and resuming re-anchors that
moment so the phase continues exactly where it stopped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from PyQt6.QtCore import QObject, pyqtSignal

from .common import (
    RunState,
    IllegalTransition,
    NullFeedback,
    cancel_on_destroy,
    fire_and_forget,
)

logger = logging.getLogger(__name__)


# ── constants ─────────────────────────────────────────────────────────────

PHASE_SECONDS = 5.0
BREATHING_TICK_SECONDS = 0.1

# Float noise from real clocks; a phase this close to its end is done.
_EPSILON = 1e-6


# ── phases ────────────────────────────────────────────────────────────────


class BreathingPhase(Enum):
    IN = 0
    HOLD_IN = 1
    OUT = 2
    HOLD_OUT = 3

    @property
    def index(self) -> int:
        return self.value

    @property
    def duration(self) -> float:
        return PHASE_SECONDS

    @property
    def display_text(self) -> str:
        return _DISPLAY_TEXT[self]

    def next(self) -> BreathingPhase:
        members = list(BreathingPhase)
        return members[(self.value + 1) % len(members)]


_DISPLAY_TEXT: dict[BreathingPhase, str] = {
    BreathingPhase.IN: "Breathe In",
    BreathingPhase.HOLD_IN: "Hold",
    BreathingPhase.OUT: "Breathe Out",
    BreathingPhase.HOLD_OUT: "Hold",
}

CYCLE_SECONDS = sum(phase.duration for phase in BreathingPhase)


# ── snapshot ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class BreathingSnapshot:
    phase: BreathingPhase
    phase_remaining: float
    phase_progress: float  # 0.0 → 1.0 within the phase
    completed_cycles: int
    total_elapsed: float  # display only
    state: RunState

    @property
    def display_text(self) -> str:
        return self.phase.display_text

    @property
    def seconds_label(self) -> str:
        return f"{int(self.phase_remaining)}s"

    @property
    def circle_scale(self) -> float:
        """Size of the breathing circle, 0.5 (empty) to 1.0 (full)."""
        if self.state != RunState.RUNNING:
            return 0.5
        if self.phase == BreathingPhase.IN:
            return 0.5 + self.phase_progress * 0.5
        if self.phase == BreathingPhase.HOLD_IN:
            return 1.0
        if self.phase == BreathingPhase.OUT:
            return 1.0 - self.phase_progress * 0.5
        return 0.5


_INITIAL = BreathingSnapshot(
    phase=BreathingPhase.IN,
    phase_remaining=PHASE_SECONDS,
    phase_progress=0.0,
    completed_cycles=0,
    total_elapsed=0.0,
    state=RunState.IDLE,
)


# ── engine ────────────────────────────────────────────────────────────────


class PhaseCycleEngine(QObject):
    """Endless four-phase breathing cycle.

    Signals
    -------
    snapshot_changed(snapshot: BreathingSnapshot)
        Emitted on every tick and control call.
    state_changed(new_state: RunState)
        IDLE / RUNNING / PAUSED transitions.
    phase_changed(phase: BreathingPhase)
        Emitted when the cycle moves on to the next phase.
    cycle_completed(count: int)
        Emitted after each finished HOLD_OUT with the new total.
    """

    snapshot_changed = pyqtSignal(object)
    state_changed = pyqtSignal(object)
    phase_changed = pyqtSignal(object)
    cycle_completed = pyqtSignal(int)

    def __init__(
        self,
        clock,
        feedback=None,
        parent: QObject | None = None,
        *,
        strict: bool = False,
    ) -> None:
        super().__init__(parent)
        self._clock = clock
        self._feedback = feedback if feedback is not None else NullFeedback()
        self._strict = strict

        self._phase_start: float | None = None
        self._handle = None
        self._release = None
        self._ambient_sound: str = "none"
        self._snapshot: BreathingSnapshot = _INITIAL

    # ── properties ────────────────────────────────────────────────────

    @property
    def snapshot(self) -> BreathingSnapshot:
        return self._snapshot

    @property
    def state(self) -> RunState:
        return self._snapshot.state

    @property
    def phase(self) -> BreathingPhase:
        return self._snapshot.phase

    @property
    def phase_remaining(self) -> float:
        return self._snapshot.phase_remaining

    @property
    def phase_progress(self) -> float:
        return self._snapshot.phase_progress

    @property
    def completed_cycles(self) -> int:
        return self._snapshot.completed_cycles

    @property
    def total_elapsed(self) -> float:
        return self._snapshot.total_elapsed

    @property
    def is_running(self) -> bool:
        return self._snapshot.state == RunState.RUNNING

    @property
    def ambient_sound(self) -> str:
        return self._ambient_sound

    @property
    def has_subscription(self) -> bool:
        return self._handle is not None

    # ── controls ──────────────────────────────────────────────────────

    def start(self) -> None:
        if self.state == RunState.PAUSED:
            self.resume()
            return
        if self.state == RunState.RUNNING:
            self._reject("start")
            return

        s = self._snapshot
        self._phase_start = self._clock.now()
        self._publish(BreathingSnapshot(
            phase=BreathingPhase.IN,
            phase_remaining=BreathingPhase.IN.duration,
            phase_progress=0.0,
            completed_cycles=s.completed_cycles,
            total_elapsed=s.total_elapsed,
            state=RunState.RUNNING,
        ))
        fire_and_forget("start feedback", self._feedback.notify_impact, "medium")
        self._subscribe()

    def pause(self) -> None:
        if self.state != RunState.RUNNING:
            self._reject("pause")
            return
        self._unsubscribe()
        self._publish(self._with_state(RunState.PAUSED))

    def resume(self) -> None:
        if self.state != RunState.PAUSED:
            self._reject("resume")
            return
        s = self._snapshot
        already = s.phase.duration - s.phase_remaining
        self._phase_start = self._clock.now() - already
        self._publish(self._with_state(RunState.RUNNING))
        self._subscribe()

    def reset(self) -> None:
        self._unsubscribe()
        self._phase_start = None
        fire_and_forget("stop ambient", self._feedback.stop_ambient)
        self._publish(_INITIAL)

    def set_ambient_sound(self, sound_id: str) -> None:
        self._ambient_sound = sound_id or "none"
        fire_and_forget("stop ambient", self._feedback.stop_ambient)
        if self._ambient_sound != "none":
            fire_and_forget(
                "play ambient", self._feedback.play_ambient, self._ambient_sound,
            )

    def dispose(self) -> None:
        """Release the tick subscription and any ambient audio.

        A running or paused cycle goes back to the initial IDLE snapshot.
        """
        self._unsubscribe()
        fire_and_forget("stop ambient", self._feedback.stop_ambient)
        if self.state in (RunState.RUNNING, RunState.PAUSED):
            self._phase_start = None
            self._publish(_INITIAL)

    def __enter__(self) -> PhaseCycleEngine:
        return self

    def __exit__(self, *exc_info) -> None:
        self.dispose()

    # ── tick ──────────────────────────────────────────────────────────

    def _on_tick(self) -> None:
        if self.state != RunState.RUNNING or self._phase_start is None:
            return

        now = self._clock.now()
        s = self._snapshot
        duration = s.phase.duration
        elapsed = now - self._phase_start
        remaining = duration - elapsed

        if remaining > _EPSILON:
            total = (
                s.completed_cycles * CYCLE_SECONDS
                + s.phase.index * PHASE_SECONDS
                + elapsed
            )
            self._publish(BreathingSnapshot(
                phase=s.phase,
                phase_remaining=remaining,
                phase_progress=elapsed / duration,
                completed_cycles=s.completed_cycles,
                total_elapsed=max(s.total_elapsed, total),
                state=RunState.RUNNING,
            ))
        else:
            self._advance_phase(now)

    def _advance_phase(self, now: float) -> None:
        fire_and_forget("phase feedback", self._feedback.notify_impact, "light")

        s = self._snapshot
        cycles = s.completed_cycles
        if s.phase == BreathingPhase.HOLD_OUT:
            cycles += 1

        phase = s.phase.next()
        self._phase_start = now
        total = cycles * CYCLE_SECONDS + phase.index * PHASE_SECONDS
        self._publish(BreathingSnapshot(
            phase=phase,
            phase_remaining=phase.duration,
            phase_progress=0.0,
            completed_cycles=cycles,
            total_elapsed=max(s.total_elapsed, total),
            state=RunState.RUNNING,
        ))

        self.phase_changed.emit(phase)
        if cycles != s.completed_cycles:
            logger.debug("breathing cycle %d complete", cycles)
            self.cycle_completed.emit(cycles)

    # ── helpers ───────────────────────────────────────────────────────

    def _subscribe(self) -> None:
        if self._handle is None:
            self._handle = self._clock.subscribe(
                BREATHING_TICK_SECONDS, self._on_tick,
            )
            self._release = cancel_on_destroy(self, self._clock, self._handle)

    def _unsubscribe(self) -> None:
        if self._handle is not None:
            handle, self._handle = self._handle, None
            self.destroyed.disconnect(self._release)
            self._release = None
            self._clock.cancel(handle)

    def _with_state(self, state: RunState) -> BreathingSnapshot:
        s = self._snapshot
        return BreathingSnapshot(
            phase=s.phase,
            phase_remaining=s.phase_remaining,
            phase_progress=s.phase_progress,
            completed_cycles=s.completed_cycles,
            total_elapsed=s.total_elapsed,
            state=state,
        )

    def _publish(self, snapshot: BreathingSnapshot) -> None:
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
