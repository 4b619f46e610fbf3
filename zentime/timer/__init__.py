"""Timer package."""

from .common import (
    RunState,
    TimerError,
    InvalidConfiguration,
    IllegalTransition,
    NullFeedback,
    NullNotifier,
    format_clock,
)
from .clock import QtClock
from .countdown import (
    CountdownEngine,
    CountdownSnapshot,
    CompletionEvent,
    DEFAULT_DURATION_SECONDS,
    DURATION_PRESETS,
    COMPLETION_TITLE,
    COMPLETION_BODY,
)
from .breathing import (
    PhaseCycleEngine,
    BreathingPhase,
    BreathingSnapshot,
    PHASE_SECONDS,
    CYCLE_SECONDS,
)

__all__ = [
    "RunState",
    "TimerError",
    "InvalidConfiguration",
    "IllegalTransition",
    "NullFeedback",
    "NullNotifier",
    "format_clock",
    "QtClock",
    "CountdownEngine",
    "CountdownSnapshot",
    "CompletionEvent",
    "DEFAULT_DURATION_SECONDS",
    "DURATION_PRESETS",
    "COMPLETION_TITLE",
    "COMPLETION_BODY",
    "PhaseCycleEngine",
    "BreathingPhase",
    "BreathingSnapshot",
    "PHASE_SECONDS",
    "CYCLE_SECONDS",
]
