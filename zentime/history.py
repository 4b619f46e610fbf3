"""Meditation session history.

Finished countdowns are appended to the ``meditation_sessions`` table.
:class:`SessionRecorder` does this automatically for a
:class:`~zentime.timer.CountdownEngine`::

    recorder = SessionRecorder(engine, parent=self)
    recorder.session_recorded.connect(self._refresh_history)
"""

from __future__ import annotations

import logging
from datetime import datetime

from PyQt6.QtCore import QObject, pyqtSignal
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from .database.db import get_session
from .database.models import MeditationSession
from .timer.countdown import CountdownEngine, CompletionEvent

logger = logging.getLogger(__name__)


def add_session(
    duration_minutes: int,
    ambient_sound: str = "none",
    when: datetime | None = None,
) -> MeditationSession:
    with get_session() as db:
        record = MeditationSession(
            date=when or datetime.now(),
            duration_minutes=duration_minutes,
            ambient_sound=ambient_sound,
        )
        db.add(record)
        db.flush()
        return record


def load_sessions() -> list[MeditationSession]:
    """All sessions, oldest first."""
    with get_session() as db:
        return (
            db.query(MeditationSession)
            .order_by(MeditationSession.date, MeditationSession.id)
            .all()
        )


def clear_history() -> int:
    """Delete every session; returns how many were removed."""
    with get_session() as db:
        return db.query(MeditationSession).delete()


def total_minutes() -> int:
    with get_session() as db:
        total = db.query(func.sum(MeditationSession.duration_minutes)).scalar()
        return int(total or 0)


class SessionRecorder(QObject):
    """Appends every completed countdown to the history table.

    Signals
    -------
    session_recorded(record: MeditationSession)
    """

    session_recorded = pyqtSignal(object)

    def __init__(self, engine: CountdownEngine, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._engine = engine
        engine.completed.connect(self._on_completed)

    def detach(self) -> None:
        self._engine.completed.disconnect(self._on_completed)

    def _on_completed(self, event: CompletionEvent) -> None:
        try:
            record = add_session(
                event.duration_minutes,
                event.ambient_sound_id,
                event.finished_at,
            )
        except SQLAlchemyError:
            logger.exception("could not record finished session")
            return
        self.session_recorded.emit(record)
