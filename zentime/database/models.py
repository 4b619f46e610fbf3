"""SQLAlchemy ORM models for ZenTime."""

import uuid
from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


class MeditationSession(Base):
    """One finished meditation countdown."""

    __tablename__ = "meditation_sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_uuid = Column(
        String(36), nullable=False, unique=True,
        default=lambda: str(uuid.uuid4()),
    )
    date = Column(DateTime, nullable=False, default=datetime.now)
    duration_minutes = Column(Integer, nullable=False, default=0)
    ambient_sound = Column(String(20), nullable=False, default="none")  # none | rain | brown_noise | om_tone

    def __repr__(self) -> str:
        return (
            f"<MeditationSession id={self.id} "
            f"minutes={self.duration_minutes} sound={self.ambient_sound}>"
        )
