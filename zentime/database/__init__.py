"""Database package."""

from .db import get_session, init_db, configure_engine
from .models import MeditationSession

__all__ = ["get_session", "init_db", "configure_engine", "MeditationSession"]
