"""Application settings with JSON persistence.

Settings are stored at:
    ~/Library/Application Support/ZenTime/settings.json

Usage::

    settings = load_settings()
    settings.duration_minutes = 20
    save_settings(settings)
    apply_settings(settings, countdown=engine, sounds=mgr, notifier=tray)
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, asdict, fields
from datetime import datetime, time
from pathlib import Path

from .audio.sounds import AmbientSound

logger = logging.getLogger(__name__)

APP_SUPPORT_DIR = Path.home() / "Library" / "Application Support" / "ZenTime"
SETTINGS_PATH = APP_SUPPORT_DIR / "settings.json"

MAX_DURATION_MINUTES = 180


@dataclass
class Settings:
    """All user-configurable preferences."""

    # ── timer ─────────────────────────────────────────────────────────
    duration_minutes: int = 10
    ambient_sound: str = "none"            # none | rain | brown_noise | om_tone

    # ── audio ─────────────────────────────────────────────────────────
    sound_enabled: bool = True
    sound_volume: int = 70                 # 0-100, bells
    ambient_volume: int = 30               # 0-100, background loop

    # ── notifications ─────────────────────────────────────────────────
    notifications_enabled: bool = True
    reminder_enabled: bool = False
    reminder_time: str = "08:00"           # HH:MM, local time

    @property
    def duration_seconds(self) -> int:
        return self.duration_minutes * 60


def parse_reminder_time(text: str) -> time:
    """``"HH:MM"`` → :class:`datetime.time`.  Raises ValueError otherwise."""
    return datetime.strptime(text, "%H:%M").time()


def load_settings() -> Settings:
    """Load settings from disk, falling back to defaults."""
    if not SETTINGS_PATH.exists():
        return Settings()
    try:
        data = json.loads(SETTINGS_PATH.read_text(encoding="utf-8"))
        # Only use keys that exist in the dataclass
        valid_keys = {f.name for f in fields(Settings)}
        filtered = {k: v for k, v in data.items() if k in valid_keys}
        settings = Settings(**filtered)
    except (OSError, ValueError, TypeError, AttributeError):
        logger.warning("unreadable settings at %s; using defaults", SETTINGS_PATH)
        return Settings()
    _sanitize(settings)
    return settings


def save_settings(settings: Settings) -> None:
    """Write settings to disk as JSON."""
    APP_SUPPORT_DIR.mkdir(parents=True, exist_ok=True)
    SETTINGS_PATH.write_text(
        json.dumps(asdict(settings), indent=2) + "\n",
        encoding="utf-8",
    )


def apply_settings(
    settings: Settings,
    *,
    countdown=None,
    sounds=None,
    notifier=None,
    reminder=None,
) -> None:
    """Push *settings* into whichever live objects are given.

    ``countdown`` is a :class:`~zentime.timer.CountdownEngine`, ``sounds``
    a :class:`~zentime.audio.SoundManager`, ``notifier`` a
    :class:`~zentime.notifications.TrayNotifier` and ``reminder`` a
    :class:`~zentime.notifications.DailyReminder`.
    """
    if countdown is not None:
        countdown.configure(settings.duration_seconds)
        countdown.set_ambient_sound(settings.ambient_sound, preview=False)
    if sounds is not None:
        sounds.set_volume(settings.sound_volume)
        sounds.set_ambient_volume(settings.ambient_volume)
        sounds.set_enabled(settings.sound_enabled)
    if notifier is not None:
        notifier.set_enabled(settings.notifications_enabled)
    if reminder is not None:
        if settings.reminder_enabled:
            reminder.schedule(parse_reminder_time(settings.reminder_time))
        else:
            reminder.cancel()


# ── validation ────────────────────────────────────────────────────────────


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _sanitize(settings: Settings) -> None:
    """Replace out-of-range values loaded from disk, in place."""
    defaults = Settings()

    minutes = settings.duration_minutes
    if not _is_int(minutes) or minutes < 1:
        logger.warning("invalid duration_minutes %r; using default", minutes)
        settings.duration_minutes = defaults.duration_minutes
    elif minutes > MAX_DURATION_MINUTES:
        settings.duration_minutes = MAX_DURATION_MINUTES

    for name in ("sound_volume", "ambient_volume"):
        level = getattr(settings, name)
        if _is_int(level):
            setattr(settings, name, max(0, min(level, 100)))
        else:
            logger.warning("invalid %s %r; using default", name, level)
            setattr(settings, name, getattr(defaults, name))

    sound = settings.ambient_sound
    if not isinstance(sound, str) or sound not in {s.value for s in AmbientSound}:
        logger.warning("unknown ambient sound %r; using none", sound)
        settings.ambient_sound = defaults.ambient_sound

    try:
        parse_reminder_time(settings.reminder_time)
    except (TypeError, ValueError):
        logger.warning("invalid reminder_time %r; using default", settings.reminder_time)
        settings.reminder_time = defaults.reminder_time

    for name in ("sound_enabled", "notifications_enabled", "reminder_enabled"):
        if not isinstance(getattr(settings, name), bool):
            setattr(settings, name, getattr(defaults, name))
