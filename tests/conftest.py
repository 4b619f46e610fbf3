"""Shared pytest fixtures for ZenTime tests."""

import os
import sys

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PyQt6.QtWidgets import QApplication

from zentime.database.db import configure_engine, init_db
from zentime.timer.countdown import CountdownEngine
from zentime.timer.breathing import PhaseCycleEngine

from helpers import FakeClock, RecordingFeedback, RecordingNotifier


@pytest.fixture(scope="session")
def qapp():
    """A single QApplication instance shared across the entire test run."""
    app = QApplication.instance() or QApplication(sys.argv)
    yield app


@pytest.fixture(autouse=True)
def test_db():
    """Point every test at a fresh in-memory SQLite database."""
    configure_engine("sqlite:///:memory:")
    init_db()
    yield


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def feedback():
    return RecordingFeedback()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def countdown(qapp, clock, feedback, notifier):
    """Fresh 10-minute CountdownEngine on a manual clock."""
    return CountdownEngine(clock, feedback, notifier, total_seconds=600)


@pytest.fixture
def breathing(qapp, clock, feedback):
    """Fresh PhaseCycleEngine on a manual clock."""
    return PhaseCycleEngine(clock, feedback)
