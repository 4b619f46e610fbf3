"""Tests for the QTimer-backed tick source."""

import pytest
from PyQt6.QtCore import QObject
from PyQt6.QtTest import QTest

from zentime.timer.clock import QtClock
from zentime.timer.common import RunState
from zentime.timer.countdown import CountdownEngine
from zentime.timer.breathing import PhaseCycleEngine


@pytest.mark.usefixtures("qapp")
class TestQtClock:

    def test_subscribe_returns_distinct_handles(self):
        clock = QtClock()
        a = clock.subscribe(1.0, lambda: None)
        b = clock.subscribe(0.1, lambda: None)
        assert a != b
        assert clock.active_subscriptions == 2
        assert clock.is_active(a) and clock.is_active(b)

    def test_cancel_stops_timer(self):
        clock = QtClock()
        handle = clock.subscribe(1.0, lambda: None)
        clock.cancel(handle)
        assert clock.active_subscriptions == 0
        assert not clock.is_active(handle)

    def test_cancel_unknown_handle_is_harmless(self):
        clock = QtClock()
        clock.cancel(12345)
        assert clock.active_subscriptions == 0

    def test_rejects_non_positive_period(self):
        clock = QtClock()
        with pytest.raises(ValueError):
            clock.subscribe(0, lambda: None)

    def test_now_is_monotonic(self):
        clock = QtClock()
        first = clock.now()
        second = clock.now()
        assert second >= first

    def test_ticks_are_delivered(self):
        clock = QtClock()
        hits: list[int] = []
        handle = clock.subscribe(0.02, lambda: hits.append(1))
        QTest.qWait(200)
        clock.cancel(handle)
        assert len(hits) >= 1

    def test_no_ticks_after_cancel(self):
        clock = QtClock()
        hits: list[int] = []
        handle = clock.subscribe(0.02, lambda: hits.append(1))
        clock.cancel(handle)
        QTest.qWait(100)
        assert hits == []


@pytest.mark.usefixtures("qapp")
class TestEnginesOnQtClock:

    def test_countdown_owns_one_timer(self):
        clock = QtClock()
        engine = CountdownEngine(clock, total_seconds=60)
        engine.start()
        engine.start()
        assert clock.active_subscriptions == 1
        engine.pause()
        assert clock.active_subscriptions == 0
        engine.resume()
        assert clock.active_subscriptions == 1
        engine.dispose()
        assert clock.active_subscriptions == 0

    def test_subscription_released_when_parent_destroyed(self):
        clock = QtClock()
        owner = QObject()
        engine = CountdownEngine(clock, parent=owner, total_seconds=60)
        engine.start()
        assert clock.active_subscriptions == 1
        del engine
        owner.deleteLater()
        QTest.qWait(100)
        assert clock.active_subscriptions == 0

    def test_breathing_released_when_parent_destroyed(self):
        clock = QtClock()
        owner = QObject()
        PhaseCycleEngine(clock, parent=owner).start()
        assert clock.active_subscriptions == 1
        owner.deleteLater()
        QTest.qWait(100)
        assert clock.active_subscriptions == 0

    def test_clock_and_engine_destroyed_together(self):
        owner = QObject()
        clock = QtClock(parent=owner)
        CountdownEngine(clock, parent=owner, total_seconds=60).start()
        owner.deleteLater()
        QTest.qWait(100)
        assert clock.active_subscriptions == 0

    def test_breathing_ticks_in_real_time(self):
        clock = QtClock()
        engine = PhaseCycleEngine(clock)
        engine.start()
        QTest.qWait(350)
        engine.pause()
        assert engine.state == RunState.PAUSED
        assert engine.phase_remaining < 5.0
        assert engine.phase_progress > 0.0
        assert clock.active_subscriptions == 0
