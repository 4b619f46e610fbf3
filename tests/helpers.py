"""Shared test helpers for ZenTime."""


class SignalCollector:
    """Utility to capture pyqtSignal emissions into a list."""

    def __init__(self):
        self.items: list = []

    def slot(self, *args):
        self.items.append(args if len(args) > 1 else args[0] if args else None)

    def __call__(self, *args):
        self.slot(*args)

    def __len__(self):
        return len(self.items)

    def __getitem__(self, idx):
        return self.items[idx]

    @property
    def last(self):
        return self.items[-1] if self.items else None

    def clear(self):
        self.items.clear()


class FakeClock:
    """Manual clock implementing the engines' clock interface.

    Time is kept in whole milliseconds so 0.1 s ticks add up exactly.
    ``advance`` fires due subscriptions in time order; ``skip`` moves
    time without firing anything (a suspended app).
    """

    def __init__(self):
        self._now_ms = 0
        self._subs: dict[int, list] = {}  # handle -> [period_ms, callback, due_ms]
        self._next_handle = 1
        self.subscribe_calls = 0

    def now(self) -> float:
        return self._now_ms / 1000

    def subscribe(self, period_seconds, callback):
        period_ms = round(period_seconds * 1000)
        handle = self._next_handle
        self._next_handle += 1
        self._subs[handle] = [period_ms, callback, self._now_ms + period_ms]
        self.subscribe_calls += 1
        return handle

    def cancel(self, handle):
        self._subs.pop(handle, None)

    @property
    def active_subscriptions(self) -> int:
        return len(self._subs)

    def advance(self, seconds: float) -> None:
        target = self._now_ms + round(seconds * 1000)
        while True:
            due = [(entry[2], h) for h, entry in self._subs.items() if entry[2] <= target]
            if not due:
                break
            when, handle = min(due)
            entry = self._subs[handle]
            self._now_ms = when
            entry[2] = when + entry[0]
            entry[1]()
        self._now_ms = target

    def skip(self, seconds: float) -> None:
        target = self._now_ms + round(seconds * 1000)
        for entry in self._subs.values():
            # Missed ticks are not replayed; the next one is a period away.
            entry[2] = max(entry[2], target + entry[0])
        self._now_ms = target


class RecordingFeedback:
    def __init__(self):
        self.calls: list = []

    def notify_impact(self, kind="medium"):
        self.calls.append(("impact", kind))

    def notify_success(self):
        self.calls.append(("success",))

    def play_ambient(self, sound_id):
        self.calls.append(("play_ambient", sound_id))

    def stop_ambient(self):
        self.calls.append(("stop_ambient",))

    def count(self, *call) -> int:
        return sum(1 for c in self.calls if c == call)


class FailingFeedback:
    """Every call blows up."""

    def notify_impact(self, kind="medium"):
        raise RuntimeError("haptics unavailable")

    def notify_success(self):
        raise RuntimeError("haptics unavailable")

    def play_ambient(self, sound_id):
        raise RuntimeError("audio device busy")

    def stop_ambient(self):
        raise RuntimeError("audio device busy")


class RecordingNotifier:
    def __init__(self):
        self.messages: list[tuple[str, str]] = []

    def deliver(self, title, body):
        self.messages.append((title, body))


class FailingNotifier:
    def deliver(self, title, body):
        raise OSError("notification center unavailable")
