"""
Shared test helpers.
"""
import datetime as dt
import threading

UTC = dt.timezone.utc


def at(hour: int, minute: int = 0, day: int = 1, month: int = 1, year: int = 2024,
       second: int = 0) -> dt.datetime:
    """Aware UTC datetime, defaulting to 2024-01-01"""
    return dt.datetime(year, month, day, hour, minute, second, tzinfo=UTC)


class TickingClock:
    """Clock that advances by a fixed step on every call"""

    def __init__(self, start: dt.datetime, step: dt.timedelta = dt.timedelta(minutes=1)):
        self.now = start
        self.step = step
        self._lock = threading.Lock()

    def __call__(self) -> dt.datetime:
        with self._lock:
            self.now += self.step
            return self.now


def assert_alternating(events):
    """Assert the ledger alternation invariant on a sorted event list"""
    for index, event in enumerate(events):
        if index == 0:
            assert event.clock_in, "ledger starts with a clock out"
        else:
            assert event.clock_in != events[index - 1].clock_in, (
                f"events {index - 1} and {index} have the same type"
            )
