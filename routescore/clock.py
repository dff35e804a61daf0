"""
Time sources

All timestamps in the database are naive UTC. Analytics windows and the
recomputation scheduler take a clock so tests can pin "now" and avoid real
sleeps.
"""

import threading
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current time as a naive UTC datetime (matches stored timestamps)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class SystemClock:
    """Wall-clock time source backed by threading.Event waits"""

    def now(self) -> datetime:
        return utcnow()

    def wait(self, stop_event: threading.Event, seconds: float) -> bool:
        """Block for up to `seconds`; return True if stop_event was set"""
        return stop_event.wait(seconds)
