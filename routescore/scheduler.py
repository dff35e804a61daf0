"""
Periodic score recomputation

ScoreRecomputeScheduler runs a job once at start() and then every
`interval_seconds` on a background thread. Passes never overlap: a tick that
arrives while the previous pass still holds the run lock is skipped.
"""

import logging
import threading
from datetime import datetime
from typing import Any, Callable, Optional

from routescore.clock import SystemClock
from routescore.exceptions import PassInProgressError
from routescore.scoring import recompute_all_scores

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 3600


class ScoreRecomputeScheduler:
    """
    Single-flight interval scheduler owned by the host process

    Args:
        job: Callable executed once per pass
        interval_seconds: Delay between the end of one pass and the next tick
        clock: Object with now() and wait(stop_event, seconds); defaults to SystemClock
        name: Thread name, also used in log messages
    """

    def __init__(
        self,
        job: Callable[[], Any],
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        clock=None,
        name: str = "score-recompute",
    ):
        self.job = job
        self.interval_seconds = interval_seconds
        self.clock = clock or SystemClock()
        self.name = name

        self._run_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

        self.last_started_at: Optional[datetime] = None
        self.last_finished_at: Optional[datetime] = None
        self.passes_completed = 0
        self.passes_failed = 0
        self.ticks_skipped = 0

    @property
    def is_running(self) -> bool:
        """True while a pass is in flight"""
        return self._run_lock.locked()

    @property
    def is_started(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_pass(self):
        """
        Run one pass now, reporting this caller's own outcome

        Returns:
            The job's return value

        Raises:
            PassInProgressError: another pass holds the run lock
            Exception: whatever the job raised
        """
        if not self._run_lock.acquire(blocking=False):
            self.ticks_skipped += 1
            raise PassInProgressError(f"{self.name}: calculation already in progress")

        try:
            self.last_started_at = self.clock.now()
            result = self.job()
            self.passes_completed += 1
            return result
        except Exception:
            self.passes_failed += 1
            raise
        finally:
            self.last_finished_at = self.clock.now()
            self._run_lock.release()

    def tick(self):
        """
        Run one pass now unless a pass is already in flight

        Returns:
            The job's return value, or None if the tick was skipped or the job raised
        """
        try:
            return self.run_pass()
        except PassInProgressError:
            logger.info("%s: calculation already in progress, skipping tick", self.name)
            return None
        except Exception:
            logger.exception("%s: pass failed", self.name)
            return None

    def _run_loop(self):
        while not self._stop_event.is_set():
            self.tick()
            if self.clock.wait(self._stop_event, self.interval_seconds):
                break
        logger.info("%s: scheduler loop exited", self.name)

    def start(self):
        """Start the background thread; the first pass runs immediately"""
        if self.is_started:
            logger.warning("%s: scheduler already started", self.name)
            return

        logger.info("%s: starting scheduler (interval %ss)", self.name, self.interval_seconds)
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run_loop, name=self.name, daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None):
        """Signal the background thread to exit and wait for it"""
        logger.info("%s: stopping scheduler", self.name)
        self._stop_event.set()
        self.join(timeout)

    def join(self, timeout: Optional[float] = None):
        """Wait for the background thread to finish without signalling it"""
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
            if not thread.is_alive():
                self._thread = None


def build_score_scheduler(
    session_factory: Callable,
    interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
    clock=None,
) -> ScoreRecomputeScheduler:
    """
    Scheduler whose job recomputes every active route's score

    Each pass opens its own session from session_factory and closes it afterwards.
    """

    def recompute_pass():
        db = session_factory()
        try:
            return recompute_all_scores(db)
        finally:
            db.close()

    return ScoreRecomputeScheduler(recompute_pass, interval_seconds=interval_seconds, clock=clock)
