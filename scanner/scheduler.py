"""
Cooperative scheduling of the analysis and redraw tasks.

Everything runs on one thread: a slow fixed-period analysis task and a
faster redraw task that only re-renders the latest overlay.
"""

import logging
import time
from typing import Callable

import schedule

logger = logging.getLogger(__name__)

ANALYSIS_TAG = "analysis"
REDRAW_TAG = "redraw"


class CycleScheduler:
    """
    Thin wrapper over a private schedule.Scheduler.
    """

    def __init__(self, sleep: Callable[[float], None] = time.sleep, max_sleep: float = 0.01):
        self._scheduler = schedule.Scheduler()
        self._sleep = sleep
        self.max_sleep = max_sleep

    def every(self, period_seconds: float, task: Callable, tag: str) -> schedule.Job:
        """
        Run task every period_seconds. Jobs are tagged so they can be
        cancelled as a group.
        """
        if period_seconds <= 0:
            raise ValueError("period_seconds must be positive")
        logger.debug("Scheduling %s every %.3fs", tag, period_seconds)
        return self._scheduler.every(period_seconds).seconds.do(task).tag(tag)

    def cancel(self, tag: str):
        self._scheduler.clear(tag)

    def cancel_all(self):
        self._scheduler.clear()

    def has_jobs(self, tag: str = None) -> bool:
        return len(self._scheduler.get_jobs(tag)) > 0

    def run_pending(self):
        self._scheduler.run_pending()

    def run_all(self):
        """Run every job once, regardless of its due time."""
        self._scheduler.run_all()

    def run_forever(self, keep_running: Callable[[], bool]):
        """
        Run due jobs until keep_running() is False or no job is left.
        """
        while keep_running() and self._scheduler.jobs:
            self._scheduler.run_pending()
            idle = self._scheduler.idle_seconds
            if idle is None:
                break
            if idle > 0:
                self._sleep(min(idle, self.max_sleep))
