"""Timer scheduling used by the observation windows and the recognition controller.

Components receive a `Scheduler` instead of creating `threading.Timer`
objects themselves, which keeps the 3 s analysis window, the 30 s recording
timeout and the retry backoff replaceable by a manual clock in tests.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable

logger = logging.getLogger("fast_screen.utils.scheduler")


class TimerHandle(ABC):
    """Handle to a pending call; `cancel()` is safe to call repeatedly."""

    @abstractmethod
    def cancel(self) -> None:
        """Prevent the call from running if it has not started yet."""


class Scheduler(ABC):
    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None], name: str = "timer") -> TimerHandle:
        """Run `callback` once after `delay` seconds on a background thread."""


class _ThreadingTimerHandle(TimerHandle):

    def __init__(self, timer: threading.Timer):
        self._timer = timer

    def cancel(self) -> None:
        self._timer.cancel()


class ThreadingScheduler(Scheduler):
    """Default scheduler backed by daemon `threading.Timer` instances."""

    def call_later(self, delay: float, callback: Callable[[], None], name: str = "timer") -> TimerHandle:
        def run():
            try:
                callback()
            except Exception as e:
                logger.error("scheduled %s failed: %s", name, e, exc_info=True)

        timer = threading.Timer(max(0.0, float(delay)), run)
        timer.name = f"fast-screen-{name}"
        timer.daemon = True
        timer.start()
        logger.debug("Scheduled %s in %.2fs", name, delay)
        return _ThreadingTimerHandle(timer)


default_scheduler = ThreadingScheduler()
