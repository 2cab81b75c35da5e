"""A pausable stopwatch reporting time elapsed since the last report."""

from __future__ import annotations

import enum
import time
from datetime import timedelta
from typing import Callable


class ElapsingStatus(enum.Enum):
    RUNNING = 1
    PAUSE = 2


class ElapsingStateError(RuntimeError):
    """Raised when pausing a paused stopwatch or resuming a running one."""


class Elapsing:
    """Measures running time, excluding periods spent paused."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._checkpoint = clock()
        self._carry_on = 0.0
        self.status = ElapsingStatus.RUNNING

    def pause(self) -> None:
        if self.status is ElapsingStatus.PAUSE:
            raise ElapsingStateError("elapsing is pause already")
        self._carry_on = self.report().total_seconds()
        self.status = ElapsingStatus.PAUSE

    def resume(self) -> None:
        if self.status is not ElapsingStatus.PAUSE:
            raise ElapsingStateError("elapsing is not pause")
        self._checkpoint = self._clock()
        self.status = ElapsingStatus.RUNNING

    def reset(self) -> None:
        self.status = ElapsingStatus.RUNNING
        self._carry_on = 0.0
        self._checkpoint = self._clock()

    def report(self) -> timedelta:
        """Return time run since the previous report and start a new interval."""
        if self.status is ElapsingStatus.PAUSE:
            return timedelta(0)
        now = self._clock()
        total = now - self._checkpoint + self._carry_on
        self._carry_on = 0.0
        self._checkpoint = now
        return timedelta(seconds=total)