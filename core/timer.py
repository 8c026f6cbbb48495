"""Elapsed-time computation and the scheduler contract.

Elapsed time is always derived from the wall-clock delta since the session
started, never accumulated per tick, so it self-corrects after the process
was suspended (system sleep, a stopped terminal, a debugger pause).
"""

from __future__ import annotations

import logging
import math
from typing import Callable, Protocol

logger = logging.getLogger(__name__)

SUSPEND_THRESHOLD_SECONDS = 5


class IntervalHandle(Protocol):
    def stop(self) -> None: ...


class Scheduler(Protocol):
    """Anything that can run a callback repeatedly. Textual's App fits."""

    def set_interval(self, interval: float, callback: Callable[[], object]) -> IntervalHandle: ...


def compute_elapsed(start_time: float, now: float) -> int:
    """Whole seconds between start_time and now, never negative."""
    return max(0, math.floor(now - start_time))


def advance_elapsed(previous: int, start_time: float, now: float) -> int:
    """Next elapsed value for a tick.

    A forward gap of more than SUSPEND_THRESHOLD_SECONDS is logged as a
    suspension and the corrected value adopted. A backwards clock change
    keeps the previous value so elapsed time never decreases.
    """
    actual = compute_elapsed(start_time, now)
    drift = actual - previous
    if drift > SUSPEND_THRESHOLD_SECONDS:
        logger.info("Detected time jump of %d seconds (system sleep/wake)", drift)
    elif drift < 0:
        logger.warning("Wall clock moved back %d seconds; keeping elapsed=%d", -drift, previous)
        return previous
    return actual
