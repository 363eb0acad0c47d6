"""Epoch-millisecond clock shared by every component that stamps records."""

import time
from typing import Callable

Clock = Callable[[], int]

MS_PER_HOUR = 60 * 60 * 1000
MS_PER_DAY = 24 * MS_PER_HOUR


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)
