# aplusb/core/timer.py
"""
Lap stopwatch. Starts on construction; each ``next_lap()`` closes the
current lap and opens the next one. Aggregates are computed over the
20th-80th percentile band of the sorted laps so single slow or fast outliers
do not move the reported figures.
"""
from time import perf_counter
from typing import Callable, List, Optional

import numpy as np

LOWER_PERCENT = 20
UPPER_PERCENT = 80


def trimmed(samples: List[float], lower: int = LOWER_PERCENT, upper: int = UPPER_PERCENT) -> List[float]:
    """Sorted samples with the lowest ``lower`` and highest ``100 - upper``
    percent of ranks dropped.

    Counts are rounded down per side, so the default band drops the same
    number of samples from each end. Falls back to all samples when nothing
    would be left.
    """
    ordered = sorted(samples)
    n = len(ordered)
    lo = n * lower // 100
    hi = n - n * (100 - upper) // 100
    if hi <= lo:
        return ordered
    return ordered[lo:hi]


class LapTimer:
    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self._clock = clock or perf_counter
        self._laps: List[float] = []
        self._lap_start = self._clock()

    def restart(self) -> None:
        self._laps.clear()
        self._lap_start = self._clock()

    def next_lap(self) -> float:
        now = self._clock()
        lap = now - self._lap_start
        self._laps.append(lap)
        self._lap_start = now
        return lap

    @property
    def laps(self) -> List[float]:
        return list(self._laps)

    def laps_filtered(self) -> List[float]:
        return trimmed(self._laps)

    def lap_avg(self) -> float:
        laps = self.laps_filtered()
        if not laps:
            raise ValueError("no laps recorded")
        return float(np.mean(laps))

    def lap_std(self) -> float:
        laps = self.laps_filtered()
        if not laps:
            raise ValueError("no laps recorded")
        return float(np.std(laps))
