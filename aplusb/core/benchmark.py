# aplusb/core/benchmark.py
"""
Benchmark loops for the offloaded addition.

Each loop runs a synchronous callable back-to-back and records one lap per
call; the lap boundary is the return of the callable, which for kernel
launches means the launch event has completed and for downloads means the
blocking read has finished. Figures are derived from the trimmed lap mean.
"""
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from .timer import LapTimer

DEFAULT_TRIALS = 20
FLOAT_BYTES = 4
GIB = 1 << 30


def _per_second(amount: float, avg_s: float) -> float:
    if avg_s <= 0:
        return float("inf")
    return amount / avg_s


def kernel_gflops(n: int, avg_s: float) -> float:
    # one addition per element
    return _per_second(n, avg_s) / 1e9


def kernel_bandwidth_gbs(n: int, avg_s: float) -> float:
    # two reads and one write per element
    return _per_second(3 * n * FLOAT_BYTES, avg_s) / GIB


def transfer_bandwidth_gbs(n: int, avg_s: float) -> float:
    return _per_second(n * FLOAT_BYTES, avg_s) / GIB


@dataclass
class KernelStats:
    avg_s: float
    std_s: float
    gflops: float
    bandwidth_gbs: float
    trials: int

    def as_dict(self) -> Dict[str, Any]:
        return {
            "avg_s": self.avg_s,
            "std_s": self.std_s,
            "gflops": self.gflops,
            "bandwidth_gbs": self.bandwidth_gbs,
            "trials": self.trials,
        }


@dataclass
class TransferStats:
    avg_s: float
    std_s: float
    bandwidth_gbs: float
    trials: int

    def as_dict(self) -> Dict[str, Any]:
        return {
            "avg_s": self.avg_s,
            "std_s": self.std_s,
            "bandwidth_gbs": self.bandwidth_gbs,
            "trials": self.trials,
        }


def time_laps(fn: Callable[[], Any], trials: int = DEFAULT_TRIALS, clock: Optional[Callable[[], float]] = None) -> LapTimer:
    """Call ``fn`` ``trials`` times, closing one lap after each call."""
    if trials < 1:
        raise ValueError("trials must be >= 1")
    timer = LapTimer(clock=clock)
    for _ in range(trials):
        fn()
        timer.next_lap()
    return timer


def benchmark_kernel(
    launch: Callable[[], Any],
    n: int,
    trials: int = DEFAULT_TRIALS,
    clock: Optional[Callable[[], float]] = None,
) -> KernelStats:
    timer = time_laps(launch, trials, clock)
    avg = timer.lap_avg()
    return KernelStats(
        avg_s=avg,
        std_s=timer.lap_std(),
        gflops=kernel_gflops(n, avg),
        bandwidth_gbs=kernel_bandwidth_gbs(n, avg),
        trials=trials,
    )


def benchmark_download(
    download: Callable[[], Any],
    n: int,
    trials: int = DEFAULT_TRIALS,
    clock: Optional[Callable[[], float]] = None,
) -> TransferStats:
    timer = time_laps(download, trials, clock)
    avg = timer.lap_avg()
    return TransferStats(
        avg_s=avg,
        std_s=timer.lap_std(),
        bandwidth_gbs=transfer_bandwidth_gbs(n, avg),
        trials=trials,
    )
