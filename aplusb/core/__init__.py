# aplusb/core/__init__.py
from .benchmark import KernelStats as KernelStats
from .benchmark import TransferStats as TransferStats
from .benchmark import benchmark_download as benchmark_download
from .benchmark import benchmark_kernel as benchmark_kernel
from .timer import LapTimer as LapTimer

__all__ = [
    "KernelStats",
    "TransferStats",
    "benchmark_download",
    "benchmark_kernel",
    "LapTimer",
]
