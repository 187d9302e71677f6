"""
End-to-end run: select a device, upload inputs, build and bind the kernel,
time 20 launches and 20 result downloads, validate, release everything.

Stages run strictly in order and each consumes only the previous stage's
outputs. Every OpenCL object is adopted by a ``ResourceArena`` as soon as it
exists, so the reverse-order release happens on success and on every
failure path alike.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import numpy as np
from rich.console import Console

from . import config as _cfg
from .core.benchmark import (
    DEFAULT_TRIALS,
    KernelStats,
    TransferStats,
    benchmark_download,
    benchmark_kernel,
)
from .data import generate_inputs
from .opencl.buffers import allocate_buffers, download
from .opencl.context import create_compute_context
from .opencl.device import select_best_device
from .opencl.driver import OpenCLDriver, load_driver
from .opencl.program import (
    DEFAULT_KERNEL_NAME,
    DEFAULT_LOCAL_SIZE,
    default_kernel_path,
    prepare_kernel,
)
from .opencl.resources import ResourceArena
from .utils.logging import get_logger as _get_logger
from .validation import validate_sum

_log = _get_logger("aplusb.pipeline")

DEFAULT_N = 100 * 1000 * 1000


@dataclass
class RunConfig:
    n: int = DEFAULT_N
    trials: int = DEFAULT_TRIALS
    local_size: int = DEFAULT_LOCAL_SIZE
    seed: int = 0
    kernel_path: Path = field(default_factory=default_kernel_path)
    kernel_name: str = DEFAULT_KERNEL_NAME

    def __post_init__(self):
        self.kernel_path = Path(self.kernel_path)
        if self.n < 1:
            raise ValueError("n must be >= 1")
        if self.trials < 1:
            raise ValueError("trials must be >= 1")
        if self.local_size < 1:
            raise ValueError("local_size must be >= 1")

    @classmethod
    def from_env(cls) -> "RunConfig":
        kernel_path = _cfg.get("APLUSB_KERNEL_PATH") or default_kernel_path()
        return cls(
            n=int(_cfg.get("APLUSB_N") or DEFAULT_N),
            trials=int(_cfg.get("APLUSB_TRIALS") or DEFAULT_TRIALS),
            local_size=int(_cfg.get("APLUSB_LOCAL_SIZE") or DEFAULT_LOCAL_SIZE),
            seed=int(_cfg.get("APLUSB_SEED") or 0),
            kernel_path=Path(kernel_path),
            kernel_name=_cfg.get("APLUSB_KERNEL_NAME") or DEFAULT_KERNEL_NAME,
        )


@dataclass
class BenchmarkReport:
    device: str
    n: int
    kernel: KernelStats
    transfer: TransferStats

    def as_dict(self) -> Dict[str, Any]:
        return {
            "device": self.device,
            "n": self.n,
            "kernel": self.kernel.as_dict(),
            "transfer": self.transfer.as_dict(),
        }


def _printer(console: Console):
    def emit(line: str) -> None:
        console.print(line, markup=False, highlight=False, soft_wrap=True)

    return emit


def run_benchmark(
    cfg: Optional[RunConfig] = None,
    driver: Optional[OpenCLDriver] = None,
    console: Optional[Console] = None,
) -> Optional[BenchmarkReport]:
    """Run the whole pipeline once.

    Returns ``None`` when no OpenCL device exists; raises an ``AplusbError``
    subclass on every fatal condition.
    """
    cfg = cfg or RunConfig.from_env()
    emit = _printer(console or Console())
    driver = driver or load_driver()

    device = select_best_device(driver)
    if device is None:
        emit("No devices found")
        return None

    with ResourceArena() as arena:
        compute = create_compute_context(driver, device, arena)

        as_, bs = generate_inputs(cfg.n, cfg.seed)
        cs = np.zeros(cfg.n, dtype=np.float32)
        emit(f"Data generated for n={cfg.n}!")

        buffers = allocate_buffers(driver, compute.context, as_, bs, arena)
        kernel = prepare_kernel(
            driver,
            compute,
            buffers,
            arena,
            source_path=cfg.kernel_path,
            kernel_name=cfg.kernel_name,
            local_size=cfg.local_size,
            emit=emit,
        )

        kstats = benchmark_kernel(kernel.launch, cfg.n, cfg.trials)
        emit(f"Kernel average time: {kstats.avg_s}+-{kstats.std_s} s")
        emit(f"GFlops: {kstats.gflops}")
        emit(f"VRAM bandwidth: {kstats.bandwidth_gbs} GB/s")

        tstats = benchmark_download(
            lambda: download(driver, compute.queue, buffers, cs), cfg.n, cfg.trials
        )
        emit(f"Result data transfer time: {tstats.avg_s}+-{tstats.std_s} s")
        emit(f"VRAM -> RAM bandwidth: {tstats.bandwidth_gbs} GB/s")

        validate_sum(as_, bs, cs)
        _log.info("Validation passed for %d elements", cfg.n)

    return BenchmarkReport(
        device=str(getattr(device, "name", "?")).strip(),
        n=cfg.n,
        kernel=kstats,
        transfer=tstats,
    )


__all__ = ["RunConfig", "BenchmarkReport", "run_benchmark", "DEFAULT_N"]
