"""
Top-level aplusb package exports (lightweight).

PyOpenCL probes the ICD loader on import, so the pipeline modules are
imported lazily on first attribute access rather than on package import.
"""
from __future__ import annotations

from typing import Any

__version__ = "0.3.0"

__all__ = [
  "run_benchmark",
  "RunConfig",
  "BenchmarkReport",
  "load_driver",
  "select_best_device",
]


def __getattr__(name: str) -> Any:  # lazy attribute loader
  if name in ("run_benchmark", "RunConfig", "BenchmarkReport"):
    from . import pipeline

    for attr in ("run_benchmark", "RunConfig", "BenchmarkReport"):
      globals()[attr] = getattr(pipeline, attr)
    return globals()[name]
  if name == "load_driver":
    from .opencl.driver import load_driver

    globals()["load_driver"] = load_driver
    return load_driver
  if name == "select_best_device":
    from .opencl.device import select_best_device

    globals()["select_best_device"] = select_best_device
    return select_best_device
  raise AttributeError(f"module 'aplusb' has no attribute {name!r}")
