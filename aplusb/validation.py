"""
aplusb/validation.py

Host-side check of the device result.

The reference is ``as_ + bs`` computed in float32 on the host. Single
precision addition of the same two operands is correctly rounded on any
conforming OpenCL device, so the comparison is exact: no tolerance is
applied and the first differing index aborts the run.
"""

from __future__ import annotations

import numpy as np

from .errors import ResultsDiffer


def host_sum(as_: np.ndarray, bs: np.ndarray) -> np.ndarray:
    return np.add(as_, bs, dtype=np.float32)


def first_mismatch(expected: np.ndarray, actual: np.ndarray) -> int:
    """Index of the first element where the arrays differ, or -1."""
    if expected.shape != actual.shape:
        raise ValueError(f"shape mismatch: {expected.shape} vs {actual.shape}")
    diff = np.flatnonzero(expected != actual)
    return int(diff[0]) if diff.size else -1


def validate_sum(as_: np.ndarray, bs: np.ndarray, cs: np.ndarray) -> None:
    expected = host_sum(as_, bs)
    idx = first_mismatch(expected, cs)
    if idx >= 0:
        raise ResultsDiffer(idx, float(expected[idx]), float(cs[idx]))


__all__ = ["host_sum", "first_mismatch", "validate_sum"]
