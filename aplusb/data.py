"""Reproducible float32 inputs for the benchmark."""

from __future__ import annotations

from typing import Optional, Tuple

import numpy as np


def generate_inputs(n: int, seed: Optional[int] = None) -> Tuple[np.ndarray, np.ndarray]:
    """Two independent float32 arrays in [0, 1).

    The generator is seeded with ``n`` unless ``seed`` is given, so the same
    size always produces the same data.
    """
    if n < 1:
        raise ValueError("n must be >= 1")
    rng = np.random.default_rng(n if not seed else seed)
    as_ = rng.random(n, dtype=np.float32)
    bs = rng.random(n, dtype=np.float32)
    return as_, bs
