"""Device buffers for the two inputs and the output.

A and B are READ_ONLY and filled from host memory at creation time
(COPY_HOST_PTR); C is WRITE_ONLY and left uninitialized until the kernel
writes it. All three are exactly ``n * 4`` bytes.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np

from ..errors import safe_call
from ..utils.logging import get_logger as _get_logger
from .resources import ResourceArena

_log = _get_logger("aplusb.opencl.buffers")

FLOAT_SIZE = np.dtype(np.float32).itemsize


@dataclass
class DeviceBuffers:
    a: Any
    b: Any
    c: Any
    n: int

    @property
    def nbytes(self) -> int:
        return self.n * FLOAT_SIZE


def _check_host_array(name: str, arr: np.ndarray, n: int) -> None:
    if arr.dtype != np.float32:
        raise TypeError(f"{name} must be float32, got {arr.dtype}")
    if arr.ndim != 1 or arr.size != n:
        raise ValueError(f"{name} must be a 1-D array of length {n}, got shape {arr.shape}")
    if not arr.flags.c_contiguous:
        raise ValueError(f"{name} must be C-contiguous")


def allocate_buffers(driver, context, as_: np.ndarray, bs: np.ndarray, arena: ResourceArena) -> DeviceBuffers:
    n = int(as_.size)
    if n < 1:
        raise ValueError("input arrays must hold at least one element")
    _check_host_array("as", as_, n)
    _check_host_array("bs", bs, n)

    cl = driver.cl
    mf = driver.mem_flags
    nbytes = n * FLOAT_SIZE

    with safe_call(driver, "clCreateBuffer(as)"):
        a_buf = cl.Buffer(context, mf.READ_ONLY | mf.COPY_HOST_PTR, hostbuf=as_)
    arena.adopt("buffer as", a_buf)
    with safe_call(driver, "clCreateBuffer(bs)"):
        b_buf = cl.Buffer(context, mf.READ_ONLY | mf.COPY_HOST_PTR, hostbuf=bs)
    arena.adopt("buffer bs", b_buf)
    with safe_call(driver, "clCreateBuffer(cs)"):
        c_buf = cl.Buffer(context, mf.WRITE_ONLY, size=nbytes)
    arena.adopt("buffer cs", c_buf)

    _log.info("Allocated 3 device buffers of %.1f MiB each", nbytes / (1 << 20))
    return DeviceBuffers(a=a_buf, b=b_buf, c=c_buf, n=n)


def download(driver, queue, buffers: DeviceBuffers, out: np.ndarray) -> np.ndarray:
    """Blocking copy of the output buffer into ``out``."""
    if out.dtype != np.float32 or out.size != buffers.n:
        raise ValueError(f"output array must be float32 of length {buffers.n}")
    with safe_call(driver, "clEnqueueReadBuffer"):
        driver.cl.enqueue_copy(queue, out, buffers.c, is_blocking=True)
    return out


__all__ = ["DeviceBuffers", "FLOAT_SIZE", "allocate_buffers", "download"]
