"""One-time OpenCL driver initialization.

PyOpenCL resolves the ICD loader and entry points on import. ``load_driver``
performs that resolution once and hands back an :class:`OpenCLDriver` handle
that every pipeline stage receives explicitly, rather than importing
``pyopencl`` at module scope in each stage.
"""
from __future__ import annotations

import threading
from typing import Any, Optional, Tuple

try:
    import pyopencl as cl  # type: ignore
except Exception:  # pragma: no cover - platform w/o OpenCL
    cl = None  # type: ignore

from ..errors import DriverUnavailable
from ..utils.logging import get_logger as _get_logger

_log = _get_logger("aplusb.opencl")

_DRIVER_LOCK = threading.Lock()
_DRIVER: Optional["OpenCLDriver"] = None


class OpenCLDriver:
    """Capability handle over a PyOpenCL-compatible module.

    Stages reach OpenCL only through ``driver.cl``; tests substitute an
    in-memory module exposing the same names.
    """

    def __init__(self, cl_module: Any):
        self.cl = cl_module
        self.error_types: Tuple[type, ...] = (cl_module.Error,)

    @property
    def mem_flags(self):
        return self.cl.mem_flags

    @property
    def device_type(self):
        return self.cl.device_type

    @property
    def version(self) -> str:
        return str(getattr(self.cl, "VERSION_TEXT", "unknown"))

    def __repr__(self) -> str:
        return f"<OpenCLDriver pyopencl={self.version}>"


def load_driver() -> OpenCLDriver:
    """Return the process-wide driver handle, resolving it on first use."""
    if cl is None:
        raise DriverUnavailable(
            "Can't init OpenCL driver! Install pyopencl and a vendor OpenCL runtime (ICD)."
        )
    global _DRIVER
    if _DRIVER is not None:
        return _DRIVER
    with _DRIVER_LOCK:
        if _DRIVER is None:
            _DRIVER = OpenCLDriver(cl)
            _log.debug("OpenCL driver resolved: %r", _DRIVER)
        return _DRIVER


def is_opencl_available() -> bool:
    """True if PyOpenCL imports and at least one device is visible."""
    if cl is None:
        return False
    try:
        for p in cl.get_platforms():
            try:
                if p.get_devices():
                    return True
            except Exception:
                continue
        return False
    except Exception:
        return False


__all__ = ["OpenCLDriver", "load_driver", "is_opencl_available"]
