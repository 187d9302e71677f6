"""Error taxonomy for the aplusb pipeline.

Every OpenCL call site goes through :func:`report_error` (numeric status
codes) or :class:`safe_call` (PyOpenCL exceptions), so failures surface as a
single exception family tagged with the caller's file and line:

  * ``DriverUnavailable``  - PyOpenCL / ICD loader cannot be resolved
  * ``OpenCLCallError``    - any non-success status from an OpenCL call
  * ``BuildError``         - program build failed (log already surfaced)
  * ``EmptySourceError``   - kernel source missing or empty
  * ``ResultsDiffer``      - device output does not match the host sum

An empty device enumeration is not an error; see ``opencl.device``.
"""

from __future__ import annotations

import os
import sys
from typing import Any, Optional

CL_SUCCESS = 0
CL_DEVICE_NOT_FOUND = -1
CL_BUILD_PROGRAM_FAILURE = -11
CL_PLATFORM_NOT_FOUND_KHR = -1001


class AplusbError(RuntimeError):
    pass


class DriverUnavailable(AplusbError):
    pass


class OpenCLCallError(AplusbError):
    def __init__(self, code: Optional[int], call: str, filename: str, lineno: int, detail: str = ""):
        self.code = code
        self.call = call
        self.filename = filename
        self.lineno = lineno
        self.detail = detail
        shown = "?" if code is None else str(code)
        msg = f"OpenCL error code {shown} encountered at {filename}:{lineno} ({call})"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class BuildError(OpenCLCallError):
    def __init__(self, code, call, filename, lineno, build_log: str = "", detail: str = ""):
        super().__init__(code, call, filename, lineno, detail)
        self.build_log = build_log


class EmptySourceError(AplusbError):
    def __init__(self, path: Any):
        self.path = path
        super().__init__(
            f"Empty source file {path}! May be you forgot to configure working directory properly?"
        )


class ResultsDiffer(AplusbError):
    def __init__(self, index: int, expected: float, actual: float):
        self.index = index
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"CPU and GPU results differ! index={index} expected={expected!r} actual={actual!r}"
        )


def _call_site(depth: int) -> tuple[str, int]:
    frame = sys._getframe(depth + 1)
    return os.path.basename(frame.f_code.co_filename), frame.f_lineno


def error_code(exc: BaseException) -> Optional[int]:
    """Best-effort numeric status of a PyOpenCL exception."""
    try:
        code = exc.code  # type: ignore[attr-defined]
    except Exception:
        return None
    return int(code) if isinstance(code, int) else None


def report_error(code: int, call: str, *, _depth: int = 1) -> None:
    """Raise ``OpenCLCallError`` for any status other than ``CL_SUCCESS``."""
    if code == CL_SUCCESS:
        return
    filename, lineno = _call_site(_depth)
    raise OpenCLCallError(code, call, filename, lineno)


class safe_call:
    """Translate PyOpenCL errors raised inside the block into ``OpenCLCallError``.

    Usage::

        with safe_call(driver, "clCreateContext"):
            ctx = driver.cl.Context(devices=[dev])

    The call site recorded is the line of the ``with`` statement.
    """

    def __init__(self, driver, call: str):
        self.driver = driver
        self.call = call
        self.filename, self.lineno = _call_site(1)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc is None or not isinstance(exc, self.driver.error_types):
            return False
        raise OpenCLCallError(
            error_code(exc), self.call, self.filename, self.lineno, detail=str(exc)
        ) from exc


__all__ = [
    "AplusbError",
    "DriverUnavailable",
    "OpenCLCallError",
    "BuildError",
    "EmptySourceError",
    "ResultsDiffer",
    "report_error",
    "safe_call",
    "error_code",
    "CL_SUCCESS",
    "CL_DEVICE_NOT_FOUND",
    "CL_BUILD_PROGRAM_FAILURE",
    "CL_PLATFORM_NOT_FOUND_KHR",
]
