"""Kernel source, program build and launch.

Order of operations is fixed:
  1. read the kernel source (empty or missing -> ``EmptySourceError``)
  2. create the program object
  3. build for the selected device only, surface the build log, then check
     the build status
  4. create the kernel and bind (a, b, c, n) positionally, once each
  5. launch over a 1-D range rounded up to a multiple of the work-group size
"""
from __future__ import annotations

import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional, Union

import numpy as np

from ..errors import CL_SUCCESS, BuildError, EmptySourceError, OpenCLCallError, report_error, safe_call
from ..utils.logging import get_logger as _get_logger
from .buffers import DeviceBuffers
from .resources import ResourceArena

_log = _get_logger("aplusb.opencl.program")

DEFAULT_LOCAL_SIZE = 128
DEFAULT_KERNEL_NAME = "aplusb"
UINT32_MAX = np.iinfo(np.uint32).max


def default_kernel_path() -> Path:
    return Path(__file__).resolve().parents[1] / "kernels" / "opencl" / "aplusb.cl"


def load_kernel_source(path: Union[str, Path]) -> str:
    """Read kernel text; a missing, unreadable or non-UTF-8 file reads as empty."""
    p = Path(path)
    try:
        return p.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        _log.debug("could not read kernel source %s: %s", p, e)
        return ""


def global_work_size(n: int, local_size: int = DEFAULT_LOCAL_SIZE) -> int:
    """Smallest multiple of ``local_size`` that is >= ``n``."""
    if n < 1:
        raise ValueError("n must be >= 1")
    if local_size < 1:
        raise ValueError("local_size must be >= 1")
    return (n + local_size - 1) // local_size * local_size


def create_program(driver, context, source: str, source_path: Any = "<string>"):
    if not source:
        raise EmptySourceError(source_path)
    with safe_call(driver, "clCreateProgramWithSource"):
        program = driver.cl.Program(context, source)
        # Materialize the program object now so creation errors surface here
        # and the build below runs uncached against this exact object.
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            program.get_info(driver.cl.program_info.NUM_DEVICES)
    return program


def build_log(driver, program, device) -> str:
    with safe_call(driver, "clGetProgramBuildInfo(CL_PROGRAM_BUILD_LOG)"):
        log = program.get_build_info(device, driver.cl.program_build_info.LOG)
    return (log or "").rstrip("\x00")


def build_program(driver, program, device, emit: Optional[Callable[[str], None]] = None) -> str:
    """Build for ``device`` only, print the log, then raise on a failed build.

    Returns the build log.
    """
    failure: Optional[OpenCLCallError] = None
    try:
        with safe_call(driver, "clBuildProgram"):
            program.build(options=[], devices=[device])
    except OpenCLCallError as e:
        failure = e

    log = build_log(driver, program, device)
    if len(log) > 1:
        if emit is not None:
            emit("Log:")
            emit(log)
        else:
            _log.info("Build log:\n%s", log)

    if failure is not None:
        raise BuildError(
            failure.code,
            failure.call,
            failure.filename,
            failure.lineno,
            build_log=log,
            detail="program build failed",
        ) from failure
    _log.debug("Program built for %s", getattr(device, "name", "?"))
    return log


@dataclass
class BoundKernel:
    driver: Any
    queue: Any
    kernel: Any
    n: int
    local_size: int = DEFAULT_LOCAL_SIZE

    @property
    def global_size(self) -> int:
        return global_work_size(self.n, self.local_size)

    def enqueue(self):
        with safe_call(self.driver, "clEnqueueNDRangeKernel"):
            return self.driver.cl.enqueue_nd_range_kernel(
                self.queue, self.kernel, (self.global_size,), (self.local_size,)
            )

    def launch(self) -> None:
        """Submit once and block until the device reports completion."""
        event = self.enqueue()
        with safe_call(self.driver, "clWaitForEvents"):
            event.wait()
        with safe_call(self.driver, "clGetEventInfo"):
            status = event.command_execution_status
        # CL_COMPLETE is 0; an abnormally terminated command reports its error code
        report_error(min(int(status), CL_SUCCESS), "clEnqueueNDRangeKernel")


def create_kernel(driver, program, name: str = DEFAULT_KERNEL_NAME):
    with safe_call(driver, f"clCreateKernel({name})"):
        return driver.cl.Kernel(program, name)


def bind_arguments(driver, kernel, buffers: DeviceBuffers) -> None:
    """Bind a, b, c and the element count, in that order, exactly once each."""
    if buffers.n > UINT32_MAX:
        raise ValueError(f"element count {buffers.n} does not fit the kernel's uint argument")
    args = (buffers.a, buffers.b, buffers.c, np.uint32(buffers.n))
    for index, value in enumerate(args):
        with safe_call(driver, f"clSetKernelArg({index})"):
            kernel.set_arg(index, value)


def prepare_kernel(
    driver,
    compute,
    buffers: DeviceBuffers,
    arena: ResourceArena,
    source_path: Union[str, Path],
    kernel_name: str = DEFAULT_KERNEL_NAME,
    local_size: int = DEFAULT_LOCAL_SIZE,
    emit: Optional[Callable[[str], None]] = None,
) -> BoundKernel:
    source = load_kernel_source(source_path)
    program = arena.adopt("program", create_program(driver, compute.context, source, source_path))
    build_program(driver, program, compute.device, emit=emit)
    kernel = arena.adopt("kernel", create_kernel(driver, program, kernel_name))
    bind_arguments(driver, kernel, buffers)
    bound = BoundKernel(driver=driver, queue=compute.queue, kernel=kernel, n=buffers.n, local_size=local_size)
    _log.info("Kernel %s bound: global=%d local=%d", kernel_name, bound.global_size, local_size)
    return bound


__all__ = [
    "DEFAULT_LOCAL_SIZE",
    "DEFAULT_KERNEL_NAME",
    "BoundKernel",
    "default_kernel_path",
    "load_kernel_source",
    "global_work_size",
    "create_program",
    "build_log",
    "build_program",
    "create_kernel",
    "bind_arguments",
    "prepare_kernel",
]
