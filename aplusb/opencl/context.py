"""OpenCL context & command queue creation for the selected device.

Exactly one context, scoped to one device, and one in-order queue on it. The
queue is created without OUT_OF_ORDER_EXEC_MODE_ENABLE so launches and
transfers execute in submission order.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from ..errors import safe_call
from ..utils.logging import get_logger as _get_logger
from .resources import ResourceArena

_log = _get_logger("aplusb.opencl.context")


@dataclass
class ComputeContext:
    device: Any
    platform: Any
    context: Any
    queue: Any

    def metadata(self) -> Dict[str, Any]:
        dev = self.device
        return {
            "name": getattr(dev, "name", None),
            "vendor": getattr(dev, "vendor", None),
            "version": getattr(dev, "version", None),
            "platform": getattr(self.platform, "name", None),
            "max_work_group_size": getattr(dev, "max_work_group_size", None),
            "global_mem_size": getattr(dev, "global_mem_size", None),
        }


def platform_for_device(driver, device) -> Any:
    with safe_call(driver, "clGetDeviceInfo(CL_DEVICE_PLATFORM)"):
        return device.platform


def create_compute_context(driver, device, arena: ResourceArena) -> ComputeContext:
    cl = driver.cl
    platform = platform_for_device(driver, device)
    with safe_call(driver, "clCreateContext"):
        ctx = cl.Context(
            devices=[device],
            properties=[(cl.context_properties.PLATFORM, platform)],
        )
    arena.adopt("context", ctx)
    with safe_call(driver, "clCreateCommandQueue"):
        queue = cl.CommandQueue(ctx, device=device)
    arena.adopt("command queue", queue)
    _log.info("Context and in-order queue created on %s", getattr(device, "name", "?"))
    return ComputeContext(device=device, platform=platform, context=ctx, queue=queue)


__all__ = ["ComputeContext", "platform_for_device", "create_compute_context"]
