"""Device discovery and selection.

Selection policy:
  * the first GPU-class device across all platforms wins immediately;
  * otherwise the last CPU-class device seen during the full enumeration;
  * otherwise ``None`` (no device), which callers treat as a graceful exit.

An empty enumeration (no ICDs installed, or platforms without devices) is not
an error. Any other failure while enumerating is fatal.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Tuple

from ..errors import (
    CL_DEVICE_NOT_FOUND,
    CL_PLATFORM_NOT_FOUND_KHR,
    OpenCLCallError,
    safe_call,
)
from ..utils.logging import get_logger as _get_logger

_log = _get_logger("aplusb.opencl.device")


@dataclass(frozen=True)
class DeviceInfo:
    platform_index: int
    device_index: int
    platform_name: str
    name: str
    kind: str
    selected: bool = False

    def as_dict(self) -> Dict[str, Any]:
        return {
            "platform_index": self.platform_index,
            "device_index": self.device_index,
            "platform": self.platform_name,
            "name": self.name,
            "kind": self.kind,
            "selected": self.selected,
        }


def _get_platforms(driver) -> List[Any]:
    try:
        with safe_call(driver, "clGetPlatformIDs"):
            return list(driver.cl.get_platforms())
    except OpenCLCallError as e:
        if e.code == CL_PLATFORM_NOT_FOUND_KHR:
            return []
        raise


def _get_devices(driver, platform) -> List[Any]:
    try:
        with safe_call(driver, "clGetDeviceIDs"):
            return list(platform.get_devices(device_type=driver.device_type.ALL))
    except OpenCLCallError as e:
        if e.code == CL_DEVICE_NOT_FOUND:
            return []
        raise


def enumerate_devices(driver) -> Iterator[Tuple[Any, Any]]:
    """Yield ``(platform, device)`` pairs in platform order, then device order."""
    for platform in _get_platforms(driver):
        for device in _get_devices(driver, platform):
            yield platform, device


def device_kind(driver, device) -> str:
    with safe_call(driver, "clGetDeviceInfo(CL_DEVICE_TYPE)"):
        dtype = int(device.type)
    if dtype & driver.device_type.GPU:
        return "gpu"
    if dtype & driver.device_type.CPU:
        return "cpu"
    return "other"


def select_best_device(driver) -> Optional[Any]:
    """Return the preferred device or ``None`` when nothing usable exists."""
    cpu_device = None
    seen = 0
    for _platform, device in enumerate_devices(driver):
        seen += 1
        kind = device_kind(driver, device)
        if kind == "gpu":
            _log.info("Selected GPU device: %s", getattr(device, "name", "?"))
            return device
        if kind == "cpu":
            cpu_device = device
    if cpu_device is not None:
        _log.info("No GPU found among %d device(s); falling back to CPU: %s",
                  seen, getattr(cpu_device, "name", "?"))
    else:
        _log.debug("Enumeration found %d device(s), none usable", seen)
    return cpu_device


def list_devices(driver) -> List[DeviceInfo]:
    """Flatten the enumeration for display, marking the device that would be selected."""
    best = select_best_device(driver)
    rows: List[DeviceInfo] = []
    for pi, platform in enumerate(_get_platforms(driver)):
        for di, device in enumerate(_get_devices(driver, platform)):
            rows.append(
                DeviceInfo(
                    platform_index=pi,
                    device_index=di,
                    platform_name=str(getattr(platform, "name", "?")).strip(),
                    name=str(getattr(device, "name", "?")).strip(),
                    kind=device_kind(driver, device),
                    selected=best is not None and device == best,
                )
            )
    return rows


__all__ = ["DeviceInfo", "enumerate_devices", "device_kind", "select_best_device", "list_devices"]
