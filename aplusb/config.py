"""Central environment configuration utilities for aplusb.

Provides typed accessors and a registry of known APLUSB_* variables, plus
helpers to introspect the current effective configuration. The CLI options
of ``aplusb run`` take precedence over anything resolved here.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional


@dataclass(frozen=True)
class EnvVarMeta:
    name: str
    description: str
    default: Any
    parser: Callable[[str], Any]
    choices: Optional[List[str]] = None
    category: str = "general"


def _parse_bool(val: str) -> bool:
    return str(val).lower() in ("1", "true", "yes", "on")


def _parse_int(val: str) -> int:
    try:
        return int(val)
    except Exception:
        return 0


def _identity(val: str) -> str:
    return val


_REGISTRY: Dict[str, EnvVarMeta] = {
    # Process behavior
    "APLUSB_LOAD_DOTENV": EnvVarMeta(
        name="APLUSB_LOAD_DOTENV",
        description="Load a .env file from the working directory on startup (set 0 to disable)",
        default="1",
        parser=_parse_bool,
        category="general",
    ),
    # Benchmark shape
    "APLUSB_N": EnvVarMeta(
        name="APLUSB_N",
        description="Number of float32 elements per input array",
        default="100000000",
        parser=_parse_int,
        category="benchmark",
    ),
    "APLUSB_TRIALS": EnvVarMeta(
        name="APLUSB_TRIALS",
        description="Timed laps per measurement loop (kernel and download)",
        default="20",
        parser=_parse_int,
        category="benchmark",
    ),
    "APLUSB_SEED": EnvVarMeta(
        name="APLUSB_SEED",
        description="Seed for input generation; 0 seeds with the element count",
        default="0",
        parser=_parse_int,
        category="benchmark",
    ),
    # OpenCL kernel
    "APLUSB_LOCAL_SIZE": EnvVarMeta(
        name="APLUSB_LOCAL_SIZE",
        description="One-dimensional work-group size used for every launch",
        default="128",
        parser=_parse_int,
        category="opencl",
    ),
    "APLUSB_KERNEL_PATH": EnvVarMeta(
        name="APLUSB_KERNEL_PATH",
        description="Kernel source file; relative paths resolve against the working directory",
        default="",
        parser=_identity,
        category="opencl",
    ),
    "APLUSB_KERNEL_NAME": EnvVarMeta(
        name="APLUSB_KERNEL_NAME",
        description="Kernel entry point to create from the built program",
        default="aplusb",
        parser=_identity,
        category="opencl",
    ),
    # Logging
    "APLUSB_LOG_LEVEL": EnvVarMeta(
        name="APLUSB_LOG_LEVEL",
        description="Override log verbosity (DEBUG,INFO,WARNING,ERROR)",
        default="INFO",
        parser=_identity,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        category="logging",
    ),
}


def get(name: str) -> Any:
    meta = _REGISTRY.get(name)
    if not meta:
        return os.environ.get(name)
    raw = os.environ.get(name, str(meta.default))
    try:
        return meta.parser(raw)
    except Exception:
        return meta.default


def describe() -> List[Dict[str, Any]]:
    info = []
    for meta in _REGISTRY.values():
        info.append(
            {
                "name": meta.name,
                "category": meta.category,
                "default": meta.default,
                "current": get(meta.name),
                "description": meta.description,
                "choices": meta.choices or [],
            }
        )
    return sorted(info, key=lambda x: (x["category"], x["name"]))


def load_dotenv(path: Optional[str] = None) -> int:
    """Load KEY=VALUE lines from a .env file without overriding the environment.

    Returns the number of variables that were set.
    """
    from pathlib import Path

    p = Path(path) if path else Path.cwd() / ".env"
    if not p.exists():
        return 0
    loaded = 0
    for line in p.read_text().splitlines():
        s = line.strip()
        if not s or s.startswith("#") or "=" not in s:
            continue
        k, v = s.split("=", 1)
        k = k.strip()
        v = v.strip().strip('"').strip("'")
        if k and v and k not in os.environ:
            os.environ[k] = v
            loaded += 1
    return loaded


__all__ = ["get", "describe", "load_dotenv", "EnvVarMeta"]
