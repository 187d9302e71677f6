import io

import pytest
from fake_cl import make_fake_cl
from rich.console import Console

from aplusb.opencl.driver import OpenCLDriver


@pytest.fixture
def fake_driver():
    """Factory: ``fake_driver(platforms=..., fail=...)`` -> (OpenCLDriver, fake module)."""

    def _make(**kwargs):
        fake = make_fake_cl(**kwargs)
        return OpenCLDriver(fake), fake

    return _make


@pytest.fixture
def console():
    return Console(file=io.StringIO(), width=200, color_system=None)


@pytest.fixture
def kernel_file(tmp_path):
    """Write a kernel source to a temp file and return its path."""

    def _write(body: str = "c[i] = a[i] + b[i];", name: str = "aplusb", extra: str = ""):
        src = (
            f"{extra}\n"
            f"__kernel void {name}(__global const float* a, __global const float* b,\n"
            "                     __global float* c, unsigned int n)\n"
            "{\n"
            "    const unsigned int i = get_global_id(0);\n"
            "    if (i >= n) return;\n"
            f"    {body}\n"
            "}\n"
        )
        p = tmp_path / f"{name}.cl"
        p.write_text(src)
        return p

    return _write
