import numpy as np
import pytest

from aplusb.errors import BuildError, EmptySourceError, OpenCLCallError
from aplusb.opencl.buffers import allocate_buffers
from aplusb.opencl.context import create_compute_context
from aplusb.opencl.program import (
    build_program,
    create_program,
    default_kernel_path,
    global_work_size,
    load_kernel_source,
    prepare_kernel,
)
from aplusb.opencl.resources import ResourceArena


@pytest.mark.parametrize("n", [1, 2, 127, 128, 129, 1000, 1024, 100_000_000])
def test_global_work_size_rounds_up(n):
    g = global_work_size(n, 128)
    assert g % 128 == 0
    assert g >= n
    assert g - n < 128


def test_global_work_size_rejects_empty():
    with pytest.raises(ValueError):
        global_work_size(0)


def test_packaged_kernel_source():
    src = load_kernel_source(default_kernel_path())
    assert "__kernel void aplusb" in src
    assert "a[i] + b[i]" in src
    assert "i >= n" in src


def test_missing_source_reads_empty(tmp_path):
    assert load_kernel_source(tmp_path / "nope.cl") == ""


def test_undecodable_source_reads_empty(tmp_path):
    path = tmp_path / "latin1.cl"
    path.write_bytes(b"__kernel void aplusb() { /* \xff\xfe */ }")
    assert load_kernel_source(path) == ""


def _setup(driver, fake, arena, n=256):
    dev = fake.platforms[0].devices[0]
    compute = create_compute_context(driver, dev, arena)
    a = np.ones(n, dtype=np.float32)
    b = np.full(n, 2.0, dtype=np.float32)
    bufs = allocate_buffers(driver, compute.context, a, b, arena)
    return compute, bufs


def test_empty_source_fails_before_compile(fake_driver):
    driver, fake = fake_driver()
    with ResourceArena() as arena:
        compute, _ = _setup(driver, fake, arena)
        with pytest.raises(EmptySourceError):
            create_program(driver, compute.context, "", "src/cl/aplusb.cl")
    assert "Program" not in fake.calls


def test_build_log_surfaces_before_failure(fake_driver):
    driver, fake = fake_driver()
    lines = []
    with ResourceArena() as arena:
        compute, _ = _setup(driver, fake, arena)
        prg = create_program(driver, compute.context, "#error missing semicolon\n")
        with pytest.raises(BuildError) as ei:
            build_program(driver, prg, compute.device, emit=lines.append)
    assert lines[0] == "Log:"
    assert "missing semicolon" in lines[1]
    assert ei.value.code == -11
    assert "missing semicolon" in ei.value.build_log
    # log fetched after the build attempt, before the error was raised
    assert fake.calls.index("get_build_info") > fake.calls.index("build")


def test_build_targets_selected_device_only(fake_driver):
    driver, fake = fake_driver(platforms=(("P", [("g0", "gpu"), ("g1", "gpu")]),))
    with ResourceArena() as arena:
        compute, _ = _setup(driver, fake, arena)
        prg = create_program(driver, compute.context, load_kernel_source(default_kernel_path()))
        lines = []
        assert build_program(driver, prg, compute.device, emit=lines.append) == ""
    assert prg.build_devices == [compute.device]
    assert prg.build_options == []
    assert lines == []


def test_build_warning_log_is_printed(fake_driver, kernel_file):
    driver, fake = fake_driver()
    lines = []
    with ResourceArena() as arena:
        compute, bufs = _setup(driver, fake, arena)
        prepare_kernel(driver, compute, bufs, arena, kernel_file(extra="#warning unused"), emit=lines.append)
    assert lines[0] == "Log:" and "unused" in lines[1]


def test_arguments_bound_in_order(fake_driver, kernel_file):
    driver, fake = fake_driver()
    with ResourceArena() as arena:
        compute, bufs = _setup(driver, fake, arena, n=300)
        bound = prepare_kernel(driver, compute, bufs, arena, kernel_file())
        args = bound.kernel.args
        assert args[0] is bufs.a and args[1] is bufs.b and args[2] is bufs.c
        assert args[3] == 300 and args[3].dtype == np.uint32
        assert fake.calls.count("set_arg") == 4
        assert bound.global_size == 384
        bound.launch()
        assert fake.launches == [(384, 128)]


def test_aborted_launch_reports_status(fake_driver, kernel_file):
    driver, fake = fake_driver()
    fake.kernel_status = -5
    with ResourceArena() as arena:
        compute, bufs = _setup(driver, fake, arena)
        bound = prepare_kernel(driver, compute, bufs, arena, kernel_file())
        with pytest.raises(OpenCLCallError) as ei:
            bound.launch()
    assert ei.value.code == -5
    assert ei.value.call == "clEnqueueNDRangeKernel"
    assert ei.value.filename == "program.py"


def test_binding_failure_is_fatal(fake_driver, kernel_file):
    driver, fake = fake_driver(fail={"set_arg": -50})
    with ResourceArena() as arena:
        compute, bufs = _setup(driver, fake, arena)
        with pytest.raises(OpenCLCallError) as ei:
            prepare_kernel(driver, compute, bufs, arena, kernel_file())
    assert ei.value.code == -50
    assert ei.value.call == "clSetKernelArg(0)"


def test_unknown_kernel_name(fake_driver, kernel_file):
    driver, fake = fake_driver()
    with ResourceArena() as arena:
        compute, bufs = _setup(driver, fake, arena)
        with pytest.raises(OpenCLCallError) as ei:
            prepare_kernel(driver, compute, bufs, arena, kernel_file(), kernel_name="amultb")
    assert ei.value.code == -46
