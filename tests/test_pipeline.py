import numpy as np
import pytest

from aplusb.errors import EmptySourceError, OpenCLCallError, ResultsDiffer
from aplusb.opencl.buffers import allocate_buffers, download
from aplusb.opencl.context import create_compute_context
from aplusb.opencl.program import prepare_kernel
from aplusb.opencl.resources import ResourceArena
from aplusb.pipeline import RunConfig, run_benchmark
from aplusb.validation import validate_sum

FULL_RELEASE = ["kernel", "program", "buffer3", "buffer2", "buffer1", "queue", "context"]


def _output(console):
    return console.file.getvalue().splitlines()


def test_ones_plus_twos_equals_three(fake_driver, kernel_file):
    driver, fake = fake_driver()
    n = 1024
    a = np.ones(n, dtype=np.float32)
    b = np.full(n, 2.0, dtype=np.float32)
    c = np.zeros(n, dtype=np.float32)
    with ResourceArena() as arena:
        compute = create_compute_context(driver, fake.platforms[0].devices[0], arena)
        bufs = allocate_buffers(driver, compute.context, a, b, arena)
        assert bufs.nbytes == n * 4
        prepare_kernel(driver, compute, bufs, arena, kernel_file()).launch()
        download(driver, compute.queue, bufs, c)
        validate_sum(a, b, c)
    assert np.all(c == 3.0)
    assert fake.released == FULL_RELEASE


def test_full_run_reports_in_order(fake_driver, console, kernel_file):
    driver, fake = fake_driver()
    cfg = RunConfig(n=1000, trials=20, kernel_path=kernel_file())
    report = run_benchmark(cfg, driver=driver, console=console)

    assert report is not None
    assert report.device == "Fake GPU"
    assert report.kernel.trials == 20 and report.transfer.trials == 20
    assert fake.calls.count("enqueue_nd_range_kernel") == 20
    assert fake.calls.count("enqueue_copy") == 20
    assert fake.launches[0] == (1024, 128)

    out = _output(console)
    prefixes = [
        "Data generated for n=1000!",
        "Kernel average time: ",
        "GFlops: ",
        "VRAM bandwidth: ",
        "Result data transfer time: ",
        "VRAM -> RAM bandwidth: ",
    ]
    assert len(out) == len(prefixes)
    for line, prefix in zip(out, prefixes):
        assert line.startswith(prefix)
    assert fake.released == FULL_RELEASE


def test_no_devices_exits_cleanly(fake_driver, console):
    driver, fake = fake_driver(platforms=(("Empty", []),))
    assert run_benchmark(RunConfig(n=16), driver=driver, console=console) is None
    assert _output(console) == ["No devices found"]
    for call in ("Context", "Buffer", "Program", "Kernel"):
        assert call not in fake.calls


def test_subtracting_kernel_fails_validation(fake_driver, console, kernel_file):
    driver, fake = fake_driver()
    cfg = RunConfig(n=512, trials=2, kernel_path=kernel_file(body="c[i] = a[i] - b[i];"))
    with pytest.raises(ResultsDiffer) as ei:
        run_benchmark(cfg, driver=driver, console=console)
    assert ei.value.index == 0
    assert "results differ" in str(ei.value)
    assert fake.released == FULL_RELEASE


def test_missing_kernel_file_is_empty_source(fake_driver, console, tmp_path):
    driver, fake = fake_driver()
    cfg = RunConfig(n=64, trials=2, kernel_path=tmp_path / "src" / "cl" / "aplusb.cl")
    with pytest.raises(EmptySourceError):
        run_benchmark(cfg, driver=driver, console=console)
    assert "Program" not in fake.calls
    assert fake.released == ["buffer3", "buffer2", "buffer1", "queue", "context"]


def test_buffer_failure_releases_what_was_created(fake_driver, console):
    driver, fake = fake_driver(fail={"Buffer": -4})
    with pytest.raises(OpenCLCallError) as ei:
        run_benchmark(RunConfig(n=64, trials=2), driver=driver, console=console)
    assert ei.value.call == "clCreateBuffer(as)"
    assert fake.released == ["queue", "context"]


def test_context_failure_names_call_site(fake_driver, console):
    driver, fake = fake_driver(fail={"Context": -6})
    with pytest.raises(OpenCLCallError) as ei:
        run_benchmark(RunConfig(n=64), driver=driver, console=console)
    assert ei.value.call == "clCreateContext"
    assert ei.value.filename == "context.py"
    assert fake.released == []


def test_queue_is_in_order(fake_driver):
    driver, fake = fake_driver()
    with ResourceArena() as arena:
        compute = create_compute_context(driver, fake.platforms[0].devices[0], arena)
        assert compute.queue.properties == 0
        assert compute.context.devices == [compute.device]
        assert compute.metadata()["platform"] == "Fake Platform"
        assert compute.queue.entered and not compute.queue.finalized
    assert compute.queue.finalized
    assert compute.queue.finished >= 1
    assert not hasattr(compute.queue, "release")
    assert fake.released == ["queue", "context"]


def test_run_config_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("APLUSB_N", "4096")
    monkeypatch.setenv("APLUSB_TRIALS", "5")
    monkeypatch.setenv("APLUSB_KERNEL_PATH", str(tmp_path / "k.cl"))
    cfg = RunConfig.from_env()
    assert cfg.n == 4096
    assert cfg.trials == 5
    assert cfg.local_size == 128
    assert cfg.kernel_path == tmp_path / "k.cl"


def test_run_config_defaults():
    cfg = RunConfig()
    assert cfg.n == 100_000_000
    assert cfg.trials == 20
    assert cfg.kernel_path.name == "aplusb.cl"
    with pytest.raises(ValueError):
        RunConfig(n=0)
