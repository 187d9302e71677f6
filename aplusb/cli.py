import json as _json
import os
import sys
from dataclasses import replace

import click
from rich.console import Console
from rich.markup import escape

from . import config as _cfg
from .errors import AplusbError
from .opencl.device import list_devices
from .opencl.driver import load_driver
from .pipeline import RunConfig, run_benchmark

console = Console()


def _load_env():
    if not _cfg.get("APLUSB_LOAD_DOTENV"):
        return
    try:
        _cfg.load_dotenv()
    except OSError as e:
        console.print(f"[yellow]Warning:[/yellow] could not read .env: {e}")


def _fail(e: Exception):
    console.print(f"[red]Error:[/red] {escape(str(e))}", highlight=False, soft_wrap=True)
    sys.exit(1)


@click.group()
def main():
    """aplusb: OpenCL vector addition offload benchmark."""
    _load_env()


@main.command()
@click.option("--size", "-n", "size", type=click.IntRange(min=1), default=None,
              help="Elements per input array [env APLUSB_N, default 100000000].")
@click.option("--trials", type=click.IntRange(min=1), default=None,
              help="Timed laps per loop [env APLUSB_TRIALS, default 20].")
@click.option("--local-size", type=click.IntRange(min=1), default=None,
              help="Work-group size [env APLUSB_LOCAL_SIZE, default 128].")
@click.option("--seed", type=int, default=None,
              help="Input RNG seed; 0 seeds with the element count.")
@click.option("--kernel", "kernel_path", type=click.Path(dir_okay=False), default=None,
              help="Kernel source file (relative to the working directory).")
@click.option("--kernel-name", type=str, default=None, help="Kernel entry point.")
@click.option("--json", "as_json", is_flag=True, help="Also emit the report as JSON.")
def run(size, trials, local_size, seed, kernel_path, kernel_name, as_json: bool):
    """Benchmark c = a + b on the best available OpenCL device."""
    overrides = {
        "n": size,
        "trials": trials,
        "local_size": local_size,
        "seed": seed,
        "kernel_path": kernel_path,
        "kernel_name": kernel_name,
    }
    try:
        cfg = replace(RunConfig.from_env(), **{k: v for k, v in overrides.items() if v is not None})
        report = run_benchmark(cfg, driver=load_driver(), console=console)
    except (AplusbError, ValueError) as e:
        _fail(e)
        return
    if report is not None and as_json:
        click.echo(_json.dumps(report.as_dict(), indent=2))


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Emit machine-readable JSON.")
def devices(as_json: bool):
    """List OpenCL platforms/devices and mark the one ``run`` would use."""
    try:
        rows = list_devices(load_driver())
    except AplusbError as e:
        _fail(e)
        return
    if as_json:
        click.echo(_json.dumps([r.as_dict() for r in rows], indent=2))
        return
    if not rows:
        console.print("No devices found")
        return
    for r in rows:
        mark = "[green]*[/green]" if r.selected else " "
        console.print(
            f"{mark} {r.platform_index}:{r.device_index} {escape(r.name)} ({r.kind}) on {escape(r.platform_name)}",
            highlight=False,
        )


@main.group()
def config():
    """Inspect APLUSB_* configuration."""
    pass


@config.command("list")
@click.option("--json", "as_json", is_flag=True, help="Emit machine-readable JSON.")
def config_list(as_json: bool):
    rows = _cfg.describe()
    if as_json:
        click.echo(_json.dumps(rows, indent=2, default=str))
        return
    for r in rows:
        src = "env" if r["name"] in os.environ else "default"
        console.print(
            f"{r['name']}={r['current']} ({src}) - {r['description']}",
            markup=False,
            highlight=False,
        )


if __name__ == "__main__":
    main()
