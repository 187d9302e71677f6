"""
Run the benchmark on a small problem and print the report as a dict.

Equivalent to ``aplusb run --size 1000000 --trials 20`` but driven from
Python, which is handy when comparing devices in a notebook.
"""

import argparse

from aplusb.pipeline import RunConfig, run_benchmark


def main():
    parser = argparse.ArgumentParser(description="aplusb small-size run")
    parser.add_argument("--size", type=int, default=1_000_000, help="Number of elements")
    parser.add_argument("--trials", type=int, default=20, help="Laps per loop")
    args = parser.parse_args()

    report = run_benchmark(RunConfig(n=args.size, trials=args.trials))
    if report is None:
        return
    print(report.as_dict())


if __name__ == "__main__":
    main()
