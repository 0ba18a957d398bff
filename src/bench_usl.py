"""Time repeated USL fits of a built-in sample."""

from __future__ import annotations

import argparse
import time
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

import pandas as pd
from tqdm import trange

from usl import FitOptions, Measurement, fit, get_sample, list_samples
from run_usl import SOLVERS


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Benchmark USL model fitting.")
    parser.add_argument(
        "--sample",
        type=str,
        choices=list(list_samples()),
        default="cluster",
        help="Built-in measurement set to fit.",
    )
    parser.add_argument(
        "--solvers",
        type=str,
        nargs="+",
        choices=sorted(SOLVERS),
        default=sorted(SOLVERS),
        help="Solvers to benchmark.",
    )
    parser.add_argument("--replications", type=int, default=200, help="Fits per solver.")
    parser.add_argument(
        "--outputs",
        type=Path,
        default=None,
        help="Optional CSV where per-fit timings will be written.",
    )
    return parser.parse_args(argv)


def time_fits(
    measurements: List[Measurement], solver_name: str, replications: int
) -> Iterable[dict]:
    """Yield one timing row per fit."""
    options = FitOptions()
    solver = SOLVERS[solver_name]
    for rep in trange(replications, desc=solver_name, unit="fit"):
        start = time.perf_counter()
        result = fit(measurements, options=options, solver=solver)
        elapsed = time.perf_counter() - start
        yield {
            "solver": solver_name,
            "replication": rep,
            "seconds": elapsed,
            "iterations": result.iterations,
        }


def summarize(df: pd.DataFrame) -> pd.DataFrame:
    summary = df.groupby("solver")["seconds"].agg(["count", "mean", "std", "min", "max"])
    summary["iterations"] = df.groupby("solver")["iterations"].first()
    return summary


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    if args.replications < 1:
        raise SystemExit("--replications must be >= 1.")

    measurements = get_sample(args.sample)
    rows = []
    for name in args.solvers:
        rows.extend(time_fits(measurements, name, args.replications))
    df = pd.DataFrame(rows)

    if args.outputs is not None:
        args.outputs.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(args.outputs, index=False)
        print(f"Timings saved to {args.outputs.resolve()}")

    print(summarize(df).to_string(float_format=lambda v: f"{v:.6f}"))


if __name__ == "__main__":
    main()
