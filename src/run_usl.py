"""Command line interface to build and evaluate USL models."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Optional, Sequence

import pandas as pd

from usl import (
    FitOptions,
    FitResult,
    Measurement,
    Model,
    UndefinedQueryError,
    USLError,
    fit,
    get_sample,
    levenberg_marquardt,
    list_samples,
    scipy_solver,
)

logger = logging.getLogger(__name__)

SOLVERS = {
    "scipy": scipy_solver,
    "lm": levenberg_marquardt,
}


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Build and evaluate Universal Scalability Law models."
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--csv",
        type=Path,
        help="CSV with a header row; first column concurrency, second throughput.",
    )
    source.add_argument(
        "--sample",
        type=str,
        choices=list(list_samples()),
        help="Use a built-in measurement set instead of a CSV.",
    )
    parser.add_argument(
        "predictions",
        type=int,
        nargs="*",
        help="Predict the throughput at the given concurrency levels.",
    )
    parser.add_argument(
        "--solver",
        type=str,
        choices=sorted(SOLVERS),
        default="scipy",
        help="Least-squares solver used for the fit.",
    )
    parser.add_argument(
        "--max-iterations", type=int, default=200, help="Iteration cap for the solver."
    )
    parser.add_argument(
        "--numeric-jacobian",
        action="store_true",
        help="Approximate the Jacobian by finite differences instead of the analytic form.",
    )
    parser.add_argument(
        "--plot",
        type=Path,
        metavar="DIR",
        help="Directory where throughput and latency figures will be written.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log solver progress.")
    return parser.parse_args(argv)


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )


def load_measurements(path: Path) -> List[Measurement]:
    """Read (concurrency, throughput) rows from a CSV file."""
    if not path.exists():
        raise FileNotFoundError(f"Measurements file not found: {path}")
    df = pd.read_csv(path)
    if df.empty:
        raise ValueError(f"Measurements file is empty: {path}")
    if df.shape[1] < 2:
        raise ValueError("Measurements file needs concurrency and throughput columns.")
    pairs = df.iloc[:, :2].apply(pd.to_numeric, errors="raise")
    return [
        Measurement.concurrency_and_throughput(float(n), float(x))
        for n, x in pairs.itertuples(index=False)
    ]


def describe(model: Model) -> List[str]:
    """Human-readable summary lines for a fitted model."""
    lines = [f"USL parameters: σ={model.sigma:.6f}, κ={model.kappa:.6f}, λ={model.lam:.6f}"]
    try:
        lines.append(
            f"\tmax throughput: {model.max_throughput():.6f}, "
            f"max concurrency: {model.max_concurrency()}"
        )
    except UndefinedQueryError:
        lines.append("\tno throughput peak")

    labels = {
        "contention": "contention constrained",
        "coherency": "coherency constrained",
        "limitless": "linearly scalable",
        "balanced": "balanced contention and coherency",
    }
    lines.append(f"\t{labels[model.bottleneck().value]}")
    return lines


def run(args: argparse.Namespace) -> FitResult:
    measurements = get_sample(args.sample) if args.sample else load_measurements(args.csv)
    options = FitOptions(
        max_iterations=args.max_iterations,
        jacobian="numeric" if args.numeric_jacobian else "analytic",
    )
    logger.info("Loaded %d measurements", len(measurements))
    result = fit(measurements, options=options, solver=SOLVERS[args.solver])

    for line in describe(result.model):
        print(line)
    for n in args.predictions:
        print(f"{n},{result.model.throughput_at_concurrency(n)}")

    if args.plot is not None:
        from plots import write_figures

        for path in write_figures(measurements, result.model, args.plot):
            print(f"Figure saved to {path.resolve()}")
    return result


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    configure_logging(args.verbose)
    if args.max_iterations < 1:
        raise SystemExit("--max-iterations must be >= 1.")
    try:
        run(args)
    except (OSError, ValueError, USLError) as exc:
        raise SystemExit(f"error: {exc}") from exc


if __name__ == "__main__":
    main()
