"""Figures comparing measurements against a fitted USL model."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence

import matplotlib.pyplot as plt
import numpy as np

from usl import Measurement, Model, UndefinedQueryError


def max_concurrency_or_none(model: Model) -> Optional[int]:
    try:
        return model.max_concurrency()
    except UndefinedQueryError:
        return None


def concurrency_grid(measurements: Sequence[Measurement], model: Model) -> np.ndarray:
    """Concurrency levels to draw the fitted curve over."""
    upper = max(m.n for m in measurements) * 1.5
    peak = max_concurrency_or_none(model)
    if peak is not None:
        upper = max(upper, peak * 1.2)
    return np.linspace(0.0, upper, 200)


def plot_throughput(measurements: Sequence[Measurement], model: Model, out: Path) -> None:
    n = concurrency_grid(measurements, model)
    fig, ax = plt.subplots(figsize=(8, 5))
    ax.plot(n, model.predict(n), label=f"USL (σ={model.sigma:.4f}, κ={model.kappa:.6f})")
    ax.scatter(
        [m.n for m in measurements],
        [m.x for m in measurements],
        color="black",
        zorder=5,
        label="Measured",
    )
    ax.plot(n, model.lam * n, linestyle="--", color="gray", label="Linear scaling")

    peak = max_concurrency_or_none(model)
    if peak is not None:
        x_max = model.throughput_at_concurrency(peak)
        ax.scatter([peak], [x_max], color="red", zorder=6, label="N max")
        ax.annotate(f" N={peak}", (peak, x_max), va="bottom", ha="left", fontsize=9)

    ax.set_ylim(0, max(max(m.x for m in measurements), float(np.nanmax(model.predict(n)))) * 1.15)
    ax.set_xlabel("Concurrency (N)")
    ax.set_ylabel("Throughput (X)")
    ax.set_title("Throughput vs. concurrency")
    ax.legend()
    fig.tight_layout()
    fig.savefig(out, dpi=150)
    plt.close(fig)


def plot_latency(measurements: Sequence[Measurement], model: Model, out: Path) -> None:
    n = concurrency_grid(measurements, model)
    latency = np.array([model.latency_at_concurrency(v) for v in n])

    fig, ax = plt.subplots(figsize=(8, 5))
    ax.plot(n, latency * 1000.0, label="USL")
    ax.scatter(
        [m.n for m in measurements],
        [m.r * 1000.0 for m in measurements],
        color="black",
        zorder=5,
        label="Measured",
    )
    ax.set_xlabel("Concurrency (N)")
    ax.set_ylabel("Latency (ms)")
    ax.set_title("Latency vs. concurrency")
    ax.legend()
    fig.tight_layout()
    fig.savefig(out, dpi=150)
    plt.close(fig)


def write_figures(measurements: Sequence[Measurement], model: Model, reports_dir: Path) -> List[Path]:
    """Write the throughput and latency figures and return their paths."""
    reports_dir.mkdir(parents=True, exist_ok=True)
    throughput_path = reports_dir / "usl_throughput.png"
    latency_path = reports_dir / "usl_latency.png"
    plot_throughput(measurements, model, throughput_path)
    plot_latency(measurements, model, latency_path)
    return [throughput_path, latency_path]
