"""Tests for the command line front-end and figure generation."""

import math

import pytest

import bench_usl
import run_usl
from usl import Model
from usl.samples import SAMPLES


def write_csv(path, rows):
    lines = ["concurrency,throughput"] + [f"{n},{x}" for n, x in rows]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def test_load_measurements_reads_header_and_pairs(tmp_path):
    path = write_csv(tmp_path / "data.csv", SAMPLES["cluster"])
    measurements = run_usl.load_measurements(path)
    assert len(measurements) == 32
    assert math.isclose(measurements[0].x, 955.16)
    assert math.isclose(measurements[-1].n, 32.0)


def test_sample_run_prints_summary_and_predictions(capsys):
    run_usl.main(["--sample", "cluster", "10", "40"])
    out = capsys.readouterr().out.splitlines()
    assert out[0].startswith("USL parameters: σ=0.0267")
    assert "max concurrency: 35" in out[1]
    assert out[2].strip() == "contention constrained"
    assert out[3].startswith("10,")
    assert out[4].startswith("40,")


def test_csv_run_with_lm_solver(tmp_path, capsys):
    path = write_csv(tmp_path / "data.csv", SAMPLES["cluster"])
    run_usl.main(["--csv", str(path), "--solver", "lm", "--numeric-jacobian", "35"])
    out = capsys.readouterr().out
    assert "contention constrained" in out
    prediction = float(out.strip().splitlines()[-1].split(",")[1])
    assert math.isclose(prediction, 12341.7454, rel_tol=1e-5)


def test_missing_csv_exits(tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        run_usl.main(["--csv", str(tmp_path / "missing.csv")])
    assert "not found" in str(excinfo.value)


def test_csv_and_sample_are_mutually_exclusive(tmp_path):
    path = write_csv(tmp_path / "data.csv", SAMPLES["cluster"])
    with pytest.raises(SystemExit):
        run_usl.main(["--csv", str(path), "--sample", "cluster"])


def test_too_few_rows_exit_with_insufficient_data(tmp_path):
    path = write_csv(tmp_path / "short.csv", SAMPLES["cluster"][:4])
    with pytest.raises(SystemExit) as excinfo:
        run_usl.main(["--csv", str(path)])
    assert "at least 6" in str(excinfo.value)


def test_describe_limitless_model():
    lines = run_usl.describe(Model(sigma=0.0, kappa=0.0, lam=10.0))
    assert lines[1].strip() == "no throughput peak"
    assert lines[2].strip() == "linearly scalable"


def test_plot_writes_figures(tmp_path, capsys):
    run_usl.main(["--sample", "cluster", "--plot", str(tmp_path / "reports")])
    for name in ("usl_throughput.png", "usl_latency.png"):
        path = tmp_path / "reports" / name
        assert path.exists()
        assert path.stat().st_size > 0


def test_bench_writes_timings(tmp_path, capsys):
    out_csv = tmp_path / "timings.csv"
    bench_usl.main(["--replications", "2", "--solvers", "lm", "scipy", "--outputs", str(out_csv)])
    assert out_csv.exists()
    rows = out_csv.read_text(encoding="utf-8").strip().splitlines()
    assert len(rows) == 1 + 4
    assert "lm" in capsys.readouterr().out
