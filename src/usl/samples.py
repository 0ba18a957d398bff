"""Built-in measurement sets for examples, benchmarks and tests."""

from __future__ import annotations

from typing import Dict, Iterable, List, Tuple

from .measurement import Measurement

# (concurrency, throughput) pairs.
SAMPLES: Dict[str, Tuple[Tuple[int, float], ...]] = {
    # Reference throughput curve for 1..32 concurrent clients.
    "cluster": (
        (1, 955.16),
        (2, 1878.91),
        (3, 2688.01),
        (4, 3548.68),
        (5, 4315.54),
        (6, 5130.43),
        (7, 5931.37),
        (8, 6531.08),
        (9, 7219.8),
        (10, 7867.61),
        (11, 8278.71),
        (12, 8646.7),
        (13, 9047.84),
        (14, 9426.55),
        (15, 9645.37),
        (16, 9897.24),
        (17, 10097.6),
        (18, 10240.5),
        (19, 10532.39),
        (20, 10798.52),
        (21, 11151.43),
        (22, 11518.63),
        (23, 11806.0),
        (24, 12089.37),
        (25, 12075.41),
        (26, 12177.29),
        (27, 12211.41),
        (28, 12158.93),
        (29, 12155.27),
        (30, 12118.04),
        (31, 12140.4),
        (32, 12074.39),
    ),
    # Every fifth client count of the same run.
    "cluster-sparse": (
        (1, 955.16),
        (5, 4315.54),
        (10, 7867.61),
        (15, 9645.37),
        (20, 10798.52),
        (25, 12075.41),
        (30, 12118.04),
    ),
}


def list_samples() -> Iterable[str]:
    """Return available sample identifiers."""
    return sorted(SAMPLES.keys())


def get_sample(name: str) -> List[Measurement]:
    """Return the measurements of a named sample."""
    key = name.lower()
    if key not in SAMPLES:
        raise KeyError(f"Sample '{name}' is not defined. Available: {list_samples()}")
    return [Measurement.concurrency_and_throughput(n, x) for n, x in SAMPLES[key]]
