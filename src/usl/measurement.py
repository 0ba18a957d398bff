"""Little's Law measurements of concurrency, throughput and latency."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from datetime import timedelta
from typing import Mapping, Union

from .errors import DomainError

Latency = Union[float, timedelta]


def as_seconds(r: Latency) -> float:
    """Return a latency given as float seconds or a timedelta in seconds."""
    if isinstance(r, timedelta):
        return r.total_seconds()
    return float(r)


def _check(name: str, value: float) -> float:
    value = float(value)
    if not math.isfinite(value):
        raise DomainError(f"{name} must be finite, got {value!r}.")
    if value < 0:
        raise DomainError(f"{name} must be non-negative, got {value!r}.")
    return value


@dataclass(frozen=True)
class Measurement:
    """
    A simultaneous observation of a system's concurrency, throughput and latency.

    Only two of the three quantities are ever measured; the third is derived via
    Little's Law (N = X * R). Build instances with the class constructors below
    rather than directly.

    Attributes:
        n: average number of concurrent events.
        x: long-term arrival rate of events, in events/second.
        r: average duration of an event, in seconds.
    """

    n: float
    x: float
    r: float

    def __post_init__(self) -> None:
        _check("Concurrency n", self.n)
        _check("Throughput x", self.x)
        _check("Latency r", self.r)
        if not math.isclose(self.n, self.x * self.r, rel_tol=1e-9, abs_tol=1e-12):
            raise DomainError(
                f"Measurement violates Little's Law: n={self.n!r} != x*r={self.x * self.r!r}."
            )

    @classmethod
    def concurrency_and_latency(cls, n: float, r: Latency) -> "Measurement":
        """Measure latency at a concurrency level; throughput is n / r."""
        n = _check("Concurrency n", n)
        r = _check("Latency r", as_seconds(r))
        if r == 0:
            raise DomainError("Latency r must be strictly positive to derive throughput.")
        return cls(n=n, x=n / r, r=r)

    @classmethod
    def concurrency_and_throughput(cls, n: float, x: float) -> "Measurement":
        """Measure throughput at a concurrency level; latency is n / x."""
        n = _check("Concurrency n", n)
        x = _check("Throughput x", x)
        if x == 0:
            raise DomainError("Throughput x must be strictly positive to derive latency.")
        return cls(n=n, x=x, r=n / x)

    @classmethod
    def throughput_and_latency(cls, x: float, r: Latency) -> "Measurement":
        """Measure latency at a throughput level; concurrency is x * r."""
        x = _check("Throughput x", x)
        r = _check("Latency r", as_seconds(r))
        return cls(n=x * r, x=x, r=r)

    @classmethod
    def from_pair(cls, a, b) -> "Measurement":
        """
        Build a measurement from two dimensional values given in either order.

        Integers are concurrency levels, floats are throughputs and timedeltas
        are latencies, so `(30, 1000.0)`, `(1000.0, 30)`, `(30, timedelta(...))`
        and `(1000.0, timedelta(...))` are all accepted.
        """
        for first, second in ((a, b), (b, a)):
            if _is_count(first) and isinstance(second, float):
                return cls.concurrency_and_throughput(first, second)
            if _is_count(first) and isinstance(second, timedelta):
                return cls.concurrency_and_latency(first, second)
            if isinstance(first, float) and isinstance(second, timedelta):
                return cls.throughput_and_latency(first, second)
        raise TypeError(
            f"Cannot build a measurement from ({type(a).__name__}, {type(b).__name__})."
        )

    def as_dict(self) -> Mapping[str, float]:
        return asdict(self)


def _is_count(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
