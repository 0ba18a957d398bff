"""Closed-form queries against a fitted Universal Scalability Law model."""

from __future__ import annotations

import enum
import math
import sys
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Iterable, Mapping, Optional, Sequence

import numpy as np

from .errors import UndefinedQueryError
from .measurement import Latency, Measurement, as_seconds

if TYPE_CHECKING:  # pragma: no cover
    from .solver import FitOptions, Solver

# Coefficients this close to zero are treated as zero.
EPSILON = sys.float_info.epsilon


def usl_throughput(n, sigma: float, kappa: float, lam: float):
    """
    Evaluate X(N) = λN / (1 + σ(N-1) + κN(N-1)).

    Works on scalars and numpy arrays alike, so it serves both the model
    queries and the residual evaluation during fitting.
    """
    return lam * n / (1.0 + sigma * (n - 1.0) + kappa * n * (n - 1.0))


class Bottleneck(enum.Enum):
    """Which effect dominates a system's scalability."""

    CONTENTION = "contention"
    COHERENCY = "coherency"
    LIMITLESS = "limitless"
    BALANCED = "balanced"


@dataclass(frozen=True)
class Model:
    """
    A Universal Scalability Law model.

    Attributes:
        sigma: coefficient of contention, σ.
        kappa: coefficient of crosstalk/coherency, κ.
        lam: coefficient of performance, λ (throughput of a single unit of
            concurrency).
    """

    sigma: float
    kappa: float
    lam: float

    @classmethod
    def build(
        cls,
        measurements: Sequence[Measurement],
        options: Optional["FitOptions"] = None,
        solver: Optional["Solver"] = None,
    ) -> "Model":
        """Fit a model to the measurements (see `usl.fitting.fit`)."""
        from .fitting import fit

        return fit(measurements, options=options, solver=solver).model

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple], **kwargs) -> "Model":
        """Fit a model to `(concurrency, throughput)`-style tuples."""
        return cls.build([Measurement.from_pair(a, b) for a, b in pairs], **kwargs)

    def _denominator(self, n: float) -> float:
        return 1.0 + self.sigma * (n - 1.0) + self.kappa * n * (n - 1.0)

    def throughput_at_concurrency(self, n: float) -> float:
        """
        Expected throughput at a number of concurrent events, X(N).

        See "Practical Scalability Analysis with the Universal Scalability Law",
        Equation 3.
        """
        if n < 0:
            raise UndefinedQueryError(f"Concurrency must be non-negative, got {n!r}.")
        if self._denominator(n) == 0:
            raise UndefinedQueryError(f"Throughput is undefined at concurrency {n!r}.")
        return float(usl_throughput(float(n), self.sigma, self.kappa, self.lam))

    def latency_at_concurrency(self, n: float) -> float:
        """Expected mean latency at a number of concurrent events, R(N) (Equation 6)."""
        if n < 0:
            raise UndefinedQueryError(f"Concurrency must be non-negative, got {n!r}.")
        if self.lam == 0:
            raise UndefinedQueryError("Latency is undefined when lambda is zero.")
        return self._denominator(float(n)) / self.lam

    def peak_concurrency(self) -> float:
        """
        Continuous concurrency at which X(N) peaks, sqrt((1-σ)/κ).

        Raises:
            UndefinedQueryError: when κ is not positive (the model never peaks)
                                 or σ > 1.
        """
        if self.kappa <= 0 or self.is_limitless():
            raise UndefinedQueryError("Maximum concurrency is undefined unless kappa > 0.")
        ratio = (1.0 - self.sigma) / self.kappa
        if ratio < 0:
            raise UndefinedQueryError("Maximum concurrency is undefined when sigma > 1.")
        return math.sqrt(ratio)

    def max_concurrency(self) -> int:
        """Maximum whole number of concurrent events, floor(sqrt((1-σ)/κ)) (Equation 4)."""
        return int(math.floor(self.peak_concurrency()))

    def max_throughput(self) -> float:
        """Expected throughput at `max_concurrency()`, X_max."""
        return self.throughput_at_concurrency(self.max_concurrency())

    def latency_at_throughput(self, x: float) -> float:
        """Expected mean latency at a throughput, R(X) (Equation 8)."""
        denom = self.sigma * x - self.lam
        if denom == 0:
            raise UndefinedQueryError(f"Latency is undefined at throughput {x!r}.")
        return (self.sigma - 1.0) / denom

    def _radical(self, r: float) -> float:
        if self.kappa <= 0:
            raise UndefinedQueryError("Latency-based queries require kappa > 0.")
        if r <= 0:
            raise UndefinedQueryError(f"Latency must be strictly positive, got {r!r}.")
        radicand = (
            self.sigma**2
            + self.kappa**2
            + 2.0 * self.kappa * (2.0 * self.lam * r + self.sigma - 2.0)
        )
        if radicand < 0:
            raise UndefinedQueryError(f"No real solution at latency {r!r}.")
        return math.sqrt(radicand)

    def throughput_at_latency(self, r: Latency) -> float:
        """Expected throughput at a mean latency, X(R) (Equation 9)."""
        r = as_seconds(r)
        return (self._radical(r) - self.kappa + self.sigma) / (2.0 * self.kappa * r)

    def concurrency_at_latency(self, r: Latency) -> float:
        """Expected number of concurrent events at a mean latency, N(R) (Equation 10)."""
        r = as_seconds(r)
        return (self.kappa - self.sigma + self._radical(r)) / (2.0 * self.kappa)

    def concurrency_at_throughput(self, x: float) -> float:
        """Expected number of concurrent events at a throughput, N(X)."""
        return self.latency_at_throughput(x) * x

    def is_limitless(self) -> bool:
        """Whether the system scales linearly (κ is zero)."""
        return math.isclose(self.kappa, 0.0, abs_tol=EPSILON)

    def is_contention_constrained(self) -> bool:
        """Whether contention effects dominate (σ > κ)."""
        return self.sigma > self.kappa and not self.is_limitless()

    def is_coherency_constrained(self) -> bool:
        """Whether coherency effects dominate (σ < κ)."""
        return self.sigma < self.kappa and not self.is_limitless()

    def bottleneck(self) -> Bottleneck:
        if self.is_contention_constrained():
            return Bottleneck.CONTENTION
        if self.is_coherency_constrained():
            return Bottleneck.COHERENCY
        if self.is_limitless():
            return Bottleneck.LIMITLESS
        return Bottleneck.BALANCED

    def predict(self, concurrency: Iterable[float]) -> np.ndarray:
        """Vectorised `throughput_at_concurrency` over many levels (for plots/tables)."""
        n = np.asarray(list(concurrency), dtype=float)
        return usl_throughput(n, self.sigma, self.kappa, self.lam)

    def as_dict(self) -> Mapping[str, float]:
        return asdict(self)
