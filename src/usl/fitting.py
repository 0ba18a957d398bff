"""Least-squares fitting of USL coefficients to measurements."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np

from .errors import DomainError, InsufficientDataError, NonConvergenceError
from .measurement import Measurement
from .model import Model, usl_throughput
from .solver import FitOptions, Objective, Solver, scipy_solver

logger = logging.getLogger(__name__)

# Three free parameters need a handful of independent points for a stable fit.
MIN_MEASUREMENTS = 6

INITIAL_SIGMA = 0.1
INITIAL_KAPPA = 0.01


@dataclass(frozen=True)
class FitResult:
    """A fitted model together with solver diagnostics."""

    model: Model
    cost: float
    iterations: int
    message: str = ""


def residuals(params: Sequence[float], n: np.ndarray, x: np.ndarray) -> np.ndarray:
    """Observed minus predicted throughput for each measurement."""
    sigma, kappa, lam = params
    return x - usl_throughput(n, sigma, kappa, lam)


def jacobian(params: Sequence[float], n: np.ndarray, x: np.ndarray) -> np.ndarray:
    """Analytic Jacobian of `residuals` with respect to (σ, κ, λ)."""
    sigma, kappa, lam = params
    denom = 1.0 + sigma * (n - 1.0) + kappa * n * (n - 1.0)
    scale = lam * n / denom**2
    return np.column_stack(
        [
            scale * (n - 1.0),
            scale * n * (n - 1.0),
            -n / denom,
        ]
    )


def initial_guess(measurements: Sequence[Measurement]) -> np.ndarray:
    """
    Starting point for the solver: σ=0.1, κ=0.01 and λ equal to the best
    observed throughput per unit of concurrency.
    """
    per_unit = [m.x / m.n for m in measurements if m.n > 0]
    if not per_unit:
        raise DomainError("At least one measurement must have positive concurrency.")
    return np.array([INITIAL_SIGMA, INITIAL_KAPPA, max(per_unit)])


def as_arrays(measurements: Sequence[Measurement]) -> Tuple[np.ndarray, np.ndarray]:
    n = np.array([m.n for m in measurements], dtype=float)
    x = np.array([m.x for m in measurements], dtype=float)
    return n, x


def make_objective(measurements: Sequence[Measurement], options: FitOptions) -> Objective:
    """Bind the measurements into the residual/Jacobian callables for one fit."""
    n, x = as_arrays(measurements)
    if options.jacobian == "numeric":
        return Objective(residuals=lambda p: residuals(p, n, x))
    return Objective(
        residuals=lambda p: residuals(p, n, x),
        jacobian=lambda p: jacobian(p, n, x),
    )


def fit(
    measurements: Sequence[Measurement],
    options: Optional[FitOptions] = None,
    solver: Optional[Solver] = None,
) -> FitResult:
    """
    Fit σ, κ and λ of X(N) = λN/(1+σ(N-1)+κN(N-1)) to the measurements using
    unconstrained least-squares regression.

    Raises:
        InsufficientDataError: fewer than MIN_MEASUREMENTS measurements.
        DomainError: no measurement has positive concurrency.
        NonConvergenceError: the solver stopped without converging.
    """
    measurements = list(measurements)
    if len(measurements) < MIN_MEASUREMENTS:
        raise InsufficientDataError(len(measurements), MIN_MEASUREMENTS)

    options = options or FitOptions()
    solver = solver or scipy_solver
    x0 = initial_guess(measurements)
    logger.debug(
        "Fitting %d measurements from sigma=%.3g kappa=%.3g lambda=%.6g",
        len(measurements),
        *x0,
    )

    result = solver(make_objective(measurements, options), x0, options)
    if not result.converged:
        logger.warning(
            "USL fit did not converge after %d iterations: %s", result.iterations, result.message
        )
        raise NonConvergenceError(result.params, result.iterations, result.message)

    sigma, kappa, lam = (float(p) for p in result.params)
    model = Model(sigma=sigma, kappa=kappa, lam=lam)
    logger.debug(
        "Converged after %d iterations: sigma=%.8g kappa=%.8g lambda=%.8g cost=%.6g",
        result.iterations,
        sigma,
        kappa,
        lam,
        result.cost,
    )
    return FitResult(model=model, cost=result.cost, iterations=result.iterations, message=result.message)
