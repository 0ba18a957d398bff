"""Least-squares solvers usable for fitting USL models.

A solver is any callable taking `(objective, x0, options)` and returning a
`SolverResult`. Two are provided:

- `scipy_solver`: MINPACK's Levenberg-Marquardt via `scipy.optimize.least_squares`.
- `levenberg_marquardt`: a small numpy implementation of the same algorithm,
  useful where an explicit iteration cap and damping trace are wanted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, NamedTuple, Optional

import numpy as np
from scipy.optimize import least_squares

logger = logging.getLogger(__name__)

Vector = np.ndarray
ResidualFn = Callable[[Vector], Vector]
JacobianFn = Callable[[Vector], np.ndarray]

JACOBIAN_MODES = ("analytic", "numeric")


@dataclass(frozen=True)
class FitOptions:
    """Convergence settings handed to the solver."""

    ftol: float = 1e-10
    xtol: float = 1e-10
    gtol: float = 1e-10
    max_iterations: int = 200
    jacobian: str = "analytic"

    def __post_init__(self) -> None:
        for name in ("ftol", "xtol", "gtol"):
            if getattr(self, name) <= 0:
                raise ValueError(f"Tolerance {name} must be strictly positive.")
        if self.max_iterations < 1:
            raise ValueError("max_iterations must be >= 1.")
        if self.jacobian not in JACOBIAN_MODES:
            raise ValueError(f"jacobian must be one of {JACOBIAN_MODES}, got {self.jacobian!r}.")


class Objective(NamedTuple):
    """Residuals (and optionally their Jacobian) as functions of the parameters."""

    residuals: ResidualFn
    jacobian: Optional[JacobianFn] = None


@dataclass(frozen=True)
class SolverResult:
    params: Vector
    cost: float
    iterations: int
    converged: bool
    message: str = ""


Solver = Callable[[Objective, Vector, FitOptions], SolverResult]


def numeric_jacobian(residuals: ResidualFn, params: Vector) -> np.ndarray:
    """Forward-difference approximation of d(residuals)/d(params)."""
    params = np.asarray(params, dtype=float)
    base = residuals(params)
    jac = np.empty((base.size, params.size))
    eps = np.sqrt(np.finfo(float).eps)
    for j in range(params.size):
        h = eps * max(abs(params[j]), 1.0)
        shifted = params.copy()
        shifted[j] += h
        jac[:, j] = (residuals(shifted) - base) / h
    return jac


def scipy_solver(objective: Objective, x0: Vector, options: FitOptions) -> SolverResult:
    """Solve with `scipy.optimize.least_squares(method="lm")`."""
    if objective.jacobian is not None:
        jac = objective.jacobian
        max_nfev = options.max_iterations
    else:
        # lmdif spends one evaluation per parameter on each finite-difference Jacobian.
        jac = "2-point"
        max_nfev = options.max_iterations * (len(x0) + 1)

    result = least_squares(
        objective.residuals,
        np.asarray(x0, dtype=float),
        jac=jac,
        method="lm",
        ftol=options.ftol,
        xtol=options.xtol,
        gtol=options.gtol,
        x_scale="jac",
        max_nfev=max_nfev,
    )
    iterations = result.njev if result.njev else result.nfev
    return SolverResult(
        params=result.x,
        cost=float(result.cost),
        iterations=int(iterations),
        converged=bool(result.success),
        message=str(result.message),
    )


def levenberg_marquardt(
    objective: Objective,
    x0: Vector,
    options: FitOptions,
    initial_damping: float = 1e-3,
    max_damping: float = 1e16,
) -> SolverResult:
    """
    Damped Gauss-Newton iteration with Marquardt's diagonal scaling.

    Each iteration solves (JᵀJ + μ·diag(JᵀJ)) δ = -Jᵀr. A step that lowers the
    cost is accepted and μ shrinks tenfold; otherwise μ grows tenfold and the
    step is retried. Stops when the scaled gradient, the step, or both the
    actual and predicted relative cost reductions fall below tolerance.
    """
    jacobian = objective.jacobian or (lambda p: numeric_jacobian(objective.residuals, p))
    params = np.asarray(x0, dtype=float).copy()
    residuals = objective.residuals(params)
    cost = 0.5 * float(residuals @ residuals)
    damping = initial_damping

    for iteration in range(1, options.max_iterations + 1):
        if cost == 0:
            return SolverResult(params, cost, iteration - 1, True, "residuals are zero")

        jac = jacobian(params)
        gradient = jac.T @ residuals
        column_norms = np.linalg.norm(jac, axis=0)
        scaled = np.abs(gradient) / np.where(column_norms > 0, column_norms, 1.0)
        if scaled.max() / np.sqrt(2.0 * cost) <= options.gtol:
            return SolverResult(params, cost, iteration - 1, True, "gradient below gtol")

        normal = jac.T @ jac
        diagonal = np.maximum(np.diag(normal), np.finfo(float).tiny)

        while True:
            step = np.linalg.lstsq(normal + damping * np.diag(diagonal), -gradient, rcond=None)[0]
            if np.all(np.abs(step) <= options.xtol * (np.abs(params) + options.xtol)):
                return SolverResult(params, cost, iteration, True, "step below xtol")
            candidate = params + step
            trial = objective.residuals(candidate)
            trial_cost = 0.5 * float(trial @ trial)
            if np.isfinite(trial_cost) and trial_cost < cost:
                break
            damping *= 10.0
            if damping > max_damping:
                logger.debug("LM gave up at iteration %d: damping %.3g", iteration, damping)
                return SolverResult(
                    params, cost, iteration, False, "could not reduce the sum of squares"
                )

        linear = residuals + jac @ step
        predicted = (cost - 0.5 * float(linear @ linear)) / cost
        actual = (cost - trial_cost) / cost

        params, residuals, cost = candidate, trial, trial_cost
        damping = max(damping / 10.0, 1e-12)
        logger.debug("LM iteration %d: cost=%.10g damping=%.3g", iteration, cost, damping)

        if actual <= options.ftol and predicted <= options.ftol:
            return SolverResult(params, cost, iteration, True, "cost reduction below ftol")

    return SolverResult(
        params, cost, options.max_iterations, False, "maximum number of iterations reached"
    )
