"""Exceptions raised while building or querying USL models."""

from __future__ import annotations

from typing import Sequence, Tuple


class USLError(Exception):
    """Base class for every error raised by the package."""


class DomainError(USLError, ValueError):
    """A measurement quantity is outside the domain of Little's Law."""


class InsufficientDataError(USLError, ValueError):
    """Too few measurements were supplied to fit the three USL coefficients."""

    def __init__(self, count: int, required: int):
        super().__init__(f"must have at least {required} measurements, got {count}")
        self.count = count
        self.required = required


class UndefinedQueryError(USLError, ArithmeticError):
    """An analytic query has no finite answer for the model's coefficients."""


class NonConvergenceError(USLError, RuntimeError):
    """
    The solver stopped without converging.

    The best parameters it reached are kept on the exception so callers can
    inspect them, retry with other options, or opt into a degraded model via
    `best_effort_model()`.
    """

    def __init__(self, params: Sequence[float], iterations: int, message: str = ""):
        self.params: Tuple[float, ...] = tuple(float(p) for p in params)
        self.iterations = iterations
        self.message = message
        detail = f": {message}" if message else ""
        super().__init__(
            f"fit did not converge after {iterations} iterations{detail} "
            f"(sigma={self.params[0]:.6g}, kappa={self.params[1]:.6g}, lambda={self.params[2]:.6g})"
        )

    def best_effort_model(self):
        """Return a Model built from the last parameters the solver reached."""
        from .model import Model

        sigma, kappa, lam = self.params
        return Model(sigma=sigma, kappa=kappa, lam=lam)
