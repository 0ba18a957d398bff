"""Universal Scalability Law models built from observed measurements."""

from .errors import (
    DomainError,
    InsufficientDataError,
    NonConvergenceError,
    UndefinedQueryError,
    USLError,
)
from .fitting import MIN_MEASUREMENTS, FitResult, fit
from .measurement import Measurement
from .model import Bottleneck, Model
from .samples import get_sample, list_samples
from .solver import FitOptions, Objective, SolverResult, levenberg_marquardt, scipy_solver

__version__ = "0.3.1"

__all__ = [
    "Bottleneck",
    "DomainError",
    "FitOptions",
    "FitResult",
    "InsufficientDataError",
    "MIN_MEASUREMENTS",
    "Measurement",
    "Model",
    "NonConvergenceError",
    "Objective",
    "SolverResult",
    "UndefinedQueryError",
    "USLError",
    "fit",
    "get_sample",
    "levenberg_marquardt",
    "list_samples",
    "scipy_solver",
]
