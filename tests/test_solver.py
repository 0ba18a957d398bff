"""Tests for the least-squares solvers behind model fitting."""

import numpy as np
import pytest

from usl.solver import (
    FitOptions,
    Objective,
    levenberg_marquardt,
    numeric_jacobian,
    scipy_solver,
)

A = np.array([[1.0, 0.0], [1.0, 1.0], [1.0, 2.0], [1.0, 3.0]])
B = np.array([1.1, 2.9, 5.2, 6.8])


def rosenbrock():
    return Objective(
        residuals=lambda p: np.array([10.0 * (p[1] - p[0] ** 2), 1.0 - p[0]]),
        jacobian=lambda p: np.array([[-20.0 * p[0], 10.0], [-1.0, 0.0]]),
    )


@pytest.mark.parametrize("solver", [scipy_solver, levenberg_marquardt])
def test_linear_problem_matches_lstsq(solver):
    objective = Objective(residuals=lambda p: A @ p - B, jacobian=lambda p: A)
    result = solver(objective, np.zeros(2), FitOptions())
    expected = np.linalg.lstsq(A, B, rcond=None)[0]
    assert result.converged
    np.testing.assert_allclose(result.params, expected, rtol=1e-8)


@pytest.mark.parametrize("solver", [scipy_solver, levenberg_marquardt])
@pytest.mark.parametrize("analytic", [True, False])
def test_rosenbrock_converges(solver, analytic):
    objective = rosenbrock()
    if not analytic:
        objective = Objective(residuals=objective.residuals)
    result = solver(objective, np.array([-1.2, 1.0]), FitOptions())
    assert result.converged
    np.testing.assert_allclose(result.params, [1.0, 1.0], rtol=1e-6)
    assert result.cost < 1e-12


def test_levenberg_marquardt_stops_at_iteration_cap():
    result = levenberg_marquardt(rosenbrock(), np.array([-1.2, 1.0]), FitOptions(max_iterations=1))
    assert not result.converged
    assert result.iterations == 1
    assert "maximum" in result.message


def test_levenberg_marquardt_gives_up_on_an_uphill_jacobian():
    objective = Objective(residuals=lambda p: A @ p - B, jacobian=lambda p: -A)
    result = levenberg_marquardt(objective, np.zeros(2), FitOptions())
    assert not result.converged
    assert result.message == "could not reduce the sum of squares"
    np.testing.assert_array_equal(result.params, np.zeros(2))


def test_levenberg_marquardt_never_increases_cost():
    objective = rosenbrock()
    start = np.array([-1.2, 1.0])
    start_cost = 0.5 * float(objective.residuals(start) @ objective.residuals(start))
    for cap in (1, 2, 5):
        result = levenberg_marquardt(objective, start, FitOptions(max_iterations=cap))
        assert result.cost <= start_cost


def test_numeric_jacobian_of_linear_map():
    jac = numeric_jacobian(lambda p: A @ p - B, np.array([0.3, -2.0]))
    np.testing.assert_allclose(jac, A, rtol=1e-6, atol=1e-6)
