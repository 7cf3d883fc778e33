import cmath
import math

import pytest

from newton import ComplexNumber, IterationState, Polynomial, newton_iterate, newton_step

CUBE_PLUS_ONE = Polynomial.from_values([1, 0, 0, 1])
CUBE_ROOTS_OF_MINUS_ONE = [cmath.exp(1j * math.pi * k / 3) for k in (1, 3, 5)]


def _distance_to_nearest_root(point):
    return min(abs(point.to_complex() - root) for root in CUBE_ROOTS_OF_MINUS_ONE)


def test_single_step_applies_newton_formula():
    x = ComplexNumber(2.0, 2.0)
    next_point, delta = newton_step(x, CUBE_PLUS_ONE, CUBE_PLUS_ONE.derive())
    z = 2 + 2j
    expected_delta = (z ** 3 + 1) / (3 * z ** 2)
    assert delta.to_complex() == pytest.approx(expected_delta)
    assert next_point.to_complex() == pytest.approx(z - expected_delta)


def test_converges_to_a_cube_root_of_minus_one():
    result = newton_iterate(ComplexNumber(2.0, 2.0), CUBE_PLUS_ONE)
    assert result.state is IterationState.CONVERGED
    assert _distance_to_nearest_root(result.point) < 1e-9
    assert result.iterations >= 30


def test_large_corrections_do_not_consume_the_budget():
    # far from the roots the first corrections are larger than the tolerance
    start = ComplexNumber(40.0, 40.0)
    _, delta = newton_step(start, CUBE_PLUS_ONE, CUBE_PLUS_ONE.derive())
    assert delta.absolute_value() >= 0.5

    result = newton_iterate(start, CUBE_PLUS_ONE, max_iterations=30, tolerance=0.5)
    assert result.iterations > 30
    assert _distance_to_nearest_root(result.point) < 1e-9


def test_iteration_count_counts_every_physical_step():
    derivative = CUBE_PLUS_ONE.derive()
    start = ComplexNumber(40.0, 40.0)
    result = newton_iterate(start, CUBE_PLUS_ONE, derivative, max_iterations=5, tolerance=0.5)

    point = start
    small_steps = 0
    steps = 0
    while small_steps < 5:
        point, delta = newton_step(point, CUBE_PLUS_ONE, derivative)
        steps += 1
        if delta.absolute_value() < 0.5:
            small_steps += 1
    assert result.iterations == steps
    assert result.point == point


def test_zero_budget_takes_no_steps():
    start = ComplexNumber(2.0, 2.0)
    result = newton_iterate(start, CUBE_PLUS_ONE, max_iterations=0)
    assert result.iterations == 0
    assert result.point == start
    assert result.state is IterationState.CONVERGED


def test_does_not_mutate_starting_point():
    start = ComplexNumber(2.0, 2.0)
    newton_iterate(start, CUBE_PLUS_ONE)
    assert start == ComplexNumber(2.0, 2.0)


def test_zero_derivative_propagates_non_finite_values():
    # derivative of x^2 + 1 vanishes at the origin
    p = Polynomial.from_values([1, 0, 1])
    result = newton_iterate(ComplexNumber(0.0, 0.0), p, max_iterations=30)
    assert not result.point.is_finite()
    assert result.iterations == 30
    assert result.state is IterationState.CONVERGED


def test_step_limit_stops_the_run():
    result = newton_iterate(ComplexNumber(40.0, 40.0), CUBE_PLUS_ONE, step_limit=3)
    assert result.iterations == 3
    assert result.state is IterationState.EXHAUSTED


def test_rotating_the_start_rotates_the_result():
    omega = cmath.exp(2j * math.pi / 3)
    start = 2 + 2j
    a = newton_iterate(ComplexNumber.from_complex(start), CUBE_PLUS_ONE)
    b = newton_iterate(ComplexNumber.from_complex(start * omega), CUBE_PLUS_ONE)
    assert b.point.to_complex() == pytest.approx(a.point.to_complex() * omega, abs=1e-9)
