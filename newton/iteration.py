"""Newton's method applied to a single starting point."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional

from .complex_number import ComplexNumber
from .polynomial import Polynomial

MAX_ITERATIONS = 30
CONVERGENCE_TOLERANCE = 0.5


class IterationState(enum.Enum):
    ITERATING = "iterating"
    CONVERGED = "converged"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class IterationResult:
    """Outcome of iterating one point."""

    point: ComplexNumber
    iterations: int
    state: IterationState


def newton_step(point: ComplexNumber, polynomial: Polynomial, derivative: Polynomial) -> tuple[ComplexNumber, ComplexNumber]:
    """Return ``(next_point, delta)`` for one step ``x - p(x) / p'(x)``."""

    delta = polynomial.evaluate(point).divide(derivative.evaluate(point))
    return point.subtract(delta), delta


def newton_iterate(
    point: ComplexNumber,
    polynomial: Polynomial,
    derivative: Optional[Polynomial] = None,
    max_iterations: int = MAX_ITERATIONS,
    tolerance: float = CONVERGENCE_TOLERANCE,
    *,
    step_limit: Optional[int] = None,
) -> IterationResult:
    """Refine ``point`` with Newton's method.

    Only steps whose correction is smaller than ``tolerance`` consume the
    ``max_iterations`` budget, so the run continues until that many small
    steps happened. A correction that is not finite compares as small and is
    counted as well, which lets non-finite runs terminate. ``iterations`` is
    the number of physical steps taken. ``step_limit`` optionally caps the
    physical steps; a run stopped by it ends in ``EXHAUSTED``.
    """

    if derivative is None:
        derivative = polynomial.derive()

    state = IterationState.ITERATING
    budget_used = 0
    iterations = 0
    while budget_used < max_iterations:
        if step_limit is not None and iterations >= step_limit:
            state = IterationState.EXHAUSTED
            break
        point, delta = newton_step(point, polynomial, derivative)
        iterations += 1
        if not delta.absolute_value() >= tolerance:
            budget_used += 1

    if state is IterationState.ITERATING:
        state = IterationState.CONVERGED
    return IterationResult(point=point, iterations=iterations, state=state)
