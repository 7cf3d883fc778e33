"""Polynomials over :class:`ComplexNumber` coefficients."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Union

from .complex_number import ZERO, ComplexNumber

Number = Union[int, float, complex, ComplexNumber]


def _as_complex_number(value: Number) -> ComplexNumber:
    if isinstance(value, ComplexNumber):
        return value
    return ComplexNumber.from_complex(value)


@dataclass(frozen=True)
class Polynomial:
    """Coefficient list where index ``i`` holds the degree-``i`` coefficient.

    The coefficient tuple may be empty (the zero polynomial) and trailing zero
    coefficients are kept as given.
    """

    coefficients: tuple[ComplexNumber, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "coefficients",
            tuple(_as_complex_number(c) for c in self.coefficients),
        )

    @classmethod
    def from_values(cls, values: Iterable[Number]) -> Polynomial:
        return cls(tuple(values))

    def __len__(self) -> int:
        return len(self.coefficients)

    def append(self, coefficient: Number) -> Polynomial:
        """Return a copy extended by the next higher-degree coefficient."""

        return Polynomial(self.coefficients + (_as_complex_number(coefficient),))

    def evaluate(self, x: Union[float, ComplexNumber]) -> ComplexNumber:
        """Evaluate the polynomial at ``x`` by accumulating powers term by term."""

        if not isinstance(x, ComplexNumber):
            x = ComplexNumber(float(x), 0.0)

        total = ZERO
        for degree, coefficient in enumerate(self.coefficients):
            term = coefficient
            if degree > 0:
                power = x
                for _ in range(degree - 1):
                    power = power.multiply(x)
                term = coefficient.multiply(power)
            total = total.add(term)
        return total

    def derive(self) -> Polynomial:
        return Polynomial(
            tuple(
                self.coefficients[degree].multiply(ComplexNumber(float(degree)))
                for degree in range(1, len(self.coefficients))
            )
        )

    def __str__(self) -> str:
        terms = [str(coefficient) + "x" * degree for degree, coefficient in enumerate(self.coefficients)]
        return " + ".join(terms)
