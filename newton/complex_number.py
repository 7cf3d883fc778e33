"""Immutable complex value type used by the Newton iteration."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True, eq=False)
class ComplexNumber:
    """A complex number with float64 real and imaginary parts.

    Every operation returns a new instance. Division by an exact zero is not
    guarded and yields non-finite parts instead of raising.
    """

    real: float = 0.0
    imaginary: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "real", float(self.real))
        object.__setattr__(self, "imaginary", float(self.imaginary))

    @classmethod
    def from_complex(cls, value: complex) -> ComplexNumber:
        value = complex(value)
        return cls(value.real, value.imag)

    def to_complex(self) -> complex:
        return complex(self.real, self.imaginary)

    def add(self, other: ComplexNumber) -> ComplexNumber:
        return ComplexNumber(self.real + other.real, self.imaginary + other.imaginary)

    def subtract(self, other: ComplexNumber) -> ComplexNumber:
        return ComplexNumber(self.real - other.real, self.imaginary - other.imaginary)

    def multiply(self, other: ComplexNumber) -> ComplexNumber:
        return ComplexNumber(
            self.real * other.real - self.imaginary * other.imaginary,
            self.real * other.imaginary + self.imaginary * other.real,
        )

    def conjugate(self) -> ComplexNumber:
        return ComplexNumber(self.real, -self.imaginary)

    def divide(self, other: ComplexNumber) -> ComplexNumber:
        """Divide by ``other`` through multiplication with its conjugate."""

        numerator = self.multiply(other.conjugate())
        denominator = np.float64(other.real * other.real + other.imaginary * other.imaginary)
        with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
            real = np.float64(numerator.real) / denominator
            imaginary = np.float64(numerator.imaginary) / denominator
        return ComplexNumber(float(real), float(imaginary))

    def absolute_value(self) -> float:
        return math.sqrt(self.real * self.real + self.imaginary * self.imaginary)

    def angle(self) -> float:
        """Single-quadrant angle ``atan(imaginary / real)`` in radians."""

        with np.errstate(divide="ignore", invalid="ignore"):
            ratio = np.float64(self.imaginary) / np.float64(self.real)
        return float(np.arctan(ratio))

    def is_finite(self) -> bool:
        return math.isfinite(self.real) and math.isfinite(self.imaginary)

    __add__ = add
    __sub__ = subtract
    __mul__ = multiply
    __truediv__ = divide
    __abs__ = absolute_value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ComplexNumber):
            return NotImplemented
        return self.real == other.real and self.imaginary == other.imaginary

    def __hash__(self) -> int:
        return hash((self.real, self.imaginary))

    def __str__(self) -> str:
        return f"({self.real} + {self.imaginary}i)"


ZERO = ComplexNumber(0.0, 0.0)
