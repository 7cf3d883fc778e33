"""Rendering primitives for Newton fractal frames."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from .colorizer import DEFAULT_PALETTE, RGB, PixelColorizer
from .complex_number import ComplexNumber
from .iteration import CONVERGENCE_TOLERANCE, MAX_ITERATIONS, IterationResult, newton_iterate
from .polynomial import Polynomial
from .registry import PROXIMITY_THRESHOLD, RootRegistry

COORDINATE_EPSILON = 1e-4

# x^3 + 1
REFERENCE_COEFFICIENTS = (
    ComplexNumber(1.0),
    ComplexNumber(0.0),
    ComplexNumber(0.0),
    ComplexNumber(1.0),
)

BACKENDS = ("python", "tensorflow")


@dataclass(frozen=True)
class RenderConfig:
    """Parameters that describe a single render of a Newton fractal."""

    width: int
    height: int
    x_min: float = -1.0
    x_max: float = 1.0
    y_min: float = -1.0
    y_max: float = 1.0
    coefficients: tuple[ComplexNumber, ...] = REFERENCE_COEFFICIENTS
    max_iterations: int = MAX_ITERATIONS
    tolerance: float = CONVERGENCE_TOLERANCE
    proximity: float = PROXIMITY_THRESHOLD
    epsilon: float = COORDINATE_EPSILON
    palette: tuple[RGB, ...] = DEFAULT_PALETTE
    step_limit: Optional[int] = None

    def __post_init__(self) -> None:
        if self.max_iterations < 0:
            raise ValueError("max_iterations must not be negative.")
        if not self.tolerance >= 0:
            raise ValueError("tolerance must not be negative.")
        if not self.proximity >= 0:
            raise ValueError("proximity must not be negative.")
        if self.step_limit is not None and self.step_limit <= 0:
            raise ValueError("step_limit must be positive when given.")
        if not self.palette:
            raise ValueError("palette must contain at least one colour.")
        for color in self.palette:
            if len(color) != 3 or any(not 0 <= channel <= 255 or channel != int(channel) for channel in color):
                raise ValueError(f"palette entry {color!r} is not an RGB triple of integers in [0, 255].")

    @property
    def polynomial(self) -> Polynomial:
        return Polynomial(self.coefficients)


@dataclass(frozen=True)
class SamplingMetadata:
    """Metadata describing the sampling grid for a rendered frame."""

    x_min: float
    y_min: float
    x_step: float
    y_step: float
    x_res: int
    y_res: int


@dataclass(frozen=True)
class PixelSample:
    """Classification of a single pixel."""

    row: int
    col: int
    start: ComplexNumber
    point: ComplexNumber
    iterations: int
    root_index: int


@dataclass(frozen=True)
class RenderResult:
    """Container for the results of a Newton fractal render."""

    colors: np.ndarray
    root_indices: np.ndarray
    iterations: np.ndarray
    roots: tuple[ComplexNumber, ...]
    max_root_index: int
    metadata: SamplingMetadata


def _compute_metadata(config: RenderConfig) -> SamplingMetadata:
    x_res = max(int(config.width), 1)
    y_res = max(int(config.height), 1)

    x_min = np.float64(config.x_min)
    x_max = np.float64(config.x_max)
    y_min = np.float64(config.y_min)
    y_max = np.float64(config.y_max)

    return SamplingMetadata(
        x_min=float(x_min),
        y_min=float(y_min),
        x_step=float((x_max - x_min) / x_res),
        y_step=float((y_max - y_min) / y_res),
        x_res=x_res,
        y_res=y_res,
    )


def pixel_to_complex(metadata: SamplingMetadata, row: int, col: int, epsilon: float = COORDINATE_EPSILON) -> ComplexNumber:
    """Map a pixel to the plane, nudging exact zeros away from the axes."""

    x = float(np.float64(metadata.x_min) + np.float64(col) * np.float64(metadata.x_step))
    y = float(np.float64(metadata.y_min) + np.float64(row) * np.float64(metadata.y_step))
    if x == 0:
        x = epsilon
    if y == 0:
        y = epsilon
    return ComplexNumber(x, y)


def sampling_grid(metadata: SamplingMetadata, epsilon: float = COORDINATE_EPSILON) -> tuple[np.ndarray, np.ndarray]:
    """Return ``(real, imaginary)`` arrays of shape ``(y_res, x_res)`` for every pixel."""

    cols = np.arange(metadata.x_res, dtype=np.float64)
    rows = np.arange(metadata.y_res, dtype=np.float64)
    x = np.float64(metadata.x_min) + cols * np.float64(metadata.x_step)
    y = np.float64(metadata.y_min) + rows * np.float64(metadata.y_step)
    x = np.where(x == 0, epsilon, x)
    y = np.where(y == 0, epsilon, y)
    X, Y = np.meshgrid(x, y)
    return X, Y


class RenderSession:
    """Own the mutable root registry for the duration of one render.

    Pixels must be classified in a fixed order for the root indices to be
    reproducible; :meth:`render` scans rows in the outer loop and columns in
    the inner loop.
    """

    def __init__(self, config: RenderConfig, registry: Optional[RootRegistry] = None) -> None:
        self.config = config
        self.metadata = _compute_metadata(config)
        self.polynomial = config.polynomial
        self.derivative = self.polynomial.derive()
        self.registry = registry if registry is not None else RootRegistry(config.proximity)
        self.colorizer = PixelColorizer(config.palette)

    def iterate(self, point: ComplexNumber) -> IterationResult:
        return newton_iterate(
            point,
            self.polynomial,
            self.derivative,
            self.config.max_iterations,
            self.config.tolerance,
            step_limit=self.config.step_limit,
        )

    def evaluate_pixel(self, row: int, col: int) -> PixelSample:
        start = pixel_to_complex(self.metadata, row, col, self.config.epsilon)
        result = self.iterate(start)
        return PixelSample(
            row=row,
            col=col,
            start=start,
            point=result.point,
            iterations=result.iterations,
            root_index=self.registry.classify(result.point),
        )

    def render_pixel(self, row: int, col: int) -> RGB:
        sample = self.evaluate_pixel(row, col)
        return self.colorizer.colorize(sample.root_index, sample.iterations)

    def _iterate_grid(self, device: Optional[str]) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        from .accelerated import iterate_grid

        real, imaginary = sampling_grid(self.metadata, self.config.epsilon)
        return iterate_grid(
            real,
            imaginary,
            self.polynomial,
            self.derivative,
            max_iterations=self.config.max_iterations,
            tolerance=self.config.tolerance,
            step_limit=self.config.step_limit,
            device=device,
        )

    def render(self, *, backend: str = "python", device: Optional[str] = None, progress=None) -> RenderResult:
        """Render every pixel, classifying the converged points row by row.

        Iteration does not depend on the registry, so the ``tensorflow``
        backend iterates the whole grid at once and then runs the same
        sequential classification pass. ``progress`` is called with
        ``(row, total_rows)`` before each row is classified.
        """

        if backend not in BACKENDS:
            raise ValueError(f"Unknown backend '{backend}'. Valid choices: {', '.join(BACKENDS)}.")

        height, width = self.metadata.y_res, self.metadata.x_res
        grid = self._iterate_grid(device) if backend == "tensorflow" else None

        root_indices = np.zeros((height, width), dtype=np.int64)
        iterations = np.zeros((height, width), dtype=np.int64)
        for row in range(height):
            if progress is not None:
                progress(row, height)
            for col in range(width):
                if grid is None:
                    sample = self.evaluate_pixel(row, col)
                    root_indices[row, col] = sample.root_index
                    iterations[row, col] = sample.iterations
                else:
                    real, imaginary, steps = grid
                    point = ComplexNumber(real[row, col], imaginary[row, col])
                    root_indices[row, col] = self.registry.classify(point)
                    iterations[row, col] = steps[row, col]

        return RenderResult(
            colors=self.colorizer.colorize_array(root_indices, iterations),
            root_indices=root_indices,
            iterations=iterations,
            roots=self.registry.roots,
            max_root_index=self.registry.max_root_index,
            metadata=self.metadata,
        )


def render_frame(config: RenderConfig, *, backend: str = "python", device: Optional[str] = None, progress=None) -> RenderResult:
    """Render a Newton fractal frame given the supplied configuration."""

    return RenderSession(config).render(backend=backend, device=device, progress=progress)
