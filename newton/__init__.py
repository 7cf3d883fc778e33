"""Public API for Newton fractal rendering utilities."""

from .colorizer import DEFAULT_PALETTE, DEFAULT_PALETTE_NAMES, PixelColorizer, color_from_name, palette_from_names
from .complex_number import ZERO, ComplexNumber
from .iteration import IterationResult, IterationState, newton_iterate, newton_step
from .polynomial import Polynomial
from .registry import RootRegistry
from .renderer import (
    REFERENCE_COEFFICIENTS,
    PixelSample,
    RenderConfig,
    RenderResult,
    RenderSession,
    SamplingMetadata,
    pixel_to_complex,
    render_frame,
    sampling_grid,
)

__all__ = [
    "ComplexNumber",
    "DEFAULT_PALETTE",
    "DEFAULT_PALETTE_NAMES",
    "IterationResult",
    "IterationState",
    "PixelColorizer",
    "PixelSample",
    "Polynomial",
    "REFERENCE_COEFFICIENTS",
    "RenderConfig",
    "RenderResult",
    "RenderSession",
    "RootRegistry",
    "SamplingMetadata",
    "ZERO",
    "color_from_name",
    "newton_iterate",
    "newton_step",
    "palette_from_names",
    "pixel_to_complex",
    "render_frame",
    "sampling_grid",
]
