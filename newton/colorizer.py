"""Map root indices and iteration counts to RGB colours."""

from __future__ import annotations

from typing import Iterable, Sequence

import numpy as np
from matplotlib import colors as mcolors

RGB = tuple[int, int, int]

DEFAULT_PALETTE_NAMES = (
    "red",
    "blue",
    "green",
    "yellow",
    "orange",
    "fuchsia",
    "gold",
    "cyan",
    "magenta",
)

DARKENING_PER_ITERATION = 2


def color_from_name(name: str) -> RGB:
    """Resolve a matplotlib/CSS colour name or ``#RRGGBB`` string to 0-255 RGB."""

    rgb = mcolors.to_rgb(name)
    return tuple(int(round(channel * 255)) for channel in rgb)


def palette_from_names(names: Iterable[str]) -> tuple[RGB, ...]:
    return tuple(color_from_name(name) for name in names)


DEFAULT_PALETTE = palette_from_names(DEFAULT_PALETTE_NAMES)


class PixelColorizer:
    """Pick a palette entry per root and darken it by the iteration count."""

    def __init__(self, palette: Sequence[RGB] = DEFAULT_PALETTE) -> None:
        if len(palette) == 0:
            raise ValueError("palette must contain at least one colour.")
        for color in palette:
            if any(channel != int(channel) for channel in color):
                raise ValueError(f"palette entry {color!r} has non-integral channels.")
        self.palette = tuple(tuple(int(channel) for channel in color) for color in palette)
        self._palette_array = np.array(self.palette, dtype=np.int64)

    def colorize(self, root_index: int, iterations: int) -> RGB:
        base = self.palette[root_index % len(self.palette)]
        shade = iterations * DARKENING_PER_ITERATION
        return tuple(min(max(0, channel - shade), 255) for channel in base)

    def colorize_array(self, root_indices: np.ndarray, iterations: np.ndarray) -> np.ndarray:
        """Vectorised :meth:`colorize` returning a ``uint8`` array of shape ``(..., 3)``."""

        root_indices = np.asarray(root_indices, dtype=np.int64)
        iterations = np.asarray(iterations, dtype=np.int64)
        base = self._palette_array[np.mod(root_indices, len(self.palette))]
        shade = (iterations * DARKENING_PER_ITERATION)[..., np.newaxis]
        return np.uint8(np.clip(base - shade, 0, 255))
