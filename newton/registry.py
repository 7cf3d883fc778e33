"""Registry of the distinct roots discovered while scanning a grid."""

from __future__ import annotations

from .complex_number import ComplexNumber

PROXIMITY_THRESHOLD = 0.01


class RootRegistry:
    """Append-only list of roots used to assign a colour index to each point.

    The default policy reproduces the classic scan: when several stored roots
    lie within ``proximity`` the last one wins, and a newly discovered root
    gets the index ``len(roots)`` after the append while a matched root gets
    its 0-based position. ``first_match`` stops at the first stored root in
    range and ``consistent_indices`` returns the 0-based position for new
    roots as well.

    Classification mutates the registry, so the indices handed out depend on
    the order in which points are classified.
    """

    def __init__(
        self,
        proximity: float = PROXIMITY_THRESHOLD,
        *,
        first_match: bool = False,
        consistent_indices: bool = False,
    ) -> None:
        self.proximity = proximity
        self.first_match = first_match
        self.consistent_indices = consistent_indices
        self._roots: list[ComplexNumber] = []
        self.max_root_index = 0

    @property
    def roots(self) -> tuple[ComplexNumber, ...]:
        return tuple(self._roots)

    def __len__(self) -> int:
        return len(self._roots)

    def find(self, point: ComplexNumber) -> int | None:
        """Return the index of the stored root matching ``point`` or ``None``."""

        match = None
        for index, root in enumerate(self._roots):
            if point.subtract(root).absolute_value() <= self.proximity:
                match = index
                if self.first_match:
                    break
        return match

    def classify(self, point: ComplexNumber) -> int:
        match = self.find(point)
        if match is not None:
            return match

        self._roots.append(point)
        index = len(self._roots)
        self.max_root_index = index + 1
        if self.consistent_indices:
            return index - 1
        return index
