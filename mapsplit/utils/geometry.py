"""Leaf-node geometry helpers. No engine imports."""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

# Relative slack for "inside" tests: clipped geometry mapped back and forth
# through a transform lands within a few ulps of the clip edge.
_REL_TOL = 1e-9


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle ``[xmin, xmax] × [ymin, ymax]``."""

    xmin: float
    ymin: float
    xmax: float
    ymax: float

    @classmethod
    def from_size(cls, x: float, y: float, width: float, height: float) -> Rect:
        return cls(x, y, x + width, y + height)

    @property
    def width(self) -> float:
        return self.xmax - self.xmin

    @property
    def height(self) -> float:
        return self.ymax - self.ymin

    @property
    def origin(self) -> complex:
        return complex(self.xmin, self.ymin)

    def tolerance(self) -> float:
        scale = max(1.0, abs(self.xmin), abs(self.xmax), abs(self.ymin), abs(self.ymax))
        return _REL_TOL * scale

    def contains_point(self, point: complex, tol: float = 0.0) -> bool:
        return (
            self.xmin - tol <= point.real <= self.xmax + tol
            and self.ymin - tol <= point.imag <= self.ymax + tol
        )

    def contains(self, other: Rect, tol: float | None = None) -> bool:
        """True if ``other`` lies inside this rect, allowing ``tol`` slack."""
        if tol is None:
            tol = self.tolerance()
        return (
            other.xmin >= self.xmin - tol
            and other.xmax <= self.xmax + tol
            and other.ymin >= self.ymin - tol
            and other.ymax <= self.ymax + tol
        )

    def overlaps(self, other: Rect) -> bool:
        """Strict overlap: sharing only an edge or a corner is not overlap.

        A zero-width box (a vertical line) overlaps when it runs through the
        interior, since the comparisons are against the other rect's bounds.
        """
        return (
            other.xmin < self.xmax
            and other.xmax > self.xmin
            and other.ymin < self.ymax
            and other.ymax > self.ymin
        )

    def intersects(self, other: Rect, tol: float = 0.0) -> bool:
        """Closed-interval overlap: touching counts. Used for conservative culling."""
        return (
            other.xmin <= self.xmax + tol
            and other.xmax >= self.xmin - tol
            and other.ymin <= self.ymax + tol
            and other.ymax >= self.ymin - tol
        )

    def union(self, other: Rect | None) -> Rect:
        if other is None:
            return self
        return Rect(
            min(self.xmin, other.xmin),
            min(self.ymin, other.ymin),
            max(self.xmax, other.xmax),
            max(self.ymax, other.ymax),
        )

    def is_finite(self) -> bool:
        return all(math.isfinite(v) for v in (self.xmin, self.ymin, self.xmax, self.ymax))

    def as_tuple(self) -> tuple[float, float, float, float]:
        return (self.xmin, self.ymin, self.xmax, self.ymax)


def union_all(boxes: Iterable[Rect | None]) -> Rect | None:
    """Union of boxes; ``None`` entries contribute nothing."""
    result: Rect | None = None
    for box in boxes:
        if box is None:
            continue
        result = box if result is None else result.union(box)
    return result


def bbox(points: NDArray[np.float64]) -> Rect | None:
    """Bounding box of an Nx2 point array, None when empty."""
    if len(points) == 0:
        return None
    return Rect(
        float(np.min(points[:, 0])),
        float(np.min(points[:, 1])),
        float(np.max(points[:, 0])),
        float(np.max(points[:, 1])),
    )
