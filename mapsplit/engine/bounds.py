"""Bounding boxes of document nodes.

Curves are bounded exactly: svgpathtools computes cubic and quadratic boxes
from the roots of the derivative, so a box never stops at the control
polygon and never falls short of the curve.
"""

from __future__ import annotations

import math
from collections.abc import Iterable

import numpy as np
from svgpathtools import CubicBezier, Line

from mapsplit.svg.nodes import Group, Node, Opaque, PathNode, Segment, Shape, Subpath, Text
from mapsplit.utils.affine import (
    IDENTITY,
    Affine,
    transform_apply,
    transform_apply_array,
    transform_compose,
)
from mapsplit.utils.geometry import Rect, bbox, union_all

# Circle/ellipse as four cubics: control distance for a quarter arc.
KAPPA = 4.0 * (math.sqrt(2.0) - 1.0) / 3.0

UNBOUNDED = Rect(-math.inf, -math.inf, math.inf, math.inf)


class BoundsCache:
    """Per-traversal cache of node boxes, keyed by node identity and transform.

    Each tile pass builds its own cache and drops it afterwards, so parallel
    passes share nothing and a cache never outlives the geometry it saw.
    """

    def __init__(self) -> None:
        self._boxes: dict[tuple[int, Affine], Rect | None] = {}
        self.hits = 0

    def get(self, node: Node, transform: Affine) -> tuple[bool, Rect | None]:
        key = (id(node), transform)
        if key in self._boxes:
            self.hits += 1
            return True, self._boxes[key]
        return False, None

    def put(self, node: Node, transform: Affine, box: Rect | None) -> None:
        self._boxes[(id(node), transform)] = box


def bounding_box(
    node: Node,
    accumulated_transform: Affine = IDENTITY,
    cache: BoundsCache | None = None,
) -> Rect | None:
    """Tightest axis-aligned box of ``node`` after ``accumulated_transform``.

    ``accumulated_transform`` is everything above the node; the node's own
    transform is applied on top. Returns None for nodes that draw nothing
    (an empty group, a path without segments).
    """
    if cache is not None:
        found, box = cache.get(node, accumulated_transform)
        if found:
            return box

    full = transform_compose(accumulated_transform, node.transform)
    if not full.is_finite() or (not isinstance(node, Group) and not geometry_is_finite(node)):
        # Unknown extent: never lets a subtree be culled past the clip checks.
        box = UNBOUNDED
    elif isinstance(node, Group):
        box = union_all(bounding_box(child, full, cache) for child in node.children)
    elif isinstance(node, (Text, Opaque)):
        anchor = transform_apply(full, node.anchor)
        box = Rect(anchor.real, anchor.imag, anchor.real, anchor.imag)
    elif isinstance(node, Shape) and node.kind in ("polyline", "polygon"):
        # Straight edges: the vertices bound the outline.
        points = np.array([(p.real, p.imag) for p in node.points], dtype=np.float64).reshape(-1, 2)
        box = bbox(transform_apply_array(full, points))
    elif isinstance(node, (PathNode, Shape)):
        box = segments_bbox(transform_segment(seg, full) for seg in node_segments(node))
    else:
        raise TypeError(f"Unknown node kind: {type(node).__name__}")

    if cache is not None:
        cache.put(node, accumulated_transform, box)
    return box


def segments_bbox(segments: Iterable[Segment]) -> Rect | None:
    boxes = []
    for seg in segments:
        if is_degenerate_segment(seg):
            p = seg.start
            boxes.append(Rect(p.real, p.imag, p.real, p.imag))
            continue
        xmin, xmax, ymin, ymax = seg.bbox()
        boxes.append(Rect(float(xmin), float(ymin), float(xmax), float(ymax)))
    return union_all(boxes)


def transform_segment(seg: Segment, t: Affine) -> Segment:
    """Map a segment through ``t``. Béziers stay Béziers of the same degree."""
    if t.is_identity:
        return seg
    return type(seg)(*(transform_apply(t, p) for p in seg.bpoints()))


def transform_subpaths(subpaths: list[Subpath], t: Affine) -> list[Subpath]:
    return [
        Subpath(segments=[transform_segment(seg, t) for seg in sp.segments], closed=sp.closed)
        for sp in subpaths
    ]


def node_segments(node: PathNode | Shape) -> list[Segment]:
    return [seg for sp in node_subpaths(node) for seg in sp.segments]


def node_subpaths(node: PathNode | Shape) -> list[Subpath]:
    """Geometry of a path or primitive shape as absolute subpaths."""
    if isinstance(node, PathNode):
        return node.subpaths
    return shape_subpaths(node)


def shape_subpaths(shape: Shape) -> list[Subpath]:
    p = shape.params
    if shape.kind == "rect":
        x, y = p.get("x", 0.0), p.get("y", 0.0)
        w, h = p.get("width", 0.0), p.get("height", 0.0)
        rx, ry = _corner_radii(p, w, h)
        if rx == 0 or ry == 0:
            corners = [complex(x, y), complex(x + w, y), complex(x + w, y + h), complex(x, y + h)]
            return [_polygon(corners, closed=True)]
        k = KAPPA
        segments = [
            Line(complex(x + rx, y), complex(x + w - rx, y)),
            CubicBezier(
                complex(x + w - rx, y), complex(x + w - rx + k * rx, y),
                complex(x + w, y + ry - k * ry), complex(x + w, y + ry),
            ),
            Line(complex(x + w, y + ry), complex(x + w, y + h - ry)),
            CubicBezier(
                complex(x + w, y + h - ry), complex(x + w, y + h - ry + k * ry),
                complex(x + w - rx + k * rx, y + h), complex(x + w - rx, y + h),
            ),
            Line(complex(x + w - rx, y + h), complex(x + rx, y + h)),
            CubicBezier(
                complex(x + rx, y + h), complex(x + rx - k * rx, y + h),
                complex(x, y + h - ry + k * ry), complex(x, y + h - ry),
            ),
            Line(complex(x, y + h - ry), complex(x, y + ry)),
            CubicBezier(
                complex(x, y + ry), complex(x, y + ry - k * ry),
                complex(x + rx - k * rx, y), complex(x + rx, y),
            ),
        ]
        return [Subpath(segments=[s for s in segments if s.start != s.end], closed=True)]

    if shape.kind in ("circle", "ellipse"):
        cx, cy = p.get("cx", 0.0), p.get("cy", 0.0)
        if shape.kind == "circle":
            rx = ry = p.get("r", 0.0)
        else:
            rx, ry = p.get("rx", 0.0), p.get("ry", 0.0)
        return [Subpath(segments=_ellipse_cubics(complex(cx, cy), rx, ry), closed=True)]

    if shape.kind == "line":
        start = complex(p.get("x1", 0.0), p.get("y1", 0.0))
        end = complex(p.get("x2", 0.0), p.get("y2", 0.0))
        return [Subpath(segments=[Line(start, end)], closed=False)]

    if shape.kind in ("polyline", "polygon"):
        return [_polygon(shape.points, closed=shape.kind == "polygon")]

    raise TypeError(f"Unknown shape kind: {shape.kind}")


def shape_is_degenerate(shape: Shape) -> bool:
    """Zero-size primitives draw nothing."""
    p = shape.params
    if shape.kind == "rect":
        return p.get("width", 0.0) <= 0 or p.get("height", 0.0) <= 0
    if shape.kind == "circle":
        return p.get("r", 0.0) <= 0
    if shape.kind == "ellipse":
        return p.get("rx", 0.0) <= 0 or p.get("ry", 0.0) <= 0
    if shape.kind == "line":
        return p.get("x1", 0.0) == p.get("x2", 0.0) and p.get("y1", 0.0) == p.get("y2", 0.0)
    if shape.kind == "polyline":
        return len(shape.points) < 2
    return len(shape.points) < 3


def geometry_is_finite(node: Node) -> bool:
    """False if any coordinate or transform entry is NaN or infinite."""
    if not node.transform.is_finite():
        return False
    if isinstance(node, PathNode):
        values = [c for seg in node.segments() for p in seg.bpoints() for c in (p.real, p.imag)]
    elif isinstance(node, Shape):
        values = list(node.params.values()) + [c for p in node.points for c in (p.real, p.imag)]
    elif isinstance(node, (Text, Opaque)):
        values = [node.anchor.real, node.anchor.imag]
    else:
        return True
    return bool(np.all(np.isfinite(np.asarray(values, dtype=np.float64)))) if values else True


def _corner_radii(p: dict[str, float], w: float, h: float) -> tuple[float, float]:
    rx = p.get("rx")
    ry = p.get("ry")
    if rx is None and ry is None:
        return 0.0, 0.0
    rx = ry if rx is None else rx
    ry = rx if ry is None else ry
    return min(max(rx, 0.0), w / 2), min(max(ry, 0.0), h / 2)


def _ellipse_cubics(center: complex, rx: float, ry: float) -> list[Segment]:
    k = KAPPA
    right = center + rx
    bottom = center + 1j * ry
    left = center - rx
    top = center - 1j * ry
    return [
        CubicBezier(right, right + 1j * k * ry, bottom + k * rx, bottom),
        CubicBezier(bottom, bottom - k * rx, left + 1j * k * ry, left),
        CubicBezier(left, left - 1j * k * ry, top - k * rx, top),
        CubicBezier(top, top + k * rx, right - 1j * k * ry, right),
    ]


def _polygon(points: list[complex], closed: bool) -> Subpath:
    segments = [Line(a, b) for a, b in zip(points, points[1:]) if a != b]
    if closed and len(points) > 2 and points[-1] != points[0]:
        segments.append(Line(points[-1], points[0]))
    return Subpath(segments=segments, closed=closed)


def is_degenerate_segment(seg: Segment) -> bool:
    """All control points coincide: the segment is a single point."""
    start = seg.start
    return all(p == start for p in seg.bpoints())
