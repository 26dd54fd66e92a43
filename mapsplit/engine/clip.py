"""Clip one leaf node against an axis-aligned rectangle.

The rectangle lives in the frame the node's transform maps into (the tile
frame during a split). Geometry is carried into that frame, cut there, and
mapped back through the inverse transform, so the returned node keeps its
transform and everything the transform scales (stroke width, dashes, ...).

Segments are cut at the parameters where ``x(t)`` or ``y(t)`` meets a clip
edge. svgpathtools gives the power-basis coefficients, numpy the roots.
Every piece between two cuts lies on one side of the edge, so a midpoint
test classifies it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

import numpy as np
from svgpathtools import Line

from mapsplit.engine.bounds import (
    bounding_box,
    geometry_is_finite,
    is_degenerate_segment,
    node_subpaths,
    shape_is_degenerate,
    transform_subpaths,
)
from mapsplit.svg.nodes import Group, Node, Opaque, PathNode, Segment, Shape, Subpath, Text
from mapsplit.utils.affine import transform_apply, transform_inverse
from mapsplit.utils.geometry import Rect

logger = logging.getLogger(__name__)

# Parameter-space tolerance for root filtering and de-duplication.
T_EPS = 1e-9

# (axis, edge value): axis 0 is x, 1 is y
Snap = tuple[int, float]
WarnFn = Callable[[str, str], None]


def _log_warning(node: str, reason: str) -> None:
    logger.warning("%s dropped: %s", node, reason)


def clip_shape(
    node: Node,
    rect: Rect,
    close_policy: str = "reclose",
    warn: WarnFn | None = None,
) -> list[Node]:
    """Return the parts of ``node`` inside ``rect``: ``[]``, ``[node]`` or a rewritten path.

    ``close_policy`` decides what happens to a closed subpath that crosses
    the rectangle:

    - ``"reclose"``: clipped against each edge in turn, exits joined to
      re-entries along the edge, so fills stay correct.
    - ``"open"``: the inside pieces are kept as open runs and the node loses
      its fill.

    Nodes whose geometry cannot be clipped (non-finite coordinates, a
    singular transform, zero-size primitives) are dropped and reported
    through ``warn``.
    """
    if close_policy not in ("reclose", "open"):
        raise ValueError(f"Unknown close policy: {close_policy!r}")
    if isinstance(node, Group):
        raise TypeError("clip_shape takes leaf nodes; groups are walked by the splitter")
    warn = warn or _log_warning

    if not geometry_is_finite(node):
        warn(node.label, "non-finite coordinates")
        return []
    if transform_inverse(node.transform) is None:
        warn(node.label, "non-invertible transform")
        return []

    if isinstance(node, (Text, Opaque)):
        anchor = transform_apply(node.transform, node.anchor)
        return [node] if rect.contains_point(anchor, rect.tolerance()) else []

    if isinstance(node, Shape) and shape_is_degenerate(node):
        warn(node.label, "degenerate primitive")
        return []
    if isinstance(node, PathNode) and all(is_degenerate_segment(s) for s in node.segments()):
        warn(node.label, "zero-length geometry")
        return []

    box = bounding_box(node)
    if box is None or not rect.overlaps(box):
        return []
    if rect.contains(box):
        return [node]

    subpaths = transform_subpaths(node_subpaths(node), node.transform)
    clipped: list[Subpath] = []
    opened = False
    for sp in subpaths:
        if sp.closed and close_policy == "reclose":
            clipped.extend(reclose_subpath(sp, rect))
        else:
            runs = clip_subpath(sp, rect)
            if sp.closed and not (len(runs) == 1 and runs[0].closed):
                opened = opened or bool(runs)
            clipped.extend(runs)

    if not clipped:
        return []

    inverse = transform_inverse(node.transform)
    style = dict(node.style)
    if opened:
        style["fill"] = "none"
    result = PathNode(
        transform=node.transform,
        style=style,
        attributes=dict(node.attributes),
        subpaths=transform_subpaths(clipped, inverse),
        source_d=None,
    )
    return [result]


# ── Open runs ──────────────────────────────────────────────────────────


def clip_subpath(sp: Subpath, rect: Rect) -> list[Subpath]:
    """Cut a subpath at the rectangle's edges and keep the runs inside.

    A closed subpath that never leaves the rectangle comes back closed;
    otherwise every run is open. For a closed subpath the run crossing the
    start point is joined into one.
    """
    edges: list[Snap] = [(0, rect.xmin), (0, rect.xmax), (1, rect.ymin), (1, rect.ymax)]
    tol = rect.tolerance()

    pieces: list[tuple[Segment, bool]] = []
    for seg in sp.segments:
        for piece, mid in split_segment(seg, edges):
            pieces.append((piece, rect.contains_point(mid, tol)))

    if not any(inside for _, inside in pieces):
        return []
    if all(inside for _, inside in pieces):
        return [Subpath(segments=[p for p, _ in pieces], closed=sp.closed)]

    runs: list[list[Segment]] = []
    current: list[Segment] = []
    for piece, inside in pieces:
        if inside:
            current.append(piece)
        elif current:
            runs.append(current)
            current = []
    if current:
        runs.append(current)

    # The last run wraps around into the first.
    if sp.closed and len(runs) > 1 and pieces[0][1] and pieces[-1][1]:
        runs[0] = runs.pop() + runs[0]

    return [Subpath(segments=_joined(run), closed=False) for run in runs]


# ── Sutherland–Hodgman on curved outlines ──────────────────────────────


def reclose_subpath(sp: Subpath, rect: Rect) -> list[Subpath]:
    """Clip a closed subpath against the four half-planes of ``rect``."""
    segments = list(sp.segments)
    for axis, value, keep_below in (
        (0, rect.xmin, False),
        (0, rect.xmax, True),
        (1, rect.ymin, False),
        (1, rect.ymax, True),
    ):
        segments = clip_half_plane(segments, axis, value, keep_below)
        if not segments:
            return []
    return [Subpath(segments=segments, closed=True)]


def clip_half_plane(
    segments: list[Segment], axis: int, value: float, keep_below: bool
) -> list[Segment]:
    """Clip a closed loop of segments to one side of ``axis == value``.

    Where the loop leaves the half-plane and comes back, the exit and the
    re-entry point are joined by a straight line along the edge.
    """
    tol = 1e-9 * max(1.0, abs(value))

    def inside(p: complex) -> bool:
        coord = p.real if axis == 0 else p.imag
        return coord <= value + tol if keep_below else coord >= value - tol

    pieces = [
        (piece, inside(mid))
        for seg in segments
        for piece, mid in split_segment(seg, [(axis, value)])
    ]
    if not any(flag for _, flag in pieces):
        return []
    if all(flag for _, flag in pieces):
        return segments

    # Start at an inside piece that follows an outside one.
    first = next(i for i, (_, flag) in enumerate(pieces) if flag and not pieces[i - 1][1])
    ordered = pieces[first:] + pieces[:first]

    out: list[Segment] = []
    for piece, flag in ordered:
        if not flag:
            continue
        if out and out[-1].end != piece.start:
            out.append(Line(out[-1].end, piece.start))
        out.append(piece)
    if out[-1].end != out[0].start:
        out.append(Line(out[-1].end, out[0].start))
    return [seg for seg in out if not is_degenerate_segment(seg)]


# ── Segment splitting ──────────────────────────────────────────────────


def crossings(seg: Segment, axis: int, value: float) -> list[float]:
    """Parameters in (0, 1) where the segment's ``axis`` coordinate equals ``value``."""
    if is_degenerate_segment(seg):
        return []
    coeffs = np.asarray(seg.poly(return_coeffs=True), dtype=np.complex128)
    comp = (coeffs.real if axis == 0 else coeffs.imag).astype(np.float64)
    comp[-1] -= value

    scale = max(float(np.max(np.abs(comp))), 1.0)
    significant = np.nonzero(np.abs(comp[:-1]) > 1e-12 * scale)[0]
    if len(significant) == 0:
        # Constant along this axis: runs along the edge or never meets it.
        return []
    comp = comp[significant[0]:]

    ts = sorted(
        float(r.real)
        for r in np.roots(comp)
        if abs(r.imag) < T_EPS and T_EPS < r.real < 1.0 - T_EPS
    )
    deduped: list[float] = []
    for t in ts:
        if not deduped or t - deduped[-1] > T_EPS:
            deduped.append(t)
    return deduped


def split_segment(seg: Segment, edges: list[Snap]) -> list[tuple[Segment, complex]]:
    """Cut ``seg`` wherever it crosses one of ``edges``.

    Returns ``(piece, midpoint)`` pairs; the midpoint is taken on the
    original segment. Cut points are snapped onto the edge they lie on so
    neighbouring tiles agree on them exactly.
    """
    cuts: list[tuple[float, list[Snap]]] = []
    for axis, value in edges:
        for t in crossings(seg, axis, value):
            for existing_t, snaps in cuts:
                if abs(existing_t - t) <= T_EPS:
                    snaps.append((axis, value))
                    break
            else:
                cuts.append((t, [(axis, value)]))
    if not cuts:
        return [(seg, seg.point(0.5))]

    cuts.sort(key=lambda c: c[0])
    bounds: list[tuple[float, list[Snap]]] = [(0.0, []), *cuts, (1.0, [])]
    pieces = []
    for (t0, snaps0), (t1, snaps1) in zip(bounds, bounds[1:]):
        piece = seg.cropped(t0, t1)
        piece = with_ends(piece, _snap(piece.start, snaps0), _snap(piece.end, snaps1))
        pieces.append((piece, seg.point((t0 + t1) / 2)))
    return pieces


def with_ends(seg: Segment, start: complex, end: complex) -> Segment:
    """Copy of ``seg`` with its end points replaced, controls untouched."""
    points = list(seg.bpoints())
    if points[0] == start and points[-1] == end:
        return seg
    points[0] = start
    points[-1] = end
    return type(seg)(*points)


def _snap(p: complex, snaps: list[Snap]) -> complex:
    x, y = p.real, p.imag
    for axis, value in snaps:
        if axis == 0:
            x = value
        else:
            y = value
    return complex(x, y)


def _joined(run: list[Segment]) -> list[Segment]:
    """Make each piece start exactly where the previous one ended."""
    out = [run[0]]
    for seg in run[1:]:
        out.append(with_ends(seg, out[-1].end, seg.end))
    return out
