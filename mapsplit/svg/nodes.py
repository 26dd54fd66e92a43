"""Document model: the in-memory tree the splitter walks.

Node kinds form a closed set (Group, PathNode, Shape, Text, Opaque). The
geometry engine dispatches over them explicitly; nodes carry data only.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Union

from svgpathtools import CubicBezier, Line, QuadraticBezier

from mapsplit.utils.affine import IDENTITY, Affine

Segment = Union[Line, QuadraticBezier, CubicBezier]

SHAPE_KINDS = ("rect", "circle", "ellipse", "line", "polyline", "polygon")


@dataclass
class Subpath:
    """One continuous run of absolute segments, started by a moveto."""

    segments: list[Segment] = field(default_factory=list)
    closed: bool = False

    @property
    def start(self) -> complex:
        return self.segments[0].start

    @property
    def end(self) -> complex:
        return self.segments[-1].end


@dataclass
class Node:
    """Fields shared by every node kind."""

    transform: Affine = IDENTITY
    # Presentation attributes and the ``style`` property, merged.
    style: dict[str, str] = field(default_factory=dict)
    # Everything else worth round-tripping (id, class, data-*, ...).
    attributes: dict[str, str] = field(default_factory=dict)

    @property
    def label(self) -> str:
        """Short description for warnings: tag plus id when present."""
        node_id = self.attributes.get("id")
        return f"<{self.tag} id={node_id!r}>" if node_id else f"<{self.tag}>"

    @property
    def tag(self) -> str:
        raise NotImplementedError

    def clone(self) -> Node:
        return copy.deepcopy(self)


@dataclass
class Group(Node):
    children: list[Node] = field(default_factory=list)

    @property
    def tag(self) -> str:
        return "g"


@dataclass
class PathNode(Node):
    subpaths: list[Subpath] = field(default_factory=list)
    # Original ``d`` text; cleared whenever the geometry is rewritten.
    source_d: str | None = None

    @property
    def tag(self) -> str:
        return "path"

    def segments(self) -> list[Segment]:
        return [seg for sp in self.subpaths for seg in sp.segments]


@dataclass
class Shape(Node):
    """Primitive shape.

    ``params`` by kind:
      rect: x, y, width, height, rx, ry
      circle: cx, cy, r
      ellipse: cx, cy, rx, ry
      line: x1, y1, x2, y2
    ``points`` holds the vertices of polyline / polygon.
    """

    kind: str = "rect"
    params: dict[str, float] = field(default_factory=dict)
    points: list[complex] = field(default_factory=list)

    @property
    def tag(self) -> str:
        return self.kind


@dataclass
class Text(Node):
    """Text element passed through whole; ``content`` is its inner markup."""

    anchor: complex = 0j
    content: str = ""

    @property
    def tag(self) -> str:
        return "text"


@dataclass
class Opaque(Node):
    """A drawable element the splitter does not look into (image, use, ...).

    Treated like text: kept or dropped as a whole by its anchor point.
    """

    element: str = "use"
    anchor: complex = 0j
    content: str = ""

    @property
    def tag(self) -> str:
        return self.element


@dataclass
class Document:
    """A canvas: ordered node tree plus declared size in user units."""

    width: float
    height: float
    children: list[Node] = field(default_factory=list)
    # Physical unit of the width/height attributes ("mm", "px", ...) and how
    # many of them make one user unit.
    unit: str = ""
    unit_scale: float = 1.0
    # Verbatim non-drawing markup (<defs>, <style>, ...) repeated in every tile.
    definitions: list[str] = field(default_factory=list)
    # Attributes of the root <svg> element worth keeping (xmlns:*, version).
    root_attributes: dict[str, str] = field(default_factory=dict)

    def iter_nodes(self):
        """Depth-first, document order."""
        stack = list(reversed(self.children))
        while stack:
            node = stack.pop()
            yield node
            if isinstance(node, Group):
                stack.extend(reversed(node.children))


def resolve_style(chain: list[dict[str, str]]) -> dict[str, str]:
    """Cascade style mappings from outermost to innermost; innermost wins."""
    resolved: dict[str, str] = {}
    for style in chain:
        resolved.update(style)
    return resolved
