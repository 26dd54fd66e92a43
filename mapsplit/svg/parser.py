"""SVG parser: facade over ElementTree + svgpathtools.

Converts raw SVG text → Document. Path data is normalized to absolute
Line / QuadraticBezier / CubicBezier segments; arcs become cubics.
"""

from __future__ import annotations

import logging
import math
import re
import xml.etree.ElementTree as ET
from pathlib import Path as FilePath
from xml.sax.saxutils import escape

from svgpathtools import Arc, CubicBezier, parse_path

from mapsplit.errors import DocumentError
from mapsplit.svg.nodes import (
    SHAPE_KINDS,
    Document,
    Group,
    Node,
    Opaque,
    PathNode,
    Shape,
    Subpath,
    Text,
)
from mapsplit.utils.affine import IDENTITY, Affine, parse_transform, translate

logger = logging.getLogger(__name__)

SVG_NS = "http://www.w3.org/2000/svg"
XLINK_NS = "http://www.w3.org/1999/xlink"

GROUP_TAGS = {"g", "a", "switch"}
OPAQUE_TAGS = {"image", "use", "foreignObject"}
DEFINITION_TAGS = {
    "defs", "style", "title", "desc", "metadata", "symbol", "clipPath", "mask",
    "marker", "linearGradient", "radialGradient", "pattern", "filter",
}

# Presentation attributes that take part in the style cascade.
STYLE_ATTRS = {
    "fill", "fill-opacity", "fill-rule", "stroke", "stroke-width", "stroke-linecap",
    "stroke-linejoin", "stroke-miterlimit", "stroke-dasharray", "stroke-dashoffset",
    "stroke-opacity", "opacity", "color", "visibility", "display", "clip-path",
    "clip-rule", "mask", "filter", "marker-start", "marker-mid", "marker-end",
    "paint-order", "vector-effect", "shape-rendering", "font-family", "font-size",
    "font-weight", "font-style", "font-variant", "font-stretch", "text-anchor",
    "dominant-baseline", "letter-spacing", "word-spacing", "text-decoration",
}

# Geometry attributes consumed by the parser and not round-tripped verbatim.
_GEOMETRY_ATTRS = {
    "path": {"d"},
    "rect": {"x", "y", "width", "height", "rx", "ry"},
    "circle": {"cx", "cy", "r"},
    "ellipse": {"cx", "cy", "rx", "ry"},
    "line": {"x1", "y1", "x2", "y2"},
    "polyline": {"points"},
    "polygon": {"points"},
}

# User units (px) per physical unit.
_PX_PER_UNIT = {
    "": 1.0,
    "px": 1.0,
    "mm": 96 / 25.4,
    "cm": 96 / 2.54,
    "in": 96.0,
    "pt": 96 / 72,
    "pc": 16.0,
}

_LENGTH_RE = re.compile(r"^\s*([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)\s*([a-z]*|%)\s*$")
_NUMBER_RE = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")
_MOVETO_SPLIT_RE = re.compile(r"(?=[Mm])")
_LEADING_PAIR_RE = re.compile(
    r"^\s*([Mm])\s*([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)\s*,?\s*"
    r"([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)\s*,?\s*"
)


def load_svg(path: str | FilePath) -> Document:
    """Read and parse an SVG file.

    The raw bytes go to the XML parser, which honours the encoding
    declaration (UTF-8 when there is none).
    """
    try:
        data = FilePath(path).read_bytes()
    except OSError as e:
        raise DocumentError(f"Cannot read {path}: {e}") from e
    return parse_svg(data)


def parse_svg(svg_text: str | bytes) -> Document:
    """Parse raw SVG text into a Document.

    Raises DocumentError for malformed XML, a non-<svg> root, malformed path
    data or transforms, and missing or non-positive canvas dimensions.
    """
    try:
        root = ET.fromstring(svg_text)
    except (ET.ParseError, LookupError, ValueError) as e:
        raise DocumentError(f"Malformed SVG: {e}") from e

    if _local_name(root.tag) != "svg":
        raise DocumentError(f"Root element is <{_local_name(root.tag)}>, expected <svg>")

    width, height, unit, unit_scale, origin = _canvas(root)
    doc = Document(width=width, height=height, unit=unit, unit_scale=unit_scale)

    for key, value in root.attrib.items():
        name = _attr_name(key)
        if name in ("version", "preserveAspectRatio"):
            doc.root_attributes[name] = value

    # Root presentation attributes cascade into everything; the viewBox
    # origin shifts the canvas so the grid always starts at (0, 0).
    style, _ = _split_attributes(root, set())
    transform = translate(-origin.real, -origin.imag) if origin else IDENTITY
    children = _parse_children(root, doc)
    if style or not transform.is_identity:
        doc.children = [Group(transform=transform, style=style, children=children)]
    else:
        doc.children = children

    logger.info(
        "Parsed SVG: %d nodes, canvas %.1f×%.1f%s",
        sum(1 for _ in doc.iter_nodes()),
        doc.width,
        doc.height,
        f" ({unit})" if unit else "",
    )
    return doc


# ── Canvas ────────────────────────────────────────────────────────────────


def _canvas(root: ET.Element) -> tuple[float, float, str, float, complex]:
    """Return (width, height, unit, unit_scale, viewBox origin) in user units."""
    width_attr = _parse_length(root.get("width"))
    height_attr = _parse_length(root.get("height"))
    view_box = root.get("viewBox")

    if view_box is not None:
        parts = [float(n) for n in _NUMBER_RE.findall(view_box)]
        if len(parts) != 4:
            raise DocumentError(f"Malformed viewBox: {view_box!r}")
        min_x, min_y, width, height = parts
        if width <= 0 or height <= 0:
            raise DocumentError(f"Non-positive canvas size in viewBox: {view_box!r}")
        unit, unit_scale = "", 1.0
        # A percentage size fills whatever viewport embeds it: no physical size.
        if width_attr is not None and width_attr[1] != "%":
            value, unit = width_attr
            if value <= 0:
                raise DocumentError(f"Non-positive canvas width: {root.get('width')!r}")
            unit_scale = value / width
        return width, height, unit, unit_scale, complex(min_x, min_y)

    if width_attr is None or height_attr is None:
        raise DocumentError("SVG declares neither a viewBox nor width/height")
    if "%" in (width_attr[1], height_attr[1]):
        raise DocumentError("A percentage width/height needs a viewBox to size the canvas")
    (w, unit), (h, h_unit) = width_attr, height_attr
    if w <= 0 or h <= 0:
        raise DocumentError(f"Non-positive canvas size: {w}×{h}")
    px_w = w * _px_per(unit)
    px_h = h * _px_per(h_unit)
    return px_w, px_h, unit, 1.0 / _px_per(unit), 0j


def _parse_length(text: str | None) -> tuple[float, str] | None:
    if text is None:
        return None
    match = _LENGTH_RE.match(text)
    if not match:
        raise DocumentError(f"Unsupported length: {text!r}")
    return float(match.group(1)), match.group(2)


def _px_per(unit: str) -> float:
    try:
        return _PX_PER_UNIT[unit]
    except KeyError:
        raise DocumentError(f"Unsupported unit: {unit!r}") from None


# ── Elements ──────────────────────────────────────────────────────────────


def _parse_children(parent: ET.Element, doc: Document) -> list[Node]:
    nodes: list[Node] = []
    for element in parent:
        node = _parse_element(element, doc)
        if node is not None:
            nodes.append(node)
    return nodes


def _parse_element(element: ET.Element, doc: Document) -> Node | None:
    if not isinstance(element.tag, str):
        return None  # comments, processing instructions
    if _namespace(element.tag) not in ("", SVG_NS):
        logger.debug("Skipping foreign element %s", element.tag)
        return None

    tag = _local_name(element.tag)

    if tag in DEFINITION_TAGS:
        doc.definitions.append(_markup(element))
        return None

    style, attributes = _split_attributes(element, _GEOMETRY_ATTRS.get(tag, set()))
    try:
        transform = parse_transform(attributes.pop("transform", None))
    except ValueError as e:
        raise DocumentError(f"Malformed transform on <{tag}>: {e}") from e

    if tag in GROUP_TAGS:
        if tag != "g":
            logger.debug("Treating <%s> as a group", tag)
        return Group(
            transform=transform,
            style=style,
            attributes=attributes,
            children=_parse_children(element, doc),
        )
    if tag == "path":
        d = element.get("d", "")
        return PathNode(
            transform=transform,
            style=style,
            attributes=attributes,
            subpaths=parse_path_data(d),
            source_d=d,
        )
    if tag in SHAPE_KINDS:
        return _parse_shape(tag, element, transform, style, attributes, doc)
    if tag == "text":
        return Text(
            transform=transform,
            style=style,
            attributes={k: v for k, v in attributes.items() if k not in ("x", "y")},
            anchor=_anchor(element),
            content=_inner_markup(element),
        )
    if tag in OPAQUE_TAGS:
        return Opaque(
            transform=transform,
            style=style,
            attributes={k: v for k, v in attributes.items() if k not in ("x", "y")},
            element=tag,
            anchor=_anchor(element),
            content=_inner_markup(element),
        )

    logger.debug("Skipping unsupported element <%s>", tag)
    return None


def _parse_shape(
    kind: str,
    element: ET.Element,
    transform: Affine,
    style: dict[str, str],
    attributes: dict[str, str],
    doc: Document,
) -> Shape:
    shape = Shape(transform=transform, style=style, attributes=attributes, kind=kind)
    if kind in ("polyline", "polygon"):
        numbers = [float(n) for n in _NUMBER_RE.findall(element.get("points", ""))]
        if len(numbers) % 2:
            raise DocumentError(f"Odd number of coordinates in <{kind}> points")
        shape.points = [complex(x, y) for x, y in zip(numbers[::2], numbers[1::2])]
        return shape

    for name in _GEOMETRY_ATTRS[kind]:
        raw = element.get(name)
        if raw is None:
            continue
        if raw == "auto" and name in ("rx", "ry"):
            continue
        value, unit = _parse_length(raw)
        if unit == "%":
            shape.params[name] = value / 100 * _percent_base(name, doc)
        else:
            shape.params[name] = value * _px_per(unit)
    return shape


def _percent_base(name: str, doc: Document) -> float:
    """Length a percentage of attribute ``name`` refers to: the canvas width,
    its height, or the normalized diagonal for radii.
    """
    if name in ("x", "cx", "x1", "x2", "width", "rx"):
        return doc.width
    if name in ("y", "cy", "y1", "y2", "height", "ry"):
        return doc.height
    return math.hypot(doc.width, doc.height) / math.sqrt(2)


def _anchor(element: ET.Element) -> complex:
    """First x / y of the element (text may carry coordinate lists)."""
    coords = []
    for name in ("x", "y"):
        numbers = _NUMBER_RE.findall(element.get(name, "0"))
        coords.append(float(numbers[0]) if numbers else 0.0)
    return complex(coords[0], coords[1])


def _split_attributes(
    element: ET.Element, geometry: set[str]
) -> tuple[dict[str, str], dict[str, str]]:
    """Split attributes into (style cascade, other attributes).

    The ``style`` property wins over presentation attributes of the same name.
    """
    style: dict[str, str] = {}
    attributes: dict[str, str] = {}
    for key, value in element.attrib.items():
        name = _attr_name(key)
        if name is None or name in geometry:
            continue
        if name in STYLE_ATTRS:
            style[name] = value
        elif name != "style":
            attributes[name] = value

    for declaration in element.get("style", "").split(";"):
        if ":" not in declaration:
            continue
        prop, value = declaration.split(":", 1)
        if prop.strip():
            style[prop.strip()] = value.strip()
    return style, attributes


# ── Path data ─────────────────────────────────────────────────────────────


def parse_path_data(d: str) -> list[Subpath]:
    """Parse an SVG ``d`` string into absolute subpaths.

    The string is cut at every moveto so each subpath keeps its own
    closed flag; a relative moveto is rewritten against the current point.
    """
    subpaths: list[Subpath] = []
    current = 0j
    for chunk in _MOVETO_SPLIT_RE.split(d.strip()):
        if not chunk.strip():
            continue
        chunk, start = _absolute_moveto(chunk, current)
        try:
            path = parse_path(chunk)
        except Exception as e:
            raise DocumentError(f"Malformed path data near {chunk[:40]!r}: {e}") from e

        closed = chunk.rstrip().endswith(("z", "Z"))
        segments = []
        for seg in path:
            if isinstance(seg, Arc):
                segments.extend(arc_to_cubics(seg))
            else:
                segments.append(seg)
        if segments:
            subpaths.append(Subpath(segments=segments, closed=closed))
            current = segments[0].start if closed else segments[-1].end
        else:
            current = start
    return subpaths


def _absolute_moveto(chunk: str, current: complex) -> tuple[str, complex]:
    match = _LEADING_PAIR_RE.match(chunk)
    if not match:
        raise DocumentError(f"Malformed moveto in path data: {chunk[:40]!r}")
    x, y = float(match.group(2)), float(match.group(3))
    start = complex(x, y) if match.group(1) == "M" else current + complex(x, y)
    rest = chunk[match.end():]
    # Pairs after a moveto are implicit linetos of the same relativity.
    if rest and _NUMBER_RE.match(rest):
        rest = ("L " if match.group(1) == "M" else "l ") + rest
    return f"M {start.real!r},{start.imag!r} {rest}", start


def arc_to_cubics(arc: Arc) -> list[CubicBezier]:
    """Approximate an elliptical arc by cubic Béziers, at most 90° each."""
    if arc.start == arc.end:
        return []
    delta = math.radians(arc.delta)
    pieces = max(1, math.ceil(abs(delta) / (math.pi / 2) - 1e-9))
    step = delta / pieces
    k = 4.0 / 3.0 * math.tan(step / 4)
    rx, ry = arc.radius.real, arc.radius.imag

    def point(theta: float) -> complex:
        return arc.center + arc.rot_matrix * complex(rx * math.cos(theta), ry * math.sin(theta))

    def tangent(theta: float) -> complex:
        return arc.rot_matrix * complex(-rx * math.sin(theta), ry * math.cos(theta))

    theta0 = math.radians(arc.theta)
    cubics = []
    for i in range(pieces):
        a = theta0 + i * step
        b = a + step
        p0 = arc.start if i == 0 else point(a)
        p3 = arc.end if i == pieces - 1 else point(b)
        cubics.append(CubicBezier(p0, p0 + k * tangent(a), p3 - k * tangent(b), p3))
    return cubics


# ── XML helpers ───────────────────────────────────────────────────────────


def _namespace(tag: str) -> str:
    return tag[1:].split("}")[0] if tag.startswith("{") else ""


def _local_name(tag: str) -> str:
    return tag.split("}")[-1] if "}" in tag else tag


def _attr_name(key: str) -> str | None:
    """Map an ElementTree attribute key to its SVG name; None for foreign namespaces."""
    if not key.startswith("{"):
        return key
    ns = _namespace(key)
    if ns == XLINK_NS:
        return f"xlink:{_local_name(key)}"
    if ns == SVG_NS:
        return _local_name(key)
    return None


def _strip_namespaces(element: ET.Element) -> None:
    for el in element.iter():
        if isinstance(el.tag, str):
            el.tag = _local_name(el.tag)
        for key in list(el.attrib):
            name = _attr_name(key)
            value = el.attrib.pop(key)
            if name is not None:
                el.attrib[name] = value


def _markup(element: ET.Element) -> str:
    _strip_namespaces(element)
    element.tail = None
    return ET.tostring(element, encoding="unicode")


def _inner_markup(element: ET.Element) -> str:
    _strip_namespaces(element)
    parts = [escape(element.text or "")]
    parts.extend(ET.tostring(child, encoding="unicode") for child in element)
    return "".join(parts)
