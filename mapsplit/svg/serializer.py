"""Write SVG markup from a Document."""

from __future__ import annotations

from pathlib import Path as FilePath
from xml.sax.saxutils import quoteattr

from svgpathtools import CubicBezier, Line, QuadraticBezier

from mapsplit.svg.nodes import Document, Group, Node, Opaque, PathNode, Shape, Subpath, Text
from mapsplit.utils.affine import fmt_number

_SHAPE_PARAMS = {
    "rect": ("x", "y", "width", "height", "rx", "ry"),
    "circle": ("cx", "cy", "r"),
    "ellipse": ("cx", "cy", "rx", "ry"),
    "line": ("x1", "y1", "x2", "y2"),
}


def serialize_svg(doc: Document) -> str:
    """Generate SVG markup for a whole document."""
    w, h = fmt_number(doc.width), fmt_number(doc.height)
    attrs = {
        "xmlns": "http://www.w3.org/2000/svg",
        "xmlns:xlink": "http://www.w3.org/1999/xlink",
        "width": f"{fmt_number(doc.width * doc.unit_scale)}{doc.unit}",
        "height": f"{fmt_number(doc.height * doc.unit_scale)}{doc.unit}",
        "viewBox": f"0 0 {w} {h}",
        **doc.root_attributes,
    }
    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        f"<svg {_attr_str(attrs)}>",
    ]
    for definition in doc.definitions:
        lines.append(f"  {definition}")
    for node in doc.children:
        _write_node(node, lines, depth=1)
    lines.append("</svg>")
    return "\n".join(lines) + "\n"


def write_svg(doc: Document, path: str | FilePath) -> None:
    FilePath(path).write_text(serialize_svg(doc), encoding="utf-8")


def format_path_data(subpaths: list[Subpath]) -> str:
    """Absolute ``d`` string for a list of subpaths."""
    parts: list[str] = []
    for sp in subpaths:
        if not sp.segments:
            continue
        parts.append(f"M {_pt(sp.start)}")
        for seg in sp.segments:
            if isinstance(seg, Line):
                parts.append(f"L {_pt(seg.end)}")
            elif isinstance(seg, QuadraticBezier):
                parts.append(f"Q {_pt(seg.control)} {_pt(seg.end)}")
            elif isinstance(seg, CubicBezier):
                parts.append(f"C {_pt(seg.control1)} {_pt(seg.control2)} {_pt(seg.end)}")
            else:
                raise TypeError(f"Unsupported segment type: {type(seg).__name__}")
        if sp.closed:
            parts.append("Z")
    return " ".join(parts)


def node_attributes(node: Node) -> dict[str, str]:
    """Attribute mapping of a node, geometry included, in output order."""
    attrs: dict[str, str] = dict(node.attributes)

    if isinstance(node, PathNode):
        attrs["d"] = node.source_d if node.source_d is not None else format_path_data(node.subpaths)
    elif isinstance(node, Shape):
        if node.kind in ("polyline", "polygon"):
            attrs["points"] = " ".join(_pt(p) for p in node.points)
        else:
            for name in _SHAPE_PARAMS[node.kind]:
                if name in node.params:
                    attrs[name] = fmt_number(node.params[name])
    elif isinstance(node, (Text, Opaque)):
        attrs["x"] = fmt_number(node.anchor.real)
        attrs["y"] = fmt_number(node.anchor.imag)

    if not node.transform.is_identity:
        attrs["transform"] = node.transform.to_svg()
    if node.style:
        attrs["style"] = ";".join(f"{k}:{v}" for k, v in node.style.items())
    return attrs


def _write_node(node: Node, lines: list[str], depth: int) -> None:
    indent = "  " * depth
    attrs = _attr_str(node_attributes(node))
    open_tag = f"<{node.tag} {attrs}" if attrs else f"<{node.tag}"

    if isinstance(node, Group):
        if not node.children:
            lines.append(f"{indent}{open_tag}/>")
            return
        lines.append(f"{indent}{open_tag}>")
        for child in node.children:
            _write_node(child, lines, depth + 1)
        lines.append(f"{indent}</{node.tag}>")
    elif isinstance(node, (Text, Opaque)) and node.content:
        lines.append(f"{indent}{open_tag}>{node.content}</{node.tag}>")
    else:
        lines.append(f"{indent}{open_tag}/>")


def _attr_str(attrs: dict[str, str]) -> str:
    return " ".join(f"{k}={quoteattr(v)}" for k, v in attrs.items())


def _pt(point: complex) -> str:
    return f"{fmt_number(point.real)},{fmt_number(point.imag)}"
