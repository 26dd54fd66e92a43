"""Tests for SVG parser."""

import pytest
from svgpathtools import CubicBezier, Line, QuadraticBezier

from tests.conftest import CURVES_SVG, HEX_MAP_SVG, NESTED_STYLE_SVG, QUADRANT_SVG

from mapsplit.errors import DocumentError
from mapsplit.svg.nodes import Group, Opaque, PathNode, Shape, Text
from mapsplit.svg.parser import arc_to_cubics, load_svg, parse_path_data, parse_svg
from mapsplit.utils.affine import translate


def test_parse_canvas_with_units():
    doc = parse_svg(QUADRANT_SVG)
    assert doc.width == 90.0
    assert doc.height == 90.0
    assert doc.unit == "mm"
    assert doc.unit_scale == pytest.approx(1.0)


def test_parse_canvas_without_viewbox():
    doc = parse_svg('<svg xmlns="http://www.w3.org/2000/svg" width="1in" height="2in"/>')
    assert doc.width == pytest.approx(96.0)
    assert doc.height == pytest.approx(192.0)
    assert doc.unit == "in"
    assert doc.width * doc.unit_scale == pytest.approx(1.0)


def test_parse_hex_map():
    doc = parse_svg(HEX_MAP_SVG)
    terrain, labels, use, road = doc.children
    assert isinstance(terrain, Group)
    assert terrain.transform == translate(5, 5)
    assert [c.tag for c in terrain.children] == ["polygon", "polygon", "circle"]
    assert terrain.children[0].attributes["class"] == "hex"
    assert terrain.children[0].style["fill"] == "url(#sea)"

    assert isinstance(labels.children[0], Text)
    assert labels.children[0].anchor == 12 + 12j
    assert "<tspan" in labels.children[0].content
    assert labels.style["font-size"] == "4"

    assert isinstance(use, Opaque)
    assert use.element == "use"
    assert use.attributes["xlink:href"] == "#marker"
    assert use.anchor == 180 + 10j

    assert isinstance(road, PathNode)
    assert road.source_d == "M 0,60 C 50,20 150,100 200,60"


def test_definitions_are_kept_verbatim():
    doc = parse_svg(HEX_MAP_SVG)
    assert len(doc.definitions) == 2
    assert doc.definitions[0].startswith("<defs>")
    assert 'id="sea"' in doc.definitions[0]
    assert doc.definitions[1].startswith("<style>")


def test_style_property_wins_over_attribute():
    doc = parse_svg(
        '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 10 10">'
        '<rect width="1" height="1" fill="red" style="fill:blue; stroke : green"/></svg>'
    )
    rect = doc.children[0]
    assert isinstance(rect, Shape)
    assert rect.style == {"fill": "blue", "stroke": "green"}


def test_nested_groups():
    doc = parse_svg(NESTED_STYLE_SVG)
    outer = doc.children[0]
    middle = outer.children[0]
    inner = middle.children[0]
    assert outer.style == {"fill": "red", "stroke": "black"}
    assert middle.transform == translate(10, 10)
    assert inner.style == {"fill": "blue"}
    assert inner.children[0].params == {"x": 30.0, "y": 30.0, "width": 40.0, "height": 40.0}


def test_viewbox_origin_becomes_root_transform():
    doc = parse_svg(
        '<svg xmlns="http://www.w3.org/2000/svg" viewBox="10 20 50 50">'
        '<circle cx="20" cy="30" r="5"/></svg>'
    )
    root = doc.children[0]
    assert isinstance(root, Group)
    assert root.transform == translate(-10, -20)
    assert doc.width == 50


def test_curves_keep_their_degree():
    doc = parse_svg(CURVES_SVG)
    wave, blob, arc = doc.children
    assert [type(s) for s in wave.segments()] == [QuadraticBezier]
    assert all(isinstance(s, CubicBezier) for s in blob.segments()[:2])
    assert blob.subpaths[0].closed
    # Arcs come out as cubics ending exactly where the arc ended
    assert all(isinstance(s, CubicBezier) for s in arc.segments())
    assert arc.segments()[-1].end == 70 + 70j


class TestPathData:
    def test_relative_commands_become_absolute(self):
        (sp,) = parse_path_data("m 10 10 l 5 0 v 5 h -5 z")
        assert sp.closed
        assert sp.start == 10 + 10j
        assert [s.end for s in sp.segments[:3]] == [15 + 10j, 15 + 15j, 10 + 15j]
        assert all(isinstance(s, Line) for s in sp.segments)

    def test_subpaths_keep_their_own_closed_flag(self):
        subpaths = parse_path_data("M0 0 L10 0 L10 10 Z M20 20 L30 30 m 5 5 l 1 1")
        assert [sp.closed for sp in subpaths] == [True, False, False]
        # Relative moveto is taken from the end of the previous subpath
        assert subpaths[2].start == 35 + 35j

    def test_implicit_lineto_after_moveto(self):
        (sp,) = parse_path_data("M 0 0 10 0 10 10")
        assert [s.end for s in sp.segments] == [10 + 0j, 10 + 10j]

    def test_empty(self):
        assert parse_path_data("") == []
        assert parse_path_data("M 5 5") == []

    def test_malformed(self):
        with pytest.raises(DocumentError):
            parse_path_data("L 10 10")


def test_arc_to_cubics_stays_on_the_circle():
    from svgpathtools import parse_path

    arc = parse_path("M 0 0 A 10 10 0 0 1 20 0")[0]
    cubics = arc_to_cubics(arc)
    assert len(cubics) == 2
    for cubic in cubics:
        for t in (0.25, 0.5, 0.75):
            assert abs(cubic.point(t) - arc.center) == pytest.approx(10.0, abs=0.01)


@pytest.mark.parametrize("text", [
    "<svg",
    '<html xmlns="http://www.w3.org/2000/svg"/>',
    '<svg xmlns="http://www.w3.org/2000/svg"/>',
    '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 0 10"/>',
    '<svg xmlns="http://www.w3.org/2000/svg" width="-5" height="10"/>',
    '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 10 10"><path d="M 0 0 L x"/></svg>',
    '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 10 10"><g transform="spin(3)"/></svg>',
    '<svg xmlns="http://www.w3.org/2000/svg" width="100%" height="100%"/>',
])
def test_invalid_documents(text):
    with pytest.raises(DocumentError):
        parse_svg(text)


def test_load_missing_file(tmp_path):
    with pytest.raises(DocumentError):
        load_svg(tmp_path / "nope.svg")


def test_percentage_root_size_with_viewbox():
    doc = parse_svg(
        '<svg xmlns="http://www.w3.org/2000/svg" width="100%" height="100%" viewBox="0 0 200 100"/>'
    )
    assert (doc.width, doc.height) == (200, 100)
    assert doc.unit == ""
    assert doc.unit_scale == 1.0


def test_percentage_shape_lengths_follow_the_canvas():
    doc = parse_svg(
        '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 200 100">'
        '<rect x="10%" y="10%" width="50%" height="50%"/>'
        '<circle cx="50%" cy="50%" r="10%"/></svg>'
    )
    rect, circle = doc.children
    assert rect.params == pytest.approx({"x": 20, "y": 10, "width": 100, "height": 50})
    assert circle.params["cx"] == pytest.approx(100)
    assert circle.params["cy"] == pytest.approx(50)
    # 10% of sqrt((200² + 100²) / 2)
    assert circle.params["r"] == pytest.approx(15.8113883)


def test_load_honours_the_encoding_declaration(tmp_path):
    path = tmp_path / "latin1.svg"
    path.write_bytes(
        '<?xml version="1.0" encoding="ISO-8859-1"?>'
        '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 10 10"><text x="1" y="1">Café</text></svg>'
        .encode("latin-1")
    )
    (text,) = load_svg(path).children
    assert text.content == "Café"


def test_load_undeclared_latin1_is_a_document_error(tmp_path):
    path = tmp_path / "latin1.svg"
    path.write_bytes(
        '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 10 10"><text>Café</text></svg>'.encode("latin-1")
    )
    with pytest.raises(DocumentError):
        load_svg(path)
