"""Shared test fixtures."""

from __future__ import annotations

import pytest


# Sample maps

DIAGONAL_SVG = '''<svg xmlns="http://www.w3.org/2000/svg" width="100" height="100" viewBox="0 0 100 100">
  <path id="diag" d="M0 0 L100 100" stroke="black" stroke-width="0.5" fill="none"/>
</svg>'''

# Content confined to the top-left quadrant of a 90x90 canvas
QUADRANT_SVG = '''<svg xmlns="http://www.w3.org/2000/svg" width="90mm" height="90mm" viewBox="0 0 90 90">
  <rect id="block" x="5" y="5" width="35" height="35" fill="#4ECDC4"/>
</svg>'''

# Outer group sets the fill, the innermost overrides it
NESTED_STYLE_SVG = '''<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 100 100">
  <g id="outer" fill="red" stroke="black">
    <g id="middle" transform="translate(10 10)">
      <g id="inner" style="fill: blue">
        <rect id="leaf" x="30" y="30" width="40" height="40"/>
      </g>
    </g>
  </g>
</svg>'''

HEX_MAP_SVG = '''<svg xmlns="http://www.w3.org/2000/svg" xmlns:xlink="http://www.w3.org/1999/xlink" width="200mm" height="120mm" viewBox="0 0 200 120">
  <defs>
    <linearGradient id="sea"><stop offset="0" stop-color="#06c"/><stop offset="1" stop-color="#0af"/></linearGradient>
  </defs>
  <style>.hex { stroke: #333; stroke-width: 0.3 }</style>
  <g id="terrain" transform="translate(5 5)">
    <polygon class="hex" points="10,0 20,5 20,15 10,20 0,15 0,5" fill="url(#sea)"/>
    <polygon class="hex" points="95,40 105,45 105,55 95,60 85,55 85,45" fill="green"/>
    <circle cx="150" cy="90" r="12" fill="brown"/>
  </g>
  <g id="labels" font-family="serif" font-size="4">
    <text x="12" y="12">Harbour <tspan font-weight="bold">A1</tspan></text>
    <text x="150" y="95">Hill</text>
  </g>
  <use xlink:href="#marker" x="180" y="10"/>
  <path id="road" d="M 0,60 C 50,20 150,100 200,60" stroke="black" fill="none"/>
</svg>'''

CURVES_SVG = '''<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 100 100">
  <path id="wave" d="M 10 50 Q 50 -10 90 50" stroke="black" fill="none"/>
  <path id="blob" d="M 20 20 C 60 0 100 40 60 80 S 0 60 20 20 Z" fill="orange"/>
  <path id="arc" d="M 30 70 A 20 20 0 0 1 70 70" stroke="blue" fill="none"/>
</svg>'''


@pytest.fixture
def diagonal_svg() -> str:
    return DIAGONAL_SVG


@pytest.fixture
def quadrant_svg() -> str:
    return QUADRANT_SVG


@pytest.fixture
def nested_style_svg() -> str:
    return NESTED_STYLE_SVG


@pytest.fixture
def hex_map_svg() -> str:
    return HEX_MAP_SVG


@pytest.fixture
def hex_map_file(tmp_path, hex_map_svg):
    path = tmp_path / "map.svg"
    path.write_text(hex_map_svg, encoding="utf-8")
    return path
