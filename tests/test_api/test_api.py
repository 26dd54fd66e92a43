"""Tests for API endpoints."""

from __future__ import annotations

import asyncio

from fastapi.testclient import TestClient

from mapsplit import __version__
from mapsplit.api import tiles
from mapsplit.main import app
from mapsplit.svg.parser import parse_svg
from tests.conftest import HEX_MAP_SVG, QUADRANT_SVG


client = TestClient(app)


def test_health():
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["version"] == __version__


def test_grid():
    response = client.post("/api/grid", json={
        "canvas_width": 90,
        "canvas_height": 90,
        "tile_width": 35,
        "tile_height": 35,
        "overlap": 2.5,
    })
    assert response.status_code == 200
    data = response.json()
    assert (data["rows"], data["cols"]) == (3, 3)
    first, second = data["tiles"][0], data["tiles"][1]
    assert first["rect"] == {"xmin": 0, "ymin": 0, "xmax": 35, "ymax": 35}
    assert second["content"]["xmin"] == 32.5
    assert second["rect"]["xmin"] == 30


def test_grid_rejects_bad_overlap():
    response = client.post("/api/grid", json={
        "canvas_width": 90,
        "canvas_height": 90,
        "tile_width": 10,
        "tile_height": 10,
        "overlap": 5,
    })
    assert response.status_code == 422
    assert "overlap" in response.json()["detail"]


def test_split_quadrant():
    response = client.post("/api/split", json={
        "svg": QUADRANT_SVG,
        "tile_width": 35,
        "tile_height": 35,
        "overlap": 2.5,
    })
    assert response.status_code == 200
    data = response.json()
    assert (data["rows"], data["cols"]) == (3, 3)
    assert [t["filename"] for t in data["tiles"]][:2] == ["tile_0_0.svg", "tile_0_1.svg"]
    non_empty = [(t["row"], t["col"]) for t in data["tiles"] if parse_svg(t["svg"]).children]
    assert non_empty == [(0, 0), (0, 1), (1, 0), (1, 1)]
    assert data["warnings"] == []
    assert data["processing_time_ms"] >= 0


def test_split_open_policy():
    response = client.post("/api/split", json={
        "svg": QUADRANT_SVG,
        "tile_width": 35,
        "tile_height": 35,
        "overlap": 2.5,
        "close_policy": "open",
    })
    assert response.status_code == 200
    tile = parse_svg(response.json()["tiles"][0]["svg"])
    (piece,) = tile.children
    assert piece.style.get("fill") == "none"


def test_split_hex_map():
    response = client.post("/api/split", json={"svg": HEX_MAP_SVG, "tile_width": 60, "tile_height": 60})
    assert response.status_code == 200
    assert len(response.json()["tiles"]) == 12


def test_split_invalid_svg():
    response = client.post("/api/split", json={"svg": "<not-svg>", "tile_width": 10, "tile_height": 10})
    assert response.status_code == 400
    assert "detail" in response.json()


def test_split_bad_close_policy():
    response = client.post("/api/split", json={
        "svg": QUADRANT_SVG,
        "tile_width": 35,
        "tile_height": 35,
        "close_policy": "stitch",
    })
    assert response.status_code == 422


def test_split_missing_fields():
    response = client.post("/api/split", json={"svg": QUADRANT_SVG})
    assert response.status_code == 422


def test_split_parses_off_the_event_loop(monkeypatch):
    threads = []

    def recording_parse(text):
        try:
            asyncio.get_running_loop()
            threads.append("event loop")
        except RuntimeError:
            threads.append("worker")
        return parse_svg(text)

    monkeypatch.setattr(tiles, "parse_svg", recording_parse)
    response = client.post("/api/split", json={"svg": QUADRANT_SVG, "tile_width": 50, "tile_height": 50})
    assert response.status_code == 200
    assert threads == ["worker"]
