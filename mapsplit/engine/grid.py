"""Cut a canvas into a row-major grid of overlapping tiles.

Along one axis of length L, with tile length T and overlap o, every tile is
T long on paper. An interior edge gives away o of content to the glue margin,
so a first tile holds T - o of content, a middle one T - 2o and a last one
T - o. The last tile holds whatever is left and may come out short.

The printed rectangle of a tile is its content region widened by o on each
interior edge, so adjacent rectangles share a strip 2o wide, centred on the
content boundary.

The zoom pyramid is the other layout: a square region cut into 2^z × 2^z
edge-sharing tiles at each zoom level z, for map viewers rather than paper.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from mapsplit.errors import ConfigError
from mapsplit.utils.geometry import Rect

logger = logging.getLogger(__name__)

# Level 12 is already 16.7 million tiles.
MAX_ZOOM = 12


@dataclass(frozen=True)
class Tile:
    row: int
    col: int
    # Printed rectangle, overlap included. This is what gets clipped.
    rect: Rect
    # Non-overlapping share of the canvas; the content regions tile it exactly.
    content: Rect


def validate_grid_params(
    canvas_width: float,
    canvas_height: float,
    tile_width: float,
    tile_height: float,
    overlap: float,
) -> None:
    """Raise ConfigError unless the parameters describe a usable grid."""
    for label, value in (
        ("canvas width", canvas_width),
        ("canvas height", canvas_height),
        ("tile width", tile_width),
        ("tile height", tile_height),
        ("overlap", overlap),
    ):
        if not math.isfinite(value):
            raise ConfigError(f"{label} must be a finite number, got {value!r}")
    if canvas_width <= 0 or canvas_height <= 0:
        raise ConfigError(f"canvas must have a positive size, got {canvas_width} x {canvas_height}")
    if tile_width <= 0 or tile_height <= 0:
        raise ConfigError(f"tile size must be positive, got {tile_width} x {tile_height}")
    if overlap < 0:
        raise ConfigError(f"overlap must not be negative, got {overlap}")
    if overlap >= min(tile_width, tile_height) / 2:
        raise ConfigError(
            f"overlap {overlap} must be less than half the smaller tile side "
            f"({min(tile_width, tile_height) / 2})"
        )


def axis_bounds(length: float, tile: float, overlap: float) -> list[float]:
    """Content boundaries along one axis: ``[0, b1, ..., length]``."""
    bounds = [0.0]
    pos = 0.0
    # Float drift must not leave a sliver tile at the end.
    slack = 1e-9 * max(1.0, length)
    while True:
        first = pos == 0.0
        remaining = length - pos
        # Room for content in a tile that ends the axis: one interior edge
        # unless it is also the first tile.
        capacity = tile if first else tile - overlap
        if remaining <= capacity + slack:
            bounds.append(float(length))
            return bounds
        pos += tile - overlap if first else tile - 2 * overlap
        bounds.append(pos)


def compute_grid(
    canvas_width: float,
    canvas_height: float,
    tile_width: float,
    tile_height: float,
    overlap: float = 1.0,
) -> list[Tile]:
    """Return every tile of the grid, row-major.

    Content regions partition ``[0, canvas_width] × [0, canvas_height]``.
    Each rect is at most ``tile_width × tile_height``.
    """
    validate_grid_params(canvas_width, canvas_height, tile_width, tile_height, overlap)

    xs = axis_bounds(canvas_width, tile_width, overlap)
    ys = axis_bounds(canvas_height, tile_height, overlap)
    rows, cols = len(ys) - 1, len(xs) - 1

    tiles: list[Tile] = []
    for row in range(rows):
        for col in range(cols):
            content = Rect(xs[col], ys[row], xs[col + 1], ys[row + 1])
            rect = Rect(
                content.xmin - (overlap if col > 0 else 0.0),
                content.ymin - (overlap if row > 0 else 0.0),
                content.xmax + (overlap if col < cols - 1 else 0.0),
                content.ymax + (overlap if row < rows - 1 else 0.0),
            )
            tiles.append(Tile(row=row, col=col, rect=rect, content=content))

    logger.debug(
        "Grid %dx%d for canvas %gx%g (tile %gx%g, overlap %g)",
        rows, cols, canvas_width, canvas_height, tile_width, tile_height, overlap,
    )
    return tiles


def grid_shape(tiles: list[Tile]) -> tuple[int, int]:
    """(rows, cols) of a grid returned by compute_grid."""
    if not tiles:
        return 0, 0
    return tiles[-1].row + 1, tiles[-1].col + 1


# ── Zoom pyramid ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class PyramidTile:
    """One square of a zoom level: level ``zoom`` is 2^zoom × 2^zoom tiles."""

    zoom: int
    x: int
    y: int
    rect: Rect

    @property
    def row(self) -> int:
        return self.y

    @property
    def col(self) -> int:
        return self.x


def square_bounds(canvas_width: float, canvas_height: float) -> Rect:
    """Smallest square anchored at the canvas origin that covers the canvas."""
    side = max(canvas_width, canvas_height)
    return Rect(0.0, 0.0, side, side)


def compute_pyramid(bounds: Rect, min_zoom: int, max_zoom: int) -> list[PyramidTile]:
    """Return every tile of zoom levels ``min_zoom..max_zoom``.

    Ordered by zoom, then row, then column. Tiles of one level share their
    edges exactly and have no overlap.
    """
    validate_pyramid_params(bounds, min_zoom, max_zoom)

    tiles: list[PyramidTile] = []
    for zoom in range(min_zoom, max_zoom + 1):
        count = 2 ** zoom
        edge = bounds.width / count
        for y in range(count):
            for x in range(count):
                rect = Rect(
                    bounds.xmin + x * edge,
                    bounds.ymin + y * edge,
                    bounds.xmin + (x + 1) * edge,
                    bounds.ymin + (y + 1) * edge,
                )
                tiles.append(PyramidTile(zoom=zoom, x=x, y=y, rect=rect))

    logger.debug(
        "Pyramid zoom %d..%d over %s: %d tiles",
        min_zoom, max_zoom, bounds.as_tuple(), len(tiles),
    )
    return tiles


def validate_pyramid_params(bounds: Rect, min_zoom: int, max_zoom: int) -> None:
    """Raise ConfigError unless the bounds are a finite square and the zoom range is sane."""
    if not bounds.is_finite() or bounds.width <= 0 or bounds.height <= 0:
        raise ConfigError(f"pyramid bounds must be a finite non-empty square, got {bounds.as_tuple()}")
    if not math.isclose(bounds.width, bounds.height, rel_tol=1e-9):
        raise ConfigError(f"pyramid bounds must be square, got {bounds.width:g} x {bounds.height:g}")
    validate_zoom_range(min_zoom, max_zoom)


def validate_zoom_range(min_zoom: int, max_zoom: int) -> None:
    if min_zoom < 0 or max_zoom < min_zoom:
        raise ConfigError(f"zoom range must satisfy 0 <= min <= max, got {min_zoom}..{max_zoom}")
    if max_zoom > MAX_ZOOM:
        raise ConfigError(f"max zoom {max_zoom} exceeds {MAX_ZOOM}")
