"""Typed errors for the splitter.

Only DocumentError and ConfigError abort a run. TileError is raised per tile
and collected by the pipeline; geometry problems never raise (see
``mapsplit.engine.context.GeometryWarning``).
"""

from __future__ import annotations


class MapSplitError(Exception):
    """Base error of the project."""


class DocumentError(MapSplitError):
    """Input document is structurally invalid or declares a bad canvas."""


class ConfigError(MapSplitError):
    """Tile size / overlap configuration is rejected before any work starts."""


class TileError(MapSplitError):
    """A single tile could not be serialized or written."""

    def __init__(self, row: int, col: int, message: str) -> None:
        super().__init__(f"tile ({row}, {col}): {message}")
        self.row = row
        self.col = col
