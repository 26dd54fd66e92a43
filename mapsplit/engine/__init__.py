"""mapsplit tile splitting engine."""

from mapsplit.engine.clip import clip_shape
from mapsplit.engine.config import PyramidConfig, SplitConfig
from mapsplit.engine.context import GeometryWarning, TileContext
from mapsplit.engine.grid import PyramidTile, Tile, compute_grid, compute_pyramid
from mapsplit.engine.pipeline import PyramidPipeline, SplitPipeline, SplitReport, run_pyramid, run_split
from mapsplit.engine.splitter import split

__all__ = [
    "clip_shape",
    "compute_grid",
    "compute_pyramid",
    "split",
    "run_pyramid",
    "run_split",
    "GeometryWarning",
    "PyramidConfig",
    "PyramidPipeline",
    "PyramidTile",
    "SplitConfig",
    "SplitPipeline",
    "SplitReport",
    "Tile",
    "TileContext",
]
