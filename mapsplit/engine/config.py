"""Run configuration: paper size or zoom range, and where the tiles go."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, field
from pathlib import Path

from mapsplit.engine.context import CLOSE_POLICIES
from mapsplit.engine.grid import validate_pyramid_params, validate_zoom_range
from mapsplit.errors import ConfigError
from mapsplit.utils.geometry import Rect


@dataclass
class SplitConfig:
    """Options for one split run. Lengths are in the document's user units."""

    tile_width: float
    tile_height: float
    # Glue margin shared by neighbouring tiles
    overlap: float = 1.0
    output_directory: Path = field(default_factory=lambda: Path("tiles"))
    # What to do with closed outlines cut by a tile edge: "reclose" or "open"
    close_policy: str = "reclose"
    # Worker threads; None means one per CPU
    workers: int | None = None
    file_prefix: str = "tile"

    def __post_init__(self) -> None:
        self.output_directory = Path(self.output_directory)

    def validate(self) -> None:
        """Raise ConfigError for anything that would make the grid unusable."""
        for label, value in (("tile width", self.tile_width), ("tile height", self.tile_height)):
            if not math.isfinite(value) or value <= 0:
                raise ConfigError(f"{label} must be a positive number, got {value!r}")
        if not math.isfinite(self.overlap) or self.overlap < 0:
            raise ConfigError(f"overlap must be a non-negative number, got {self.overlap!r}")
        if self.overlap >= min(self.tile_width, self.tile_height) / 2:
            raise ConfigError(
                f"overlap {self.overlap} must be less than half the smaller tile side "
                f"({min(self.tile_width, self.tile_height) / 2})"
            )
        _validate_run_options(self.close_policy, self.workers)
        if not self.file_prefix or os.sep in self.file_prefix or "/" in self.file_prefix:
            raise ConfigError(f"file prefix must be a plain file name part, got {self.file_prefix!r}")

    @property
    def worker_count(self) -> int:
        return self.workers or os.cpu_count() or 1

    def tile_path(self, tile) -> Path:
        return self.output_directory / self.tile_filename(tile.row, tile.col)

    def tile_filename(self, row: int, col: int) -> str:
        return f"{self.file_prefix}_{row}_{col}.svg"


@dataclass
class PyramidConfig:
    """Options for a zoom-pyramid run, written as ``<zoom>/<x>/<y>.svg``."""

    min_zoom: int = 0
    max_zoom: int = 3
    # Square region to tile; None covers the canvas from its origin
    bounds: Rect | None = None
    output_directory: Path = field(default_factory=lambda: Path("tiles"))
    close_policy: str = "reclose"
    workers: int | None = None

    def __post_init__(self) -> None:
        self.output_directory = Path(self.output_directory)

    def validate(self) -> None:
        if self.bounds is not None:
            validate_pyramid_params(self.bounds, self.min_zoom, self.max_zoom)
        else:
            validate_zoom_range(self.min_zoom, self.max_zoom)
        _validate_run_options(self.close_policy, self.workers)

    @property
    def worker_count(self) -> int:
        return self.workers or os.cpu_count() or 1

    def tile_path(self, tile) -> Path:
        return self.output_directory / str(tile.zoom) / str(tile.x) / f"{tile.y}.svg"


def _validate_run_options(close_policy: str, workers: int | None) -> None:
    if close_policy not in CLOSE_POLICIES:
        raise ConfigError(
            f"close policy must be one of {', '.join(CLOSE_POLICIES)}, got {close_policy!r}"
        )
    if workers is not None and workers < 1:
        raise ConfigError(f"workers must be at least 1, got {workers}")
