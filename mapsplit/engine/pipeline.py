"""Split orchestrator: one pass per tile on a thread pool, one file per tile."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from mapsplit.engine.config import PyramidConfig, SplitConfig
from mapsplit.engine.context import GeometryWarning
from mapsplit.engine.grid import PyramidTile, Tile, compute_grid, compute_pyramid, grid_shape, square_bounds
from mapsplit.engine.splitter import split_tile
from mapsplit.errors import ConfigError, TileError
from mapsplit.svg.nodes import Document
from mapsplit.svg.parser import load_svg
from mapsplit.svg.serializer import serialize_svg

logger = logging.getLogger(__name__)


@dataclass
class TileResult:
    """One split tile: its markup and what was dropped on the way."""

    tile: Tile | PyramidTile
    svg: str
    warnings: list[GeometryWarning] = field(default_factory=list)
    path: Path | None = None


@dataclass
class SplitReport:
    """Outcome of a run. Only failures make it unsuccessful; warnings never do."""

    rows: int = 0
    cols: int = 0
    tiles_total: int = 0
    tiles_written: list[Path] = field(default_factory=list)
    failures: list[TileError] = field(default_factory=list)
    warnings: list[GeometryWarning] = field(default_factory=list)
    elapsed_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return not self.failures


class SplitPipeline:
    """Splits a parsed document into every tile of its grid."""

    def __init__(self, config: SplitConfig) -> None:
        config.validate()
        self.config = config

    def grid(self, document: Document) -> list[Tile]:
        return compute_grid(
            document.width,
            document.height,
            self.config.tile_width,
            self.config.tile_height,
            self.config.overlap,
        )

    def render(self, document: Document) -> list[TileResult]:
        """Split every tile in memory, row-major. Nothing is written."""
        tiles = self.grid(document)
        with ThreadPoolExecutor(max_workers=self.config.worker_count) as pool:
            return list(pool.map(lambda tile: self._render_tile(document, tile), tiles))

    def run(self, document: Document) -> SplitReport:
        """Split every tile and write it to the output directory.

        A tile that cannot be serialized or written is reported in
        ``failures``; the other tiles are still written.
        """
        start = time.perf_counter()
        tiles = self.grid(document)
        rows, cols = grid_shape(tiles)
        out_dir = self.config.output_directory
        try:
            out_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigError(f"cannot create output directory {out_dir}: {e}") from e

        logger.info(
            "Splitting %gx%g canvas into %d tiles (%d workers)",
            document.width, document.height, len(tiles), self.config.worker_count,
        )

        report = SplitReport(rows=rows, cols=cols, tiles_total=len(tiles))
        with ThreadPoolExecutor(max_workers=self.config.worker_count) as pool:
            outcomes = list(pool.map(lambda tile: self._write_tile(document, tile), tiles))

        for outcome in outcomes:
            if isinstance(outcome, TileError):
                report.failures.append(outcome)
                continue
            report.tiles_written.append(outcome.path)
            report.warnings.extend(outcome.warnings)

        report.elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "Split complete: %d/%d tiles written, %d failed, %d warnings in %.0fms",
            len(report.tiles_written),
            len(tiles),
            len(report.failures),
            len(report.warnings),
            report.elapsed_ms,
        )
        return report

    def _render_tile(self, document: Document, tile: Tile | PyramidTile) -> TileResult:
        tile_doc, ctx = split_tile(document, tile, self.config.close_policy)
        return TileResult(tile=tile, svg=serialize_svg(tile_doc), warnings=ctx.warnings)

    def _write_tile(self, document: Document, tile: Tile | PyramidTile) -> TileResult | TileError:
        path = self.config.tile_path(tile)
        try:
            result = self._render_tile(document, tile)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(result.svg, encoding="utf-8")
        except Exception as e:
            logger.warning("Tile (%d, %d) FAILED: %s", tile.row, tile.col, e)
            return TileError(tile.row, tile.col, str(e))
        result.path = path
        logger.debug("Wrote %s", path)
        return result


def run_split(input_path: str | Path, config: SplitConfig) -> SplitReport:
    """Parse ``input_path`` once and write all of its tiles.

    Raises DocumentError or ConfigError before any tile is written.
    """
    pipeline = SplitPipeline(config)
    document = load_svg(input_path)
    return pipeline.run(document)



class PyramidPipeline(SplitPipeline):
    """Splits a parsed document into every tile of a zoom pyramid."""

    def __init__(self, config: PyramidConfig) -> None:
        config.validate()
        self.config = config

    def grid(self, document: Document) -> list[PyramidTile]:
        bounds = self.config.bounds or square_bounds(document.width, document.height)
        return compute_pyramid(bounds, self.config.min_zoom, self.config.max_zoom)


def run_pyramid(input_path: str | Path, config: PyramidConfig) -> SplitReport:
    """Parse ``input_path`` once and write every pyramid tile as ``<zoom>/<x>/<y>.svg``."""
    pipeline = PyramidPipeline(config)
    document = load_svg(input_path)
    return pipeline.run(document)
