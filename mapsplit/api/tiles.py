"""POST /api/grid and /api/split: tile layout and in-memory splitting."""

from __future__ import annotations

import time

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool

from mapsplit.config import Settings
from mapsplit.dependencies import get_settings
from mapsplit.engine.config import SplitConfig
from mapsplit.engine.grid import Tile, compute_grid, grid_shape
from mapsplit.engine.pipeline import SplitPipeline
from mapsplit.models.requests import GridRequest, SplitRequest
from mapsplit.models.responses import (
    GridResponse,
    RectModel,
    SplitResponse,
    TileModel,
    TileSvg,
    WarningModel,
)
from mapsplit.svg.parser import parse_svg
from mapsplit.utils.geometry import Rect

router = APIRouter()


def _rect(rect: Rect) -> RectModel:
    return RectModel(xmin=rect.xmin, ymin=rect.ymin, xmax=rect.xmax, ymax=rect.ymax)


def _tile(tile: Tile) -> TileModel:
    return TileModel(row=tile.row, col=tile.col, rect=_rect(tile.rect), content=_rect(tile.content))


@router.post("/grid", response_model=GridResponse)
async def grid(req: GridRequest, settings: Settings = Depends(get_settings)) -> GridResponse:
    overlap = settings.mapsplit_overlap if req.overlap is None else req.overlap
    tiles = compute_grid(req.canvas_width, req.canvas_height, req.tile_width, req.tile_height, overlap)
    rows, cols = grid_shape(tiles)
    return GridResponse(rows=rows, cols=cols, tiles=[_tile(t) for t in tiles])


@router.post("/split", response_model=SplitResponse)
async def split(req: SplitRequest, settings: Settings = Depends(get_settings)) -> SplitResponse:
    start = time.perf_counter()

    config = SplitConfig(
        tile_width=req.tile_width,
        tile_height=req.tile_height,
        overlap=settings.mapsplit_overlap if req.overlap is None else req.overlap,
        close_policy=req.close_policy or settings.mapsplit_close_policy,
        workers=settings.mapsplit_workers,
        file_prefix=settings.mapsplit_file_prefix,
    )
    pipeline = SplitPipeline(config)

    # Parsing and splitting are CPU-bound; keep the event loop free
    results = await run_in_threadpool(lambda: pipeline.render(parse_svg(req.svg)))

    rows, cols = grid_shape([r.tile for r in results])
    elapsed = (time.perf_counter() - start) * 1000
    return SplitResponse(
        rows=rows,
        cols=cols,
        tiles=[
            TileSvg(
                row=r.tile.row,
                col=r.tile.col,
                filename=config.tile_filename(r.tile.row, r.tile.col),
                svg=r.svg,
            )
            for r in results
        ],
        warnings=[
            WarningModel(node=w.node, reason=w.reason, row=w.row, col=w.col)
            for r in results
            for w in r.warnings
        ],
        processing_time_ms=round(elapsed, 1),
    )
