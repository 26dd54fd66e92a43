"""API response models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"


class RectModel(BaseModel):
    xmin: float
    ymin: float
    xmax: float
    ymax: float


class TileModel(BaseModel):
    row: int
    col: int
    rect: RectModel
    content: RectModel


class GridResponse(BaseModel):
    rows: int
    cols: int
    tiles: list[TileModel] = Field(default_factory=list)


class WarningModel(BaseModel):
    node: str
    reason: str
    row: int | None = None
    col: int | None = None


class TileSvg(BaseModel):
    row: int
    col: int
    filename: str
    svg: str


class SplitResponse(BaseModel):
    rows: int
    cols: int
    tiles: list[TileSvg] = Field(default_factory=list)
    warnings: list[WarningModel] = Field(default_factory=list)
    processing_time_ms: float = 0.0
