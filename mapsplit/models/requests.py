"""API request models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class GridRequest(BaseModel):
    canvas_width: float = Field(..., description="Canvas width in user units")
    canvas_height: float = Field(..., description="Canvas height in user units")
    tile_width: float = Field(..., description="Paper width in user units")
    tile_height: float = Field(..., description="Paper height in user units")
    overlap: float | None = Field(default=None, description="Glue margin; server default if omitted")


class SplitRequest(BaseModel):
    svg: str = Field(..., description="Raw SVG code")
    tile_width: float = Field(..., description="Paper width in the document's user units")
    tile_height: float = Field(..., description="Paper height in the document's user units")
    overlap: float | None = Field(default=None, description="Glue margin; server default if omitted")
    close_policy: str | None = Field(
        default=None,
        description="'reclose' or 'open' for closed outlines cut by a tile edge",
    )
