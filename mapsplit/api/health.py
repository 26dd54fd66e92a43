"""Health check endpoint."""

from __future__ import annotations

from fastapi import APIRouter

from mapsplit import __version__
from mapsplit.models.responses import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)
