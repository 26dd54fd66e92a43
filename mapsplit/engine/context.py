"""TileContext: the mutable state carried through one tile pass.

Per-node results go straight into the output tree; everything else a pass
learns (warnings, bounds, counters) lives here and is thrown away with it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from mapsplit.engine.bounds import BoundsCache
from mapsplit.utils.geometry import Rect

logger = logging.getLogger(__name__)

CLOSE_POLICIES = ("reclose", "open")


@dataclass(frozen=True)
class GeometryWarning:
    """A node dropped because its geometry could not be clipped."""

    node: str
    reason: str
    row: int | None = None
    col: int | None = None

    def __str__(self) -> str:
        where = f"tile ({self.row}, {self.col}): " if self.row is not None else ""
        return f"{where}{self.node} dropped: {self.reason}"


@dataclass
class TileContext:
    """Shared state flowing through one split pass."""

    rect: Rect
    row: int | None = None
    col: int | None = None
    close_policy: str = "reclose"
    warnings: list[GeometryWarning] = field(default_factory=list)
    cache: BoundsCache = field(default_factory=BoundsCache)
    # Counters for the debug summary
    nodes_visited: int = 0
    nodes_emitted: int = 0
    subtrees_culled: int = 0

    def warn(self, node: str, reason: str) -> None:
        warning = GeometryWarning(node=node, reason=reason, row=self.row, col=self.col)
        self.warnings.append(warning)
        logger.warning("%s", warning)
