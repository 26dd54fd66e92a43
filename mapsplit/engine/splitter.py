"""Split one tile out of a document.

The walk is depth-first in document order. Transforms accumulate downwards
and are folded into the leaves, so every emitted leaf carries its full
tile-frame transform and output groups carry only style and attributes.
The exception is a group with a clip path, mask or filter: it keeps its
own tile-frame transform so the referenced definitions line up.
A group survives only when something below it was emitted and it has
style or attributes to pass on; otherwise its emitted children are hoisted.
"""

from __future__ import annotations

import dataclasses
import logging
import time

from mapsplit.engine.bounds import bounding_box
from mapsplit.engine.clip import clip_shape
from mapsplit.engine.context import TileContext
from mapsplit.engine.grid import PyramidTile, Tile
from mapsplit.svg.nodes import Document, Group, Node, resolve_style
from mapsplit.utils.affine import Affine, transform_compose, transform_inverse, translate
from mapsplit.utils.geometry import Rect

logger = logging.getLogger(__name__)

_HIDDEN_VISIBILITY = ("hidden", "collapse")
# Group properties whose referenced <defs> content lives in the group's user space.
_FRAME_PROPERTIES = ("clip-path", "mask", "filter")


def split(
    document: Document,
    tile_rect: Rect,
    close_policy: str = "reclose",
    ctx: TileContext | None = None,
) -> Document:
    """Return the part of ``document`` inside ``tile_rect`` as a tile-sized document.

    The source document is only read. Geometry problems are recorded on
    ``ctx`` (a fresh context is made when none is given) and never raise.
    """
    if ctx is None:
        ctx = TileContext(rect=tile_rect, close_policy=close_policy)
    start = time.perf_counter()

    local = Rect(0.0, 0.0, tile_rect.width, tile_rect.height)
    to_tile = translate(-tile_rect.xmin, -tile_rect.ymin)
    children = _walk(document.children, to_tile, [], local, ctx)

    elapsed = (time.perf_counter() - start) * 1000
    logger.debug(
        "Tile %s: %d/%d nodes emitted, %d subtrees culled in %.1fms",
        _tile_label(ctx), ctx.nodes_emitted, ctx.nodes_visited, ctx.subtrees_culled, elapsed,
    )
    return Document(
        width=tile_rect.width,
        height=tile_rect.height,
        children=children,
        unit=document.unit,
        unit_scale=document.unit_scale,
        definitions=list(document.definitions),
        root_attributes=dict(document.root_attributes),
    )


def split_tile(
    document: Document, tile: Tile | PyramidTile, close_policy: str = "reclose"
) -> tuple[Document, TileContext]:
    """Split one grid or pyramid tile; the returned context holds its warnings."""
    ctx = TileContext(rect=tile.rect, row=tile.row, col=tile.col, close_policy=close_policy)
    return split(document, tile.rect, ctx=ctx), ctx


def _walk(
    nodes: list[Node],
    accumulated: Affine,
    styles: list[dict[str, str]],
    local: Rect,
    ctx: TileContext,
) -> list[Node]:
    out: list[Node] = []
    tol = local.tolerance()
    for node in nodes:
        ctx.nodes_visited += 1
        chain = [*styles, node.style]
        if any(style.get("display", "").strip() == "none" for style in chain):
            continue

        if isinstance(node, Group):
            box = bounding_box(node, accumulated, ctx.cache)
            if box is None or not local.intersects(box, tol):
                ctx.subtrees_culled += 1
                continue
            full = transform_compose(accumulated, node.transform)
            kids = _walk(node.children, full, chain, local, ctx)
            if not kids:
                continue
            if _references_own_frame(node):
                out.extend(_framed_group(node, full, kids))
            elif node.style or node.attributes:
                out.append(Group(style=dict(node.style), attributes=dict(node.attributes), children=kids))
            else:
                out.extend(kids)
            continue

        if resolve_style(chain).get("visibility", "").strip() in _HIDDEN_VISIBILITY:
            continue
        placed = dataclasses.replace(node, transform=transform_compose(accumulated, node.transform))
        for clipped in clip_shape(placed, local, ctx.close_policy, warn=ctx.warn):
            # Untouched nodes still share data with the source tree.
            out.append(clipped.clone() if clipped is placed else clipped)
            ctx.nodes_emitted += 1
    return out


def _references_own_frame(group: Group) -> bool:
    return any(group.style.get(prop, "none").strip() != "none" for prop in _FRAME_PROPERTIES)


def _framed_group(group: Group, frame: Affine, kids: list[Node]) -> list[Node]:
    """Emit ``group`` with its tile-frame transform and re-express ``kids`` inside it.

    Clip paths, masks and filters are laid out in the user space of the
    element that references them, so that space must survive the split.
    """
    inverse = transform_inverse(frame)
    if inverse is None:
        return []
    children = [dataclasses.replace(kid, transform=transform_compose(inverse, kid.transform)) for kid in kids]
    return [Group(transform=frame, style=dict(group.style), attributes=dict(group.attributes), children=children)]


def _tile_label(ctx: TileContext) -> str:
    if ctx.row is None:
        return str(ctx.rect.as_tuple())
    return f"({ctx.row}, {ctx.col})"
