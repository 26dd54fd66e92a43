"""mapsplit command line.

    mapsplit split map.svg --tile-width 190 --tile-height 277 --overlap 5 --out tiles/
    mapsplit grid map.svg --tile-width 190 --tile-height 277
    mapsplit pyramid map.svg --min-zoom 0 --max-zoom 3 --out pyramid/
    mapsplit serve --port 8000

Exit codes: 0 when every tile was written, 1 when some tile failed, 2 when
the input or the configuration was rejected before any work started.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from mapsplit import __version__
from mapsplit.config import Settings
from mapsplit.engine.config import PyramidConfig, SplitConfig
from mapsplit.engine.context import CLOSE_POLICIES
from mapsplit.engine.grid import compute_grid, grid_shape
from mapsplit.engine.pipeline import SplitReport, run_pyramid, run_split
from mapsplit.errors import ConfigError, DocumentError
from mapsplit.svg.parser import load_svg
from mapsplit.utils.geometry import Rect

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_TILE_FAILED = 1
EXIT_FATAL = 2


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mapsplit", description="Split an SVG map into printable tiles")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    def add_run_options(p: argparse.ArgumentParser) -> None:
        p.add_argument(
            "--close-policy",
            choices=CLOSE_POLICIES,
            default=settings.mapsplit_close_policy,
            help="Closed outlines cut by a tile edge: reclose along the edge or leave open",
        )
        p.add_argument(
            "--workers",
            type=int,
            default=settings.mapsplit_workers,
            help="Worker threads (default: one per CPU)",
        )

    def add_common(p: argparse.ArgumentParser) -> None:
        p.add_argument("input", help="SVG file to split")
        p.add_argument("--tile-width", type=float, required=True, help="Paper width in user units")
        p.add_argument("--tile-height", type=float, required=True, help="Paper height in user units")
        p.add_argument(
            "--overlap",
            type=float,
            default=settings.mapsplit_overlap,
            help=f"Glue margin in user units (default {settings.mapsplit_overlap:g})",
        )
        p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    split_p = sub.add_parser("split", help="Write one SVG per tile")
    add_common(split_p)
    split_p.add_argument("-o", "--out", default="tiles", help="Output directory (default ./tiles)")
    add_run_options(split_p)
    split_p.add_argument(
        "--prefix",
        default=settings.mapsplit_file_prefix,
        help="Tile file name prefix (default %(default)s)",
    )

    grid_p = sub.add_parser("grid", help="Print the tile grid without splitting")
    add_common(grid_p)

    pyramid_p = sub.add_parser("pyramid", help="Write a zoom pyramid as <zoom>/<x>/<y>.svg")
    pyramid_p.add_argument("input", help="SVG file to split")
    pyramid_p.add_argument("--min-zoom", type=int, default=0)
    pyramid_p.add_argument("--max-zoom", type=int, default=3)
    pyramid_p.add_argument(
        "--bounds",
        type=float,
        nargs=3,
        metavar=("X", "Y", "SIZE"),
        help="Square to tile (default: covers the canvas from its origin)",
    )
    pyramid_p.add_argument("-o", "--out", default="tiles", help="Output directory (default ./tiles)")
    add_run_options(pyramid_p)
    pyramid_p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    serve_p = sub.add_parser("serve", help="Run the HTTP tile server")
    serve_p.add_argument("--host", default="127.0.0.1")
    serve_p.add_argument("--port", type=int, default=8000)
    serve_p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    settings = Settings()
    args = build_parser(settings).parse_args(argv)

    level = logging.DEBUG if args.verbose else getattr(logging, settings.mapsplit_log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    logger.debug("mapsplit %s", args.command)

    try:
        if args.command == "grid":
            return _grid(args)
        if args.command == "serve":
            return _serve(args)
        if args.command == "pyramid":
            return _pyramid(args)
        return _split(args)
    except (DocumentError, ConfigError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_FATAL


def _split(args: argparse.Namespace) -> int:
    config = SplitConfig(
        tile_width=args.tile_width,
        tile_height=args.tile_height,
        overlap=args.overlap,
        output_directory=Path(args.out),
        close_policy=args.close_policy,
        workers=args.workers,
        file_prefix=args.prefix,
    )
    return _report(run_split(args.input, config), config.output_directory)


def _pyramid(args: argparse.Namespace) -> int:
    bounds = None
    if args.bounds is not None:
        x, y, size = args.bounds
        bounds = Rect(x, y, x + size, y + size)
    config = PyramidConfig(
        min_zoom=args.min_zoom,
        max_zoom=args.max_zoom,
        bounds=bounds,
        output_directory=Path(args.out),
        close_policy=args.close_policy,
        workers=args.workers,
    )
    return _report(run_pyramid(args.input, config), config.output_directory)


def _report(report: SplitReport, output_directory: Path) -> int:
    print(f"{len(report.tiles_written)}/{report.tiles_total} tiles written to {output_directory}")
    if report.warnings:
        print(f"{len(report.warnings)} shapes dropped (see log)")
    for failure in report.failures:
        print(f"  FAILED: {failure}", file=sys.stderr)
    return EXIT_OK if report.ok else EXIT_TILE_FAILED


def _grid(args: argparse.Namespace) -> int:
    document = load_svg(args.input)
    tiles = compute_grid(document.width, document.height, args.tile_width, args.tile_height, args.overlap)
    rows, cols = grid_shape(tiles)
    print(f"Canvas {document.width:g}x{document.height:g}: {rows} rows x {cols} cols")
    for tile in tiles:
        r = tile.rect
        print(f"  [{tile.row},{tile.col}] x {r.xmin:g}..{r.xmax:g}  y {r.ymin:g}..{r.ymax:g}")
    return EXIT_OK


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("mapsplit.main:app", host=args.host, port=args.port)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
