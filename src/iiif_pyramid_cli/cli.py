import argparse
import json
import sys

from iiif_pyramid_core import __version__
from iiif_pyramid_core.logger import get_logger, setup_logging
from iiif_pyramid_core.pyramid import PolicyTileSource, Viewport
from iiif_pyramid_core.resolver import resolve_tile_sources
from iiif_pyramid_core.tile_source import TileSource

logger = get_logger(__name__)

EXIT_AUTH_REQUIRED = 2


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Inspect how IIIF images map onto a deep-zoom tile pyramid")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("sources", nargs="+", help="info.json URLs")
    parser.add_argument("--viewport", metavar="WxH", help="Viewport size, e.g. 1200x900")
    parser.add_argument("--level", type=int, help="Print the URL of one tile at this level")
    parser.add_argument("--tile", default="0,0", metavar="X,Y", help="Tile column,row used with --level")
    parser.add_argument("--json", action="store_true", help="Emit machine-readable output")
    parser.add_argument("-w", "--workers", type=int, help="Concurrent info.json fetches")
    parser.add_argument("--progress", action="store_true", help="Show a progress bar while fetching")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level")
    return parser


def _parse_tile(value: str) -> tuple[int, int]:
    try:
        x, y = (int(part) for part in value.split(","))
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid tile {value!r}, expected X,Y") from exc
    return x, y


def describe_levels(source: TileSource) -> list[dict]:
    """One row per native level: scale factor, policy and effective tile grid."""
    native = source.native if isinstance(source, PolicyTileSource) else source
    rows = []
    for level in native.levels():
        policy = source.level_policy(level).value if isinstance(source, PolicyTileSource) else "tiled"
        tiles = source.get_num_tiles(level)
        rows.append(
            {
                "level": level,
                "scale_factor": 2 ** (source.max_level - level),
                "policy": policy,
                "tiles": [tiles.x, tiles.y],
            }
        )
    return rows


def _source_summary(source: TileSource) -> dict:
    return {
        "id": source.id,
        "width": source.width,
        "height": source.height,
        "version": source.version,
        "level0": source.is_level0,
        "min_level": source.min_level,
        "max_level": source.max_level,
        "scale_factors": list(source.scale_factors),
        "levels": describe_levels(source),
    }


def _render_levels_table(summary: dict) -> None:
    print(f"\n{summary['id']}  ({summary['width']}x{summary['height']}, v{summary['version']})")
    print(f"levels {summary['min_level']}..{summary['max_level']}  level0={summary['level0']}")
    print("-" * 50)
    print(f"{'Level':<6} | {'Scale':<6} | {'Policy':<11} | {'Tiles'}")
    for row in summary["levels"]:
        tiles = "x".join(str(n) for n in row["tiles"])
        print(f"{row['level']:<6} | {row['scale_factor']:<6} | {row['policy']:<11} | {tiles}")


def main(argv=None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    setup_logging("DEBUG" if args.verbose else None)

    try:
        viewport = Viewport.parse(args.viewport)
        tile_x, tile_y = _parse_tile(args.tile)
    except (ValueError, argparse.ArgumentTypeError) as exc:
        parser.error(str(exc))

    result = resolve_tile_sources(
        args.sources,
        viewport,
        max_workers=args.workers,
        show_progress=args.progress,
    )
    if not result.ok:
        if args.json:
            print(json.dumps(result.as_dict()))
        else:
            print("Authentication required: at least one image refused access (401).")
        return EXIT_AUTH_REQUIRED

    output = []
    for original, source in zip(args.sources, result.resolved):
        if not isinstance(source, TileSource):
            logger.warning("Could not build a tile source for %s", original)
            output.append({"source": original, "resolved": False})
            continue
        entry = {"source": original, "resolved": True, **_source_summary(source)}
        if args.level is not None:
            entry["tile_url"] = source.get_tile_url(args.level, tile_x, tile_y)
        output.append(entry)

    if args.json:
        print(json.dumps(output, indent=2))
        return 0

    for entry in output:
        if not entry["resolved"]:
            print(f"\n{entry['source']}: unresolved")
            continue
        _render_levels_table(entry)
        if "tile_url" in entry:
            print(f"\ntile ({args.level}, {tile_x}, {tile_y}): {entry['tile_url'] or '<none>'}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
