"""
Command-line interface for inspecting and rendering MBTiles maps.
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from .cache import DEFAULT_CACHE_SIZE, MemoryTileCache
from .geometry import GeoPoint, PixelRect
from .map import MBTilesMap
from .painter import ImagePainter

logger = logging.getLogger(__name__)


def _open_map(args) -> MBTilesMap:
    path = Path(args.file)
    if not path.exists():
        print(f"Error: No such file: {path}", file=sys.stderr)
        sys.exit(1)

    tile_map = MBTilesMap.from_file(path, cache=MemoryTileCache(args.cache_size))
    if not tile_map.is_valid:
        print(f"Error: {tile_map.name}: {tile_map.error_string}", file=sys.stderr)
        sys.exit(1)
    return tile_map


def _parse_pair(value: str, name: str, sep: str = ",", cast=float) -> tuple:
    try:
        parts = tuple(cast(v) for v in value.lower().split(sep))
        if len(parts) != 2:
            raise ValueError(f"{name} must have 2 values")
    except ValueError as e:
        print(f"Error parsing {name}: {e}", file=sys.stderr)
        sys.exit(1)
    return parts


def cmd_info(args):
    """Show zoom levels, bounds and metadata of a tile database."""
    tile_map = _open_map(args)
    bounds = tile_map.geo_bounds
    zooms = tile_map.zoom_range
    metadata = tile_map.store.metadata()

    if args.output_format == "json":
        output = {
            "name": tile_map.name,
            "zoom_range": [zooms.min, zooms.max],
            "bounds": {
                "top_lat": bounds.top_left.lat,
                "left_lon": bounds.top_left.lon,
                "bottom_lat": bounds.bottom_right.lat,
                "right_lon": bounds.bottom_right.lon,
            },
            "metadata": metadata,
        }
        print(json.dumps(output, indent=2))
        return

    print(f"Name: {tile_map.name}")
    print(f"Zoom levels: {zooms.min}-{zooms.max}")
    print("\nBounds:")
    print(f"  top_lat:    {bounds.top_left.lat:.6f}")
    print(f"  left_lon:   {bounds.top_left.lon:.6f}")
    print(f"  bottom_lat: {bounds.bottom_right.lat:.6f}")
    print(f"  right_lon:  {bounds.bottom_right.lon:.6f}")
    if metadata:
        print("\nMetadata:")
        for key, value in sorted(metadata.items()):
            print(f"  {key}: {value}")


def cmd_render(args):
    """Render a viewport of a tile database to an image file."""
    width, height = _parse_pair(args.size, "size", sep="x", cast=int)
    if width <= 0 or height <= 0:
        print("Error: size must be positive", file=sys.stderr)
        sys.exit(1)

    tile_map = _open_map(args)
    try:
        tile_map.set_device_pixel_ratio(args.device_ratio, args.tile_ratio)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.zoom is not None:
        tile_map.set_zoom(args.zoom)
    elif args.fit:
        tile_map.zoom_fit((width, height), tile_map.geo_bounds)

    if args.center:
        lat, lon = _parse_pair(args.center, "center")
        center = GeoPoint(lat=lat, lon=lon)
    else:
        center = tile_map.geo_bounds.center

    c = tile_map.geo_to_pixel(center)
    viewport = PixelRect.from_size(c.x - width / 2, c.y - height / 2, width, height)
    painter = ImagePainter(viewport, ratio=tile_map.image_ratio)

    tile_map.load()
    try:
        painted = tile_map.draw(painter, viewport)
    finally:
        tile_map.unload()

    painter.save(args.output)
    logger.info(
        f"rendered {painted} tiles of {tile_map.name} at zoom {tile_map.zoom} to {args.output}"
    )
    print(f"Zoom: {tile_map.zoom}")
    print(f"Resolution: {tile_map.resolution(viewport):.2f} m/px")
    print(f"Tiles drawn: {painted}")
    print(f"Output: {Path(args.output).absolute()}")


def main(argv=None):
    """Main CLI entry point."""
    load_dotenv()

    parser = argparse.ArgumentParser(
        description="Inspect and render MBTiles raster maps",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--cache-size",
        type=int,
        default=int(os.environ.get("MBTILES_CACHE_SIZE", DEFAULT_CACHE_SIZE)),
        help=f"Number of decoded tiles to cache (default: {DEFAULT_CACHE_SIZE})",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    info_parser = subparsers.add_parser(
        "info",
        help="Show zoom levels, bounds and metadata",
    )
    info_parser.add_argument("file", help="MBTiles file")
    info_parser.add_argument(
        "--output-format",
        "-f",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )
    info_parser.set_defaults(func=cmd_info)

    render_parser = subparsers.add_parser(
        "render",
        help="Render a viewport to an image",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s world.mbtiles --output world.png --fit
  %(prog)s city.mbtiles -o center.png --zoom 14 --center 48.8566,2.3522
        """,
    )
    render_parser.add_argument("file", help="MBTiles file")
    render_parser.add_argument(
        "--output",
        "-o",
        required=True,
        help="Output image (format from extension)",
    )
    render_parser.add_argument(
        "--size",
        "-s",
        default="1024x768",
        help="Viewport size WIDTHxHEIGHT (default: 1024x768)",
    )
    render_parser.add_argument(
        "--zoom",
        "-z",
        type=int,
        help="Zoom level (clamped to the available levels; default: finest)",
    )
    render_parser.add_argument(
        "--fit",
        action="store_true",
        help="Pick the zoom that fits the whole map into the viewport",
    )
    render_parser.add_argument(
        "--center",
        "-c",
        help="Viewport center: lat,lon (default: center of the map)",
    )
    render_parser.add_argument(
        "--device-ratio",
        type=float,
        default=float(os.environ.get("MBTILES_DEVICE_RATIO", "1.0")),
        help="Device pixel ratio (default: 1.0)",
    )
    render_parser.add_argument(
        "--tile-ratio",
        type=float,
        default=float(os.environ.get("MBTILES_TILE_RATIO", "1.0")),
        help="Tile pixel ratio, 2 for @2x tiles (default: 1.0)",
    )
    render_parser.set_defaults(func=cmd_render)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.WARNING,  # Default for external libs
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.FileHandler("mbtiles_map.log"),
            logging.StreamHandler(sys.stderr),
        ],
    )
    logging.getLogger("mbtiles_map").setLevel(logging.DEBUG if args.verbose else logging.INFO)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    args.func(args)


if __name__ == "__main__":
    main()
