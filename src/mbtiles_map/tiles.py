"""
Tile addressing.

Tiles are addressed with a top-origin row (row 0 is the northern edge), the
convention used by the projection and by mercantile. MBTiles databases store
rows bottom-origin (TMS); flip_row converts between the two.
"""

from dataclasses import dataclass

import mercantile

from .geometry import ProjectedPoint


@dataclass(frozen=True)
class Tile:
    """Map tile coordinates (top-origin row)."""
    z: int  # zoom level
    x: int  # tile column
    y: int  # tile row

    def as_tuple(self) -> tuple[int, int, int]:
        """Return as (z, x, y) tuple."""
        return (self.z, self.x, self.y)

    @property
    def store_row(self) -> int:
        """Row of this tile in the bottom-origin convention of the store."""
        return flip_row(self.z, self.y)


def flip_row(zoom: int, row: int) -> int:
    """
    Convert a row between top-origin and bottom-origin conventions.

    The conversion is its own inverse.
    """
    return (1 << zoom) - row - 1


def clamp_index(index: int, zoom: int) -> int:
    """Clamp a column or row index into [0, 2^zoom - 1]."""
    return min((1 << zoom) - 1, max(0, index))


def tile_from_projected(point: ProjectedPoint, zoom: int) -> tuple[int, int]:
    """
    Return the (column, row) of the tile containing a projected point.

    Points outside the world map to the nearest edge tile.
    """
    t = mercantile.tile(*mercantile.lnglat(point.x, point.y), zoom)
    return (t.x, t.y)


def tile_extent(column: int, row: int, zoom: int) -> tuple[ProjectedPoint, ProjectedPoint]:
    """Projected (top-left, bottom-right) corners of a tile."""
    b = mercantile.xy_bounds(column, row, zoom)
    return (ProjectedPoint(b.left, b.top), ProjectedPoint(b.right, b.bottom))


def tile_origin(column: int, row: int, zoom: int) -> ProjectedPoint:
    """Projected coordinates of the top-left corner of a tile."""
    return tile_extent(column, row, zoom)[0]


def tile_cache_key(identity: str, tile: Tile) -> str:
    """Cache key identifying one tile image of one store."""
    return f"{identity}-{tile.z}_{tile.x}_{tile.y}"
