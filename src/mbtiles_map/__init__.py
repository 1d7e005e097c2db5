"""
Slippy map rendering of MBTiles raster tile databases.
"""

from .cache import MemoryTileCache, TileCache
from .geometry import GeoPoint, GeoRect, PixelPoint, PixelRect, ProjectedPoint, ZoomRange
from .map import InvalidMapError, MBTilesMap
from .painter import ImagePainter, Painter
from .store import MBTilesStore, TileStoreError
from .tiles import Tile

__all__ = [
    "GeoPoint",
    "GeoRect",
    "ImagePainter",
    "InvalidMapError",
    "MBTilesMap",
    "MBTilesStore",
    "MemoryTileCache",
    "Painter",
    "PixelPoint",
    "PixelRect",
    "ProjectedPoint",
    "Tile",
    "TileCache",
    "TileStoreError",
    "ZoomRange",
]
