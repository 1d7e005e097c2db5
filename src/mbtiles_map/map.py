"""
Slippy map over an MBTiles tile pyramid.

The map owns the current zoom, the geographic bounds of the tile set and the
device/tile pixel ratios. Pixel coordinates are map pixels at the current
zoom with the origin at (lat 0, lon 0) and y growing downward.
"""

import logging
import math
from pathlib import Path
from typing import Callable, Optional

from PIL import Image

from .cache import MemoryTileCache, TileCache
from .decoder import decode_tile
from .geometry import GeoPoint, GeoRect, PixelPoint, PixelRect, ProjectedPoint, ZoomRange
from .painter import Painter
from .projection import (
    TILE_SIZE,
    clamp_latitude,
    geo_to_projected,
    ground_scale_factor,
    projected_to_geo,
    scale_for_zoom,
    zoom_for_scale,
)
from .store import MBTilesStore, TileStoreError
from .tiles import Tile, clamp_index, flip_row, tile_cache_key, tile_extent, tile_from_projected, tile_origin

logger = logging.getLogger(__name__)


class InvalidMapError(Exception):
    """Operation attempted on a map whose tile set could not be loaded."""

    pass


class MBTilesMap:
    """
    Map backed by an MBTiles store.

    Construction never raises for a bad tile set: check `is_valid` and
    `error_string` afterwards. Every other operation on an invalid map raises
    InvalidMapError.
    """

    def __init__(
        self,
        store: MBTilesStore,
        cache: Optional[TileCache] = None,
        decoder: Callable[[Optional[bytes]], Optional[Image.Image]] = decode_tile,
    ):
        """
        Initialize the map and derive its bounds from the store.

        Args:
            store: Tile store (MBTilesStore or anything with the same methods)
            cache: Decoded tile cache, possibly shared with other maps
                   (default: a private MemoryTileCache)
            decoder: Function turning encoded tile bytes into an image or None
        """
        self.store = store
        self.cache = cache if cache is not None else MemoryTileCache()
        self._decode = decoder
        self._device_ratio = 1.0
        self._tile_ratio = 1.0
        self._zooms = ZoomRange(0, 0)
        self._zoom = 0
        self._bounds: Optional[GeoRect] = None
        self._extents = (0, 0, 0, 0)
        self._error = ""

        try:
            error = self._load_tile_set()
        except TileStoreError as ex:
            error = str(ex)
        if error:
            self._error = error
            logger.warning(f"{self.name}: {error}")
        else:
            logger.info(
                f"loaded {self.name}: zooms {self._zooms.min}-{self._zooms.max}, "
                f"bounds {self._bounds.as_tuple()}"
            )

    @classmethod
    def from_file(cls, path: Path, cache: Optional[TileCache] = None) -> "MBTilesMap":
        return cls(MBTilesStore(path), cache=cache)

    def _load_tile_set(self) -> Optional[str]:
        """Read zoom range and bounds; returns an error message on failure."""
        if not self.store.validate_schema():
            return "Invalid table format"

        zooms = self.store.zoom_range()
        if zooms is None:
            return "Empty tile set"
        if not zooms.is_valid:
            return "Invalid zoom levels"

        extents = self.store.tile_extents(zooms.min)
        if extents is None:
            return "Empty tile set"

        z = zooms.min
        min_col, min_row, max_col, max_row = (clamp_index(i, z) for i in extents)
        # Store rows are bottom-origin: the highest stored row is the top one.
        top_row, bottom_row = flip_row(z, max_row), flip_row(z, min_row)
        top_left = tile_origin(min_col, top_row, z)
        _, bottom_right = tile_extent(max_col, bottom_row, z)
        self._extents = (min_col, top_row, max_col, bottom_row)
        self._bounds = _safe_rect(projected_to_geo(top_left), projected_to_geo(bottom_right))

        self._zooms = zooms
        self._zoom = zooms.max
        return None

    # --- State ---

    @property
    def name(self) -> str:
        return self.store.name

    @property
    def is_valid(self) -> bool:
        return not self._error

    @property
    def error_string(self) -> str:
        return self._error

    def _require_valid(self):
        if self._error:
            raise InvalidMapError(f"{self.name}: {self._error}")

    @property
    def zoom(self) -> int:
        self._require_valid()
        return self._zoom

    @property
    def zoom_range(self) -> ZoomRange:
        self._require_valid()
        return self._zooms

    @property
    def geo_bounds(self) -> GeoRect:
        self._require_valid()
        return self._bounds

    def load(self):
        """Keep the store connection open for a rendering session."""
        self._require_valid()
        self.store.open()

    def unload(self):
        self._require_valid()
        self.store.close()

    def set_device_pixel_ratio(self, device_ratio: float, tile_ratio: float = 1.0):
        self._require_valid()
        if device_ratio <= 0 or tile_ratio <= 0:
            raise ValueError(f"pixel ratios must be positive (got {device_ratio}, {tile_ratio})")
        self._device_ratio = float(device_ratio)
        self._tile_ratio = float(tile_ratio)

    @property
    def coordinates_ratio(self) -> float:
        """Map pixels per tile pixel divisor; > 1 only on high-density devices."""
        self._require_valid()
        if self._device_ratio > 1.0:
            return self._device_ratio / self._tile_ratio
        return 1.0

    @property
    def image_ratio(self) -> float:
        """Tile image pixels per map pixel."""
        self._require_valid()
        return self._device_ratio if self._device_ratio > 1.0 else self._tile_ratio

    @property
    def tile_size(self) -> float:
        """On-screen size of one tile in map pixels."""
        return TILE_SIZE / self.coordinates_ratio

    # --- Zoom ---

    def limit_zoom(self, zoom: int) -> int:
        self._require_valid()
        return self._zooms.clamp(zoom)

    def set_zoom(self, zoom: int) -> int:
        self._zoom = self.limit_zoom(zoom)
        return self._zoom

    def zoom_in(self) -> int:
        self._zoom = self.limit_zoom(self._zoom + 1)
        return self._zoom

    def zoom_out(self) -> int:
        self._zoom = self.limit_zoom(self._zoom - 1)
        return self._zoom

    def zoom_fit(self, size: tuple[int, int], rect: Optional[GeoRect]) -> int:
        """
        Set the zoom at which `rect` fits into a viewport of `size` pixels.

        An unset or invalid rect selects the finest zoom.

        Args:
            size: Viewport (width, height) in pixels
            rect: Geographic area to fit, or None

        Returns:
            The new zoom
        """
        self._require_valid()
        if rect is None or not rect.is_valid:
            self._zoom = self._zooms.max
            return self._zoom

        width, height = size
        if width <= 0 or height <= 0:
            raise ValueError(f"viewport size must be positive (got {width}x{height})")

        tl = geo_to_projected(rect.top_left)
        br = geo_to_projected(rect.bottom_right)
        sx = (br.x - tl.x) / width
        sy = (br.y - tl.y) / height
        # Projected y grows northward, so sy is negative for a proper rect.
        scale = max(sx, -sy) / self.coordinates_ratio
        if scale > 0:
            self._zoom = self.limit_zoom(zoom_for_scale(scale))
        else:
            self._zoom = self._zooms.max
        return self._zoom

    # --- Coordinates ---

    def geo_to_pixel(self, point: GeoPoint) -> PixelPoint:
        return self._projected_to_pixel(geo_to_projected(point))

    def _projected_to_pixel(self, point: ProjectedPoint) -> PixelPoint:
        self._require_valid()
        scale = scale_for_zoom(self._zoom)
        ratio = self.coordinates_ratio
        return PixelPoint(point.x / scale / ratio, -point.y / scale / ratio)

    def pixel_to_geo(self, point: PixelPoint) -> GeoPoint:
        return projected_to_geo(self._pixel_to_projected(point))

    def _pixel_to_projected(self, point: PixelPoint) -> ProjectedPoint:
        self._require_valid()
        scale = scale_for_zoom(self._zoom)
        ratio = self.coordinates_ratio
        return ProjectedPoint(point.x * ratio * scale, -point.y * ratio * scale)

    def bounds(self) -> PixelRect:
        """The tile set bounds in pixels at the current zoom."""
        self._require_valid()
        return PixelRect.from_points(
            self.geo_to_pixel(self._bounds.top_left),
            self.geo_to_pixel(self._bounds.bottom_right),
        )

    def resolution(self, rect: PixelRect) -> float:
        """Ground meters per pixel at the vertical center of `rect`."""
        self._require_valid()
        lat = self.pixel_to_geo(rect.center).lat
        return scale_for_zoom(self._zoom) * self.coordinates_ratio * ground_scale_factor(lat)

    # --- Drawing ---

    def draw(self, painter: Painter, rect: PixelRect) -> int:
        """
        Paint the tiles covering `rect` (clipped to the map bounds).

        Tiles are emitted row by row, left to right. Missing or undecodable
        tiles are skipped.

        Returns:
            Number of tiles painted
        """
        self._require_valid()
        size = self.tile_size
        b = self.bounds()

        left, top = max(rect.left, b.left), max(rect.top, b.top)
        right, bottom = min(rect.right, b.right), min(rect.bottom, b.bottom)
        if right <= left or bottom <= top:
            return 0
        origin = PixelPoint(math.floor(left / size) * size, math.floor(top / size) * size)
        columns = math.ceil((right - origin.x) / size)
        rows = math.ceil((bottom - origin.y) / size)
        if columns <= 0 or rows <= 0:
            return 0

        # Sample inside the first cell clipped to the bounds, clear of any tile edge.
        sample = PixelPoint(
            (left + min(origin.x + size, right)) / 2,
            (top + min(origin.y + size, bottom)) / 2,
        )
        anchor_x, anchor_y = tile_from_projected(
            self._pixel_to_projected(sample),
            self._zoom,
        )

        painted = 0
        for j in range(rows):
            for i in range(columns):
                tile = Tile(self._zoom, anchor_x + i, anchor_y + j)
                if not self._covers(tile):
                    continue
                image = self._tile_image(tile)
                if image is None:
                    continue
                point = self._projected_to_pixel(tile_origin(tile.x, tile.y, tile.z))
                painter.draw_image(image, point, self.image_ratio)
                painted += 1
        return painted

    def _covers(self, tile: Tile) -> bool:
        """Whether a tile lies inside the stored extents scaled to its zoom."""
        shift = tile.z - self._zooms.min
        min_col, min_row, max_col, max_row = self._extents
        return (
            min_col << shift <= tile.x < (max_col + 1) << shift
            and min_row << shift <= tile.y < (max_row + 1) << shift
        )

    def _tile_image(self, tile: Tile) -> Optional[Image.Image]:
        key = tile_cache_key(self.store.identity, tile)
        image = self.cache.get(key)
        if image is not None:
            return image

        try:
            data = self.store.tile_data(tile.z, tile.x, tile.store_row)
        except TileStoreError:
            logger.exception(f"reading tile {tile.as_tuple()} of {self.name}")
            return None
        if data is None:
            logger.debug(f"no tile {tile.as_tuple()} in {self.name}")
            return None

        image = self._decode(data)
        if image is None:
            return None
        self.cache.put(key, image)
        return image


def _safe_rect(top_left: GeoPoint, bottom_right: GeoPoint) -> GeoRect:
    # Tiles of zoom levels 0 and 1 project slightly past the Mercator limit.
    return GeoRect(
        GeoPoint(clamp_latitude(top_left.lat), top_left.lon),
        GeoPoint(clamp_latitude(bottom_right.lat), bottom_right.lon),
    )
