"""
Value types shared by the projection, tile and map modules.

Geographic points are in degrees, projected points in Web-Mercator meters,
pixel points in device-independent pixels at the current zoom.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class GeoPoint:
    """Geographic coordinates in degrees."""
    lat: float
    lon: float

    def as_tuple(self) -> tuple[float, float]:
        """Return as (lat, lon)."""
        return (self.lat, self.lon)

    @property
    def is_valid(self) -> bool:
        return -90.0 <= self.lat <= 90.0 and -180.0 <= self.lon <= 180.0


@dataclass(frozen=True)
class ProjectedPoint:
    """Spherical Web-Mercator coordinates in meters (y grows northward)."""
    x: float
    y: float

    def as_tuple(self) -> tuple[float, float]:
        return (self.x, self.y)


@dataclass(frozen=True)
class PixelPoint:
    """Pixel coordinates (y grows downward)."""
    x: float
    y: float

    def as_tuple(self) -> tuple[float, float]:
        return (self.x, self.y)


@dataclass(frozen=True)
class GeoRect:
    """Geographic rectangle given by its top-left and bottom-right corners."""
    top_left: GeoPoint
    bottom_right: GeoPoint

    @property
    def is_valid(self) -> bool:
        """
        A rectangle is usable when both corners are real coordinates and
        it is not collapsed to a single point.
        """
        return (
            self.top_left.is_valid
            and self.bottom_right.is_valid
            and self.top_left != self.bottom_right
        )

    @property
    def center(self) -> GeoPoint:
        return GeoPoint(
            lat=(self.top_left.lat + self.bottom_right.lat) / 2.0,
            lon=(self.top_left.lon + self.bottom_right.lon) / 2.0,
        )

    def as_tuple(self) -> tuple[float, float, float, float]:
        """Return as (top_lat, left_lon, bottom_lat, right_lon)."""
        return (
            self.top_left.lat,
            self.top_left.lon,
            self.bottom_right.lat,
            self.bottom_right.lon,
        )


@dataclass(frozen=True)
class PixelRect:
    """Axis-aligned pixel rectangle."""
    left: float
    top: float
    right: float
    bottom: float

    @classmethod
    def from_points(cls, top_left: PixelPoint, bottom_right: PixelPoint) -> "PixelRect":
        return cls(top_left.x, top_left.y, bottom_right.x, bottom_right.y)

    @classmethod
    def from_size(cls, left: float, top: float, width: float, height: float) -> "PixelRect":
        return cls(left, top, left + width, top + height)

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    @property
    def center(self) -> PixelPoint:
        return PixelPoint((self.left + self.right) / 2.0, (self.top + self.bottom) / 2.0)

    def as_tuple(self) -> tuple[float, float, float, float]:
        return (self.left, self.top, self.right, self.bottom)


@dataclass(frozen=True)
class ZoomRange:
    """Inclusive range of zoom levels available in a tile store."""
    min: int
    max: int

    @property
    def is_valid(self) -> bool:
        return 0 <= self.min <= self.max

    def clamp(self, zoom: int) -> int:
        if zoom < self.min:
            return self.min
        if zoom > self.max:
            return self.max
        return zoom
