"""
Spherical Web-Mercator projection and zoom/scale arithmetic.

Uses mercantile for the geographic <-> projected conversions. Scales are
expressed in projected meters per tile pixel; zoom 0 is the level where the
whole world fits into a single tile.
"""

import math

import mercantile

from .geometry import GeoPoint, ProjectedPoint

EARTH_RADIUS = 6378137.0
EARTH_CIRCUMFERENCE = 2 * math.pi * EARTH_RADIUS
TILE_SIZE = 256

# Latitude of the edge of a square Web-Mercator world map.
MAX_LATITUDE = 85.0511


def clamp_latitude(lat: float) -> float:
    """Clamp a latitude into the band representable in Web-Mercator."""
    return max(-MAX_LATITUDE, min(MAX_LATITUDE, lat))


def scale_for_zoom(zoom: int) -> float:
    """Meters per pixel at the equator for a zoom level."""
    return EARTH_CIRCUMFERENCE / (TILE_SIZE * (1 << zoom))


def zoom_for_scale(scale: float) -> int:
    """
    Inverse of scale_for_zoom, rounded to the nearest integer zoom.

    The result is not clamped to any zoom range; callers do that.
    """
    return int(round(math.log2(EARTH_CIRCUMFERENCE / (scale * TILE_SIZE))))


def geo_to_projected(point: GeoPoint) -> ProjectedPoint:
    x, y = mercantile.xy(point.lon, clamp_latitude(point.lat))
    return ProjectedPoint(x, y)


def projected_to_geo(point: ProjectedPoint) -> GeoPoint:
    lnglat = mercantile.lnglat(point.x, point.y)
    return GeoPoint(lat=lnglat.lat, lon=lnglat.lng)


def ground_scale_factor(lat: float) -> float:
    """Ratio of true ground distance to projected distance at a latitude."""
    return math.cos(math.radians(clamp_latitude(lat)))
