"""
Web Mercator projection helpers.

Pure coordinate math: geographic (lat/lng) to world-pixel space at a zoom level
and back, plus slippy-map tile conversions. World-pixel space spans
``2**zoom * tile_size`` pixels on each axis with (0, 0) at the north-west corner.

Latitudes of exactly +/-90 degrees are outside the domain of ``project``
(the Mercator y coordinate is infinite there). Callers keep latitudes inside
``POLE_LAT_LIMIT``; ``guard_pole`` does that for them. Longitude is never
wrapped or clamped: a view may be centered past the antimeridian.
"""

import math
from dataclasses import dataclass
from typing import Tuple

from constants import TILE_SIZE, MERCATOR_LAT_BOUND, POLE_LAT_LIMIT


@dataclass(frozen=True)
class GeoPoint:
    """Geographic coordinate in degrees.

    Attributes:
        latitude: Degrees north, in [-90, 90]
        longitude: Degrees east, in [-180, 180]
    """
    latitude: float
    longitude: float

    def as_tuple(self) -> Tuple[float, float]:
        return self.latitude, self.longitude


@dataclass(frozen=True)
class PixelPoint:
    """Point in world-pixel (or screen-pixel) space."""
    x: float
    y: float


def world_size(zoom: int, tile_size: int = TILE_SIZE) -> float:
    """Width (and height) of the whole world in pixels at ``zoom``."""
    return (2 ** zoom) * tile_size


def project(point: GeoPoint, zoom: int, tile_size: int = TILE_SIZE) -> PixelPoint:
    """Convert a geographic point to world-pixel coordinates.

    Longitude maps linearly onto x. Latitude maps through
    ``ln(tan(lat) + sec(lat))``, written here as ``asinh(tan(lat))``.

    Args:
        point: Geographic point (latitude must not be +/-90)
        zoom: Zoom level
        tile_size: Tile edge in pixels

    Returns:
        PixelPoint with floating-point precision
    """
    scale = world_size(zoom, tile_size)
    x = (point.longitude + 180.0) / 360.0 * scale
    lat_rad = math.radians(point.latitude)
    y = (1.0 - math.asinh(math.tan(lat_rad)) / math.pi) / 2.0 * scale
    return PixelPoint(x, y)


def unproject(pixel: PixelPoint, zoom: int, tile_size: int = TILE_SIZE) -> GeoPoint:
    """Convert world-pixel coordinates back to a geographic point.

    Exact inverse of ``project``.
    """
    scale = world_size(zoom, tile_size)
    lng = pixel.x / scale * 360.0 - 180.0
    n = math.pi - 2.0 * math.pi * pixel.y / scale
    lat = math.degrees(math.atan(math.sinh(n)))
    return GeoPoint(lat, lng)


def latlon_to_tile(lat: float, lon: float, zoom: int) -> Tuple[int, int]:
    """Convert lat/lon to tile coordinates at given zoom level.

    Returns (tile_x, tile_y) - integer tile coordinates in the global grid.
    """
    n = 2 ** zoom
    tile_x = int(math.floor((lon + 180.0) / 360.0 * n))
    lat_rad = math.radians(lat)
    tile_y = int(math.floor((1.0 - math.asinh(math.tan(lat_rad)) / math.pi) / 2.0 * n))
    return tile_x, tile_y


def tile_to_latlon(tile_x: int, tile_y: int, zoom: int) -> Tuple[float, float]:
    """Convert tile coordinates to lat/lon of the tile's NW corner."""
    n = 2 ** zoom
    lon = tile_x / n * 360.0 - 180.0
    lat_rad = math.atan(math.sinh(math.pi * (1 - 2 * tile_y / n)))
    return math.degrees(lat_rad), lon


def clamp_latitude(lat: float) -> float:
    return max(-MERCATOR_LAT_BOUND, min(MERCATOR_LAT_BOUND, lat))


def clamp_longitude(lng: float) -> float:
    return max(-180.0, min(180.0, lng))


def guard_pole(point: GeoPoint) -> GeoPoint:
    """Keep a view center off the poles.

    Only latitudes beyond +/-POLE_LAT_LIMIT move, so projecting and
    unprojecting anything inside the world is untouched. Longitude passes
    through unchanged.
    """
    if -POLE_LAT_LIMIT <= point.latitude <= POLE_LAT_LIMIT:
        return point
    return GeoPoint(max(-POLE_LAT_LIMIT, min(POLE_LAT_LIMIT, point.latitude)), point.longitude)
