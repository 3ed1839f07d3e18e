"""
Tests for Web Mercator projection math.

Covers round trips, known reference values, clamping helpers and the pole guard.
"""

import math
import pytest

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from constants import MERCATOR_LAT_BOUND, POLE_LAT_LIMIT
from projection import (
    GeoPoint,
    PixelPoint,
    clamp_latitude,
    guard_pole,
    latlon_to_tile,
    project,
    tile_to_latlon,
    unproject,
    world_size,
)


class TestProject:
    """Tests for geographic to world-pixel conversion."""

    def test_world_size(self):
        assert world_size(0) == 256
        assert world_size(3) == 2048
        assert world_size(2, tile_size=512) == 2048

    def test_origin_maps_to_world_center(self):
        """(0, 0) sits in the middle of the world at every zoom."""
        for zoom in (3, 7, 12):
            p = project(GeoPoint(0.0, 0.0), zoom)
            half = world_size(zoom) / 2
            assert p.x == pytest.approx(half)
            assert p.y == pytest.approx(half)

    def test_longitude_edges(self):
        assert project(GeoPoint(0.0, -180.0), 4).x == pytest.approx(0.0)
        assert project(GeoPoint(0.0, 180.0), 4).x == pytest.approx(world_size(4))

    def test_mercator_bound_is_square(self):
        """The Mercator latitude bound maps to the top edge of the world."""
        p = project(GeoPoint(MERCATOR_LAT_BOUND, 0.0), 5)
        assert p.y == pytest.approx(0.0, abs=1e-3)

    def test_north_is_up(self):
        north = project(GeoPoint(60.0, 10.0), 5)
        south = project(GeoPoint(-10.0, 10.0), 5)
        assert north.y < south.y


class TestRoundTrip:
    """unproject is the inverse of project."""

    @pytest.mark.parametrize("zoom", [3, 6, 9, 12])
    @pytest.mark.parametrize("lat,lng", [
        (45.4642, 9.19),
        (-33.8688, 151.2093),
        (84.9, -179.5),
        (-84.9, 179.5),
    ])
    def test_round_trip(self, zoom, lat, lng):
        back = unproject(project(GeoPoint(lat, lng), zoom), zoom)
        assert back.latitude == pytest.approx(lat, abs=1e-6)
        assert back.longitude == pytest.approx(lng, abs=1e-6)

    def test_unproject_world_center(self):
        p = unproject(PixelPoint(1024.0, 1024.0), 3)
        assert p.latitude == pytest.approx(0.0, abs=1e-9)
        assert p.longitude == pytest.approx(0.0, abs=1e-9)


class TestTiles:
    """Tests for slippy-map tile index helpers."""

    def test_milan_tile(self):
        """Milan at zoom 5 is tile 16/11."""
        assert latlon_to_tile(45.4642, 9.19, 5) == (16, 11)

    def test_tile_corner_round_trip(self):
        lat, lon = tile_to_latlon(16, 11, 5)
        assert latlon_to_tile(lat - 1e-6, lon + 1e-6, 5) == (16, 11)

    def test_tile_zero_is_north_west(self):
        lat, lon = tile_to_latlon(0, 0, 3)
        assert lon == pytest.approx(-180.0)
        assert lat == pytest.approx(MERCATOR_LAT_BOUND, abs=1e-6)


class TestClamp:
    """Tests for Mercator domain clamping."""

    def test_clamp_latitude(self):
        assert clamp_latitude(89.0) == MERCATOR_LAT_BOUND
        assert clamp_latitude(-90.0) == -MERCATOR_LAT_BOUND
        assert clamp_latitude(12.5) == 12.5

    def test_guard_pole_unchanged_returns_same_object(self):
        p = GeoPoint(88.0, 200.0)
        assert guard_pole(p) is p

    def test_guard_pole_moves_only_latitude(self):
        p = guard_pole(GeoPoint(90.0, 200.0))
        assert p == GeoPoint(POLE_LAT_LIMIT, 200.0)
        assert math.isfinite(project(p, 3).y)
        assert guard_pole(GeoPoint(-90.0, 0.0)).latitude == -POLE_LAT_LIMIT

    def test_round_trip_beyond_mercator_bound(self):
        """Points above the square-world edge still round trip."""
        p = GeoPoint(87.5, 190.0)
        back = unproject(project(p, 3), 3)
        assert back.latitude == pytest.approx(87.5, abs=1e-9)
        assert back.longitude == pytest.approx(190.0, abs=1e-9)
