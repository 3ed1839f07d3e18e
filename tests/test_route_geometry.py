"""
Tests for route curve construction.

Covers curvature per transport mode, boat curve orientation, degenerate legs,
SVG output and polyline sampling.
"""

import pytest
import numpy as np

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from projection import GeoPoint, PixelPoint, project
from route_geometry import (
    RouteLeg,
    RoutePath,
    TransportMode,
    build_route_legs,
    curved_path,
    leg_path,
)
from trip_log import DestinationInput


def to_screen(point: GeoPoint) -> PixelPoint:
    return project(point, 3)


def chord_y_at(path: RoutePath, x: float) -> float:
    t = (x - path.start.x) / (path.end.x - path.start.x)
    return path.start.y + t * (path.end.y - path.start.y)


# =============================================================================
# Transport modes
# =============================================================================

class TestTransportMode:
    """Tests for transport mode parsing."""

    def test_parse_values(self):
        assert TransportMode.parse("plane") == TransportMode.PLANE
        assert TransportMode.parse("BOAT") == TransportMode.BOAT
        assert TransportMode.parse(TransportMode.CAR) == TransportMode.CAR

    def test_parse_missing_or_unknown(self):
        assert TransportMode.parse(None) == TransportMode.NONE
        assert TransportMode.parse("rocket") == TransportMode.NONE


# =============================================================================
# Curvature
# =============================================================================

class TestCurvedPath:
    """Tests for quadratic and cubic path construction."""

    START = PixelPoint(0.0, 0.0)
    END = PixelPoint(100.0, 0.0)

    @pytest.mark.parametrize("mode", ["car", "train", "bus", None])
    def test_default_curvature(self, mode):
        path = curved_path(self.START, self.END, mode)
        assert len(path.controls) == 1
        c = path.controls[0]
        assert c.x == pytest.approx(50.0)
        assert abs(c.y) == pytest.approx(12.0)
        assert not path.dashed

    def test_plane_curvature_and_dash(self):
        path = curved_path(self.START, self.END, "plane")
        assert len(path.controls) == 1
        assert abs(path.controls[0].y) == pytest.approx(15.0)
        assert path.dashed

    def test_control_on_left_normal(self):
        """Quadratic controls sit on the chord's left-hand normal."""
        path = curved_path(PixelPoint(0.0, 0.0), PixelPoint(0.0, 100.0), "car")
        c = path.controls[0]
        assert c.x == pytest.approx(-12.0)
        assert c.y == pytest.approx(50.0)

    def test_curvature_scales_with_length(self):
        short = curved_path(self.START, PixelPoint(10.0, 0.0), "car")
        assert abs(short.controls[0].y) == pytest.approx(1.2)

    def test_boat_cubic_controls(self):
        path = curved_path(self.START, self.END, "boat")
        assert len(path.controls) == 2
        c1, c2 = path.controls
        assert c1.x == pytest.approx(100 / 3)
        assert c2.x == pytest.approx(200 / 3)
        assert c1.y == pytest.approx(25.0)
        assert c2.y == pytest.approx(25.0)

    @pytest.mark.parametrize("end", [PixelPoint(0.5, 0.0), PixelPoint(0.0, 0.0), PixelPoint(0.3, 0.4)])
    def test_coincident_points_are_straight(self, end):
        path = curved_path(self.START, end, "boat")
        assert path.is_straight
        assert path.controls == ()


class TestBoatDirection:
    """Boat legs bend toward the equator (east-west) or east (north-south)."""

    def test_northern_east_west_bends_south(self):
        leg = RouteLeg(GeoPoint(40.0, 0.0), GeoPoint(40.0, 60.0), TransportMode.BOAT)
        path = leg_path(leg, to_screen)
        for c in path.controls:
            assert c.y > chord_y_at(path, c.x)

    def test_direction_is_deterministic(self):
        leg = RouteLeg(GeoPoint(40.0, 0.0), GeoPoint(40.0, 60.0), TransportMode.BOAT)
        assert leg_path(leg, to_screen) == leg_path(leg, to_screen)

    def test_reversed_leg_still_bends_south(self):
        leg = RouteLeg(GeoPoint(40.0, 60.0), GeoPoint(40.0, 0.0), TransportMode.BOAT)
        path = leg_path(leg, to_screen)
        for c in path.controls:
            assert c.y > chord_y_at(path, c.x)

    def test_southern_east_west_bends_north(self):
        leg = RouteLeg(GeoPoint(-35.0, 20.0), GeoPoint(-35.0, 80.0), TransportMode.BOAT)
        path = leg_path(leg, to_screen)
        for c in path.controls:
            assert c.y < chord_y_at(path, c.x)

    @pytest.mark.parametrize("start,end", [
        (GeoPoint(0.0, 10.0), GeoPoint(40.0, 10.0)),
        (GeoPoint(40.0, 10.0), GeoPoint(0.0, 10.0)),
    ])
    def test_north_south_bends_east(self, start, end):
        path = leg_path(RouteLeg(start, end, TransportMode.BOAT), to_screen)
        for c in path.controls:
            assert c.x > path.start.x


# =============================================================================
# Output
# =============================================================================

class TestRoutePathOutput:
    """Tests for SVG and sampled polyline output."""

    def test_svg_straight(self):
        path = RoutePath(PixelPoint(1.0, 2.0), PixelPoint(1.0, 2.0))
        assert path.to_svg() == "M 1.00 2.00 L 1.00 2.00"

    def test_svg_quadratic(self):
        path = curved_path(PixelPoint(0.0, 0.0), PixelPoint(100.0, 0.0), "car")
        assert path.to_svg() == "M 0.00 0.00 Q 50.00 12.00 100.00 0.00"

    def test_svg_cubic(self):
        path = curved_path(PixelPoint(0.0, 0.0), PixelPoint(90.0, 0.0), "boat")
        assert path.to_svg().startswith("M 0.00 0.00 C 30.00 22.50 60.00 22.50 ")

    def test_sample_endpoints(self):
        path = curved_path(PixelPoint(10.0, 20.0), PixelPoint(200.0, 80.0), "plane")
        pts = path.sample(16)
        assert pts.shape == (16, 2)
        np.testing.assert_allclose(pts[0], [10.0, 20.0])
        np.testing.assert_allclose(pts[-1], [200.0, 80.0])

    def test_sample_quadratic_midpoint(self):
        """At t=0.5 a quadratic sits halfway between chord midpoint and control."""
        path = curved_path(PixelPoint(0.0, 0.0), PixelPoint(100.0, 0.0), "car")
        pts = path.sample(3)
        np.testing.assert_allclose(pts[1], [50.0, 6.0])

    def test_sample_straight_has_two_points(self):
        path = curved_path(PixelPoint(5.0, 5.0), PixelPoint(5.0, 5.0))
        assert path.sample(32).shape == (2, 2)


# =============================================================================
# Legs
# =============================================================================

class TestBuildRouteLegs:
    """Tests for pairing destinations into legs."""

    def test_leg_takes_arrival_mode(self, greece_input):
        trip = greece_input.to_trip()
        legs = build_route_legs(trip.destinations)
        assert [leg.mode for leg in legs] == [
            TransportMode.PLANE, TransportMode.BOAT, TransportMode.BOAT,
        ]
        assert legs[0].start == GeoPoint(45.4642, 9.19)
        assert legs[0].end == GeoPoint(37.9838, 23.7275)

    def test_missing_mode_is_none(self):
        dests = [
            DestinationInput(city="A", country="X", latitude=0.0, longitude=0.0),
            DestinationInput(city="B", country="X", latitude=1.0, longitude=1.0),
        ]
        assert build_route_legs(dests)[0].mode == TransportMode.NONE

    def test_fewer_than_two_destinations(self):
        assert build_route_legs([]) == []
        single = DestinationInput(city="A", country="X", latitude=0.0, longitude=0.0)
        assert build_route_legs([single]) == []
