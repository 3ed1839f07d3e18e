"""
Tests for the viewport state machine.

Covers zoom clamping, panning, zoom-to-cursor anchoring, bounds fitting and
single-entity focus.
"""

import pytest
from pydantic import ValidationError

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from constants import POLE_LAT_LIMIT
from projection import GeoPoint, PixelPoint, project, unproject
from viewport import (
    GeoBounds,
    Viewport,
    ViewportConfig,
    ViewportState,
    bounds_footprint,
    fit_view,
    footprint_fits,
)


# =============================================================================
# Config
# =============================================================================

class TestViewportConfig:
    """Tests for ViewportConfig validation."""

    def test_defaults(self):
        config = ViewportConfig()
        assert config.zoom_min == 3
        assert config.zoom_max == 12
        assert config.default_zoom == 5
        assert config.drag_threshold_px == 3.0

    def test_inverted_zoom_range_rejected(self):
        with pytest.raises(ValidationError):
            ViewportConfig(zoom_min=10, zoom_max=4, default_zoom=5)

    def test_default_zoom_outside_range_rejected(self):
        with pytest.raises(ValidationError):
            ViewportConfig(default_zoom=15)

    def test_padding_must_leave_room(self):
        with pytest.raises(ValidationError):
            ViewportConfig(padding_fraction=0.5)

    def test_clamp_zoom(self):
        config = ViewportConfig()
        assert config.clamp_zoom(-4) == 3
        assert config.clamp_zoom(40) == 12
        assert config.clamp_zoom(7) == 7

    def test_clamp_zoom_rounds(self):
        config = ViewportConfig()
        assert config.clamp_zoom(6.6) == 7
        assert config.clamp_zoom(6.4) == 6
        assert config.clamp_zoom(2.6) == 3


# =============================================================================
# Basic state
# =============================================================================

class TestViewportState:
    """Tests for initial state and coordinate conversion."""

    def test_starts_at_default_view(self, viewport):
        assert viewport.center == GeoPoint(45.0, 10.0)
        assert viewport.zoom == 5

    def test_container_center_is_view_center(self, viewport):
        p = viewport.screen_to_geo(600, 400)
        assert p.latitude == pytest.approx(45.0)
        assert p.longitude == pytest.approx(10.0)

        s = viewport.geo_to_screen(viewport.center)
        assert s.x == pytest.approx(600)
        assert s.y == pytest.approx(400)

    def test_screen_geo_inverse(self, viewport):
        geo = viewport.screen_to_geo(123.0, 456.0)
        back = viewport.geo_to_screen(geo)
        assert back.x == pytest.approx(123.0)
        assert back.y == pytest.approx(456.0)

    def test_set_state_clamps(self, viewport):
        state = viewport.set_state(ViewportState(GeoPoint(90.0, 10.0), 20))
        assert state.zoom == 12
        assert state.center.latitude == POLE_LAT_LIMIT

    def test_center_off_world_kept(self, viewport):
        """Only the poles are guarded; centers past the map edge are stored as is."""
        state = viewport.set_state(ViewportState(GeoPoint(88.0, 200.0), 4))
        assert state.center == GeoPoint(88.0, 200.0)

    def test_initial_state(self):
        vp = Viewport(initial=ViewportState(GeoPoint(10.0, 20.0), 8))
        assert vp.zoom == 8
        assert vp.reset() == ViewportState(GeoPoint(10.0, 20.0), 8)

    def test_states_are_replaced_not_mutated(self, viewport):
        before = viewport.state
        viewport.pan_by(10, 10)
        assert viewport.state is not before
        assert before == ViewportState(GeoPoint(45.0, 10.0), 5)


# =============================================================================
# Zoom
# =============================================================================

class TestZoom:
    """Tests for zoom operations."""

    @pytest.mark.parametrize("delta", [1, -1, 3, -7, 100, -100, 2.6])
    def test_zoom_by_stays_in_range(self, viewport, delta):
        for _ in range(20):
            viewport.zoom_by(delta)
            assert 3 <= viewport.zoom <= 12
            assert isinstance(viewport.zoom, int)

    def test_zoom_in_out(self, viewport):
        assert viewport.zoom_in().zoom == 6
        assert viewport.zoom_out().zoom == 5
        assert viewport.center == GeoPoint(45.0, 10.0)

    def test_fractional_zoom_symmetric(self, viewport):
        assert viewport.zoom_by(0.4).zoom == 5
        assert viewport.zoom_by(-0.4).zoom == 5
        assert viewport.zoom_by(0.6).zoom == 6
        assert viewport.zoom_by(-0.6).zoom == 5

    def test_zoom_in_at_max_is_noop(self, viewport):
        viewport.zoom_to(12)
        before = viewport.state
        assert viewport.zoom_in() == before

    @pytest.mark.parametrize("start_zoom,delta,anchor", [
        (5, 1, (900, 200)),
        (5, 3, (100, 700)),
        (8, -2, (1000, 650)),
        (10, 2, (0, 0)),
        (6, 1, (600, 400)),
        (3, 1, (1199, 400)),
    ])
    def test_zoom_keeps_anchor_fixed(self, viewport, start_zoom, delta, anchor):
        """The point under the cursor stays under the cursor."""
        viewport.zoom_to(start_zoom)
        geo = viewport.screen_to_geo(*anchor)

        viewport.zoom_by(delta, anchor=anchor)
        screen = viewport.geo_to_screen(geo)

        assert viewport.zoom == start_zoom + delta
        assert abs(screen.x - anchor[0]) <= 1.0
        assert abs(screen.y - anchor[1]) <= 1.0

    def test_zoom_at_right_edge_keeps_anchor(self, viewport):
        """Zooming at a cursor beyond the antimeridian keeps it fixed."""
        viewport.set_state(ViewportState(GeoPoint(70.0, 170.0), 3))
        anchor = (1199, 400)
        geo = viewport.screen_to_geo(*anchor)
        assert geo.longitude > 180.0

        viewport.zoom_by(1, anchor=anchor)
        screen = viewport.geo_to_screen(geo)

        assert viewport.zoom == 4
        assert abs(screen.x - anchor[0]) <= 1.0
        assert abs(screen.y - anchor[1]) <= 1.0

    def test_zoom_from_base_state(self, viewport):
        base = viewport.state
        viewport.pan_by(200, 0)
        state = viewport.zoom_to(6, anchor=(600, 400), base=base)
        assert state.center.latitude == pytest.approx(base.center.latitude)
        assert state.center.longitude == pytest.approx(base.center.longitude)


# =============================================================================
# Pan
# =============================================================================

class TestPan:
    """Tests for panning."""

    @pytest.mark.parametrize("dx,dy", [(37, -12), (-250, 180), (0.5, 0.25)])
    def test_pan_then_reverse_restores_center(self, viewport, dx, dy):
        start = viewport.center
        viewport.pan_by(dx, dy)
        viewport.pan_by(-dx, -dy)
        assert viewport.center.latitude == pytest.approx(start.latitude, abs=1e-9)
        assert viewport.center.longitude == pytest.approx(start.longitude, abs=1e-9)

    @pytest.mark.parametrize("start,dx,dy", [
        (GeoPoint(84.0, 179.0), -300, 300),
        (GeoPoint(-80.0, -178.0), 400, -350),
        (GeoPoint(10.0, 179.5), -900, 0),
    ])
    def test_pan_near_world_edge_is_reversible(self, viewport, start, dx, dy):
        viewport.set_state(ViewportState(start, 3))
        viewport.pan_by(dx, dy)
        viewport.pan_by(-dx, -dy)
        assert viewport.center.latitude == pytest.approx(start.latitude, abs=1e-7)
        assert viewport.center.longitude == pytest.approx(start.longitude, abs=1e-7)

    def test_pan_past_antimeridian(self, viewport):
        viewport.set_state(ViewportState(GeoPoint(0.0, 179.0), 3))
        viewport.pan_by(-300, 0)
        assert viewport.center.longitude > 180.0

    def test_pan_moves_content_with_pointer(self, viewport):
        """Dragging right reveals what was to the west."""
        start = viewport.center
        world = project(start, 5)
        viewport.pan_by(15, 0)
        expected = unproject(PixelPoint(world.x - 15, world.y), 5)
        assert viewport.center.longitude == pytest.approx(expected.longitude)
        assert viewport.center.longitude < start.longitude
        assert viewport.zoom == 5


# =============================================================================
# Fit to bounds
# =============================================================================

class TestFitToBounds:
    """Tests for bounds fitting."""

    POINTS = [GeoPoint(40.0, 0.0), GeoPoint(50.0, 20.0)]

    def test_fit_is_contained_and_tight(self):
        config = ViewportConfig()
        state = fit_view(self.POINTS, 1200, 800, config)
        bounds = GeoBounds.from_points(self.POINTS)

        width, height = bounds_footprint(bounds, state.zoom)
        assert width * 1.5 <= 1200
        assert height * 1.5 <= 800

        assert state.zoom < config.zoom_max
        assert not footprint_fits(bounds, state.zoom + 1, 1200, 800, 0.25)

    def test_fit_zoom_and_center(self):
        state = fit_view(self.POINTS, 1200, 800)
        assert state.zoom == 5
        assert state.center == GeoPoint(45.0, 10.0)

    def test_smaller_container_zooms_out(self):
        big = fit_view(self.POINTS, 1200, 800)
        small = fit_view(self.POINTS, 300, 200)
        assert small.zoom < big.zoom

    def test_huge_span_falls_back_to_min_zoom(self):
        state = fit_view([GeoPoint(-60.0, -170.0), GeoPoint(70.0, 170.0)], 400, 300)
        assert state.zoom == 3

    def test_single_point_goes_to_max_zoom(self):
        state = fit_view([GeoPoint(45.4642, 9.19)], 1200, 800)
        assert state.zoom == 12
        assert state.center == GeoPoint(45.4642, 9.19)

    def test_empty_points_gives_default(self):
        assert fit_view([], 1200, 800) == ViewportState(GeoPoint(45.0, 10.0), 5)

    def test_fit_sets_reset_target(self, viewport):
        fitted = viewport.fit_to_bounds(self.POINTS)
        viewport.pan_by(300, 300)
        viewport.zoom_in()
        assert viewport.reset() == fitted

    def test_fit_with_container_size(self, viewport):
        viewport.fit_to_bounds(self.POINTS, 300, 200)
        assert viewport.container_width == 300
        assert viewport.container_height == 200

    def test_padding_override(self):
        tight = fit_view(self.POINTS, 1200, 800, padding_fraction=0.0)
        padded = fit_view(self.POINTS, 1200, 800, padding_fraction=0.45)
        assert tight.zoom >= padded.zoom


class TestFocusOnEntity:
    """Tests for single-entity focus."""

    def test_coincident_points_capped(self, viewport):
        points = [GeoPoint(48.8566, 2.3522), GeoPoint(48.8566, 2.3522)]
        state = viewport.focus_on_entity(points)
        assert state.zoom == 6
        assert viewport.reset().zoom == 6

    def test_explicit_cap(self, viewport):
        state = viewport.focus_on_entity([GeoPoint(48.8566, 2.3522)], single_point_zoom=9)
        assert state.zoom == 9

    def test_cap_disabled(self):
        vp = Viewport(ViewportConfig(single_point_zoom=None))
        assert vp.focus_on_entity([GeoPoint(48.8566, 2.3522)]).zoom == 12

    def test_spread_points_not_capped(self, viewport):
        points = [GeoPoint(45.4642, 9.19), GeoPoint(45.0703, 7.6869)]
        assert viewport.focus_on_entity(points).zoom > 6

    def test_empty_entity_uses_default(self, viewport):
        viewport.pan_by(100, 100)
        assert viewport.focus_on_entity([]) == ViewportState(GeoPoint(45.0, 10.0), 5)
