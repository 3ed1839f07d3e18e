"""
Interactive trip map engine.

One engine serves both map views:
- Overview: many trips at once, click a marker to select (and focus) a trip
- Detail: a single trip's route, fitted to its destinations

The engine owns a Viewport and a GestureController, takes the selected trip
as explicit input, and produces a MapFrame (tiles, route segments, markers in
screen coordinates) for each render pass.
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple

from constants import (
    COLORS,
    DETAIL_HEIGHT,
    DETAIL_WIDTH,
    MARKER_HIT_RADIUS,
    MARKER_OPACITY_DEFAULT,
    MARKER_OPACITY_FADED,
    MARKER_OPACITY_SELECTED,
    MARKER_RADIUS,
    MARKER_RADIUS_DETAIL,
    MARKER_RADIUS_HOME,
    MARKER_RADIUS_SELECTED,
    OVERVIEW_HEIGHT,
    OVERVIEW_WIDTH,
    PRIMARY_BUTTON,
    ROUTE_OPACITY_DEFAULT,
    ROUTE_OPACITY_FADED,
    ROUTE_OPACITY_SELECTED,
    ROUTE_WIDTH,
    ROUTE_WIDTH_DETAIL,
    ROUTE_WIDTH_SELECTED,
    TRANSPORT_COLORS,
)
from gestures import GestureCallbacks, GestureController, GestureOutcome, Point
from projection import GeoPoint, PixelPoint
from route_geometry import RoutePath, TransportMode, build_route_legs, leg_path
from tiles import TileDescriptor, visible_tiles
from trip_log.data_models import Destination, Trip
from viewport import Viewport, ViewportConfig, ViewportState

logger = logging.getLogger(__name__)

Color = Tuple[int, int, int]


class MapMode(Enum):
    OVERVIEW = "overview"
    DETAIL = "detail"


@dataclass(frozen=True)
class RouteSegment:
    """A styled leg ready to draw."""
    trip_id: str
    path: RoutePath
    color: Color
    width: int
    opacity: float

    @property
    def dashed(self) -> bool:
        return self.path.dashed


@dataclass(frozen=True)
class Marker:
    """A destination marker in screen coordinates."""
    trip_id: str
    destination: Destination
    index: int
    point: PixelPoint
    color: Color
    radius: int
    opacity: float
    selected: bool = False


@dataclass
class MapFrame:
    """Everything a renderer needs for one pass."""
    state: ViewportState
    width: float
    height: float
    tiles: List[TileDescriptor] = field(default_factory=list)
    routes: List[RouteSegment] = field(default_factory=list)
    markers: List[Marker] = field(default_factory=list)


def mode_color(mode) -> Color:
    mode = TransportMode.parse(mode)
    return TRANSPORT_COLORS.get(mode.value, COLORS.DEFAULT)


class MapEngine:
    """Viewport, gestures and trip styling for one mounted map.

    Args:
        trips: Trips to show (a detail map shows exactly one)
        mode: OVERVIEW or DETAIL
        config: Viewport and gesture configuration
        container_width: Map width in pixels
        container_height: Map height in pixels
        on_select: Called with the new selected trip id (or None) after a
            marker click changes the selection
    """

    def __init__(self, trips: Sequence[Trip], mode: MapMode = MapMode.OVERVIEW,
                 config: Optional[ViewportConfig] = None,
                 container_width: Optional[float] = None,
                 container_height: Optional[float] = None,
                 on_select: Optional[Callable[[Optional[str]], None]] = None):
        if container_width is None:
            container_width = DETAIL_WIDTH if mode == MapMode.DETAIL else OVERVIEW_WIDTH
        if container_height is None:
            container_height = DETAIL_HEIGHT if mode == MapMode.DETAIL else OVERVIEW_HEIGHT

        self.mode = mode
        self.trips: List[Trip] = list(trips)
        self.selected_trip_id: Optional[str] = None
        self.on_select = on_select
        self.viewport = Viewport(config, container_width, container_height)
        self.gestures = GestureController(self.viewport, GestureCallbacks())
        self._pressed_marker: Optional[Marker] = None

        if self.mode == MapMode.DETAIL:
            self.viewport.focus_on_entity(self._all_points())

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def state(self) -> ViewportState:
        return self.viewport.state

    @property
    def selected_trip(self) -> Optional[Trip]:
        return self._find_trip(self.selected_trip_id)

    def _find_trip(self, trip_id: Optional[str]) -> Optional[Trip]:
        if trip_id is None:
            return None
        for trip in self.trips:
            if trip.id == trip_id:
                return trip
        return None

    def _all_points(self) -> List[GeoPoint]:
        return [p for trip in self.trips for p in trip.points]

    def set_trips(self, trips: Sequence[Trip]) -> None:
        """Replace the displayed trips (e.g. after filtering).

        A selection that is no longer among them is cleared.
        """
        self.trips = list(trips)
        if self.selected_trip_id and self.selected_trip is None:
            self.selected_trip_id = None

    def select_trip(self, trip_id: Optional[str]) -> Optional[Trip]:
        """Select a trip and focus the view on it; None clears the selection."""
        if trip_id is None:
            self.selected_trip_id = None
            return None
        trip = self._find_trip(trip_id)
        if trip is None:
            logger.warning(f"Ignoring selection of unknown trip {trip_id}")
            return None
        self.selected_trip_id = trip_id
        if trip.destinations:
            self.viewport.focus_on_entity(trip.points)
        return trip

    def resize(self, width: float, height: float) -> None:
        self.viewport.resize(width, height)

    # -------------------------------------------------------------------------
    # View controls
    # -------------------------------------------------------------------------

    def zoom_in(self) -> ViewportState:
        return self.viewport.zoom_in()

    def zoom_out(self) -> ViewportState:
        return self.viewport.zoom_out()

    def reset(self) -> ViewportState:
        """Overview: fit every trip. Detail: back to the fitted route."""
        if self.mode == MapMode.OVERVIEW:
            points = self._all_points()
            if points:
                return self.viewport.fit_to_bounds(points)
            self.viewport.set_home(self.viewport.config.default_state())
        return self.viewport.reset()

    # -------------------------------------------------------------------------
    # Frame
    # -------------------------------------------------------------------------

    def _route_style(self, trip: Trip) -> Tuple[int, float]:
        if self.mode == MapMode.DETAIL:
            return ROUTE_WIDTH_DETAIL, ROUTE_OPACITY_SELECTED
        if self.selected_trip_id is None:
            return ROUTE_WIDTH, ROUTE_OPACITY_DEFAULT
        if trip.id == self.selected_trip_id:
            return ROUTE_WIDTH_SELECTED, ROUTE_OPACITY_SELECTED
        return ROUTE_WIDTH, ROUTE_OPACITY_FADED

    def _marker_style(self, trip: Trip, index: int, dest: Destination) -> Tuple[Color, int, float]:
        color = mode_color(dest.transportation_type)
        if self.mode == MapMode.DETAIL:
            if index == 0 or index == len(trip.destinations) - 1:
                return COLORS.HOME, MARKER_RADIUS_HOME, MARKER_OPACITY_SELECTED
            return color, MARKER_RADIUS_DETAIL, MARKER_OPACITY_SELECTED
        if self.selected_trip_id is None:
            return color, MARKER_RADIUS, MARKER_OPACITY_DEFAULT
        if trip.id == self.selected_trip_id:
            return color, MARKER_RADIUS_SELECTED, MARKER_OPACITY_SELECTED
        return color, MARKER_RADIUS, MARKER_OPACITY_FADED

    def routes(self) -> List[RouteSegment]:
        segments = []
        for trip in self.trips:
            width, opacity = self._route_style(trip)
            for leg in build_route_legs(trip.destinations):
                path = leg_path(leg, self.viewport.geo_to_screen)
                segments.append(RouteSegment(trip.id, path, mode_color(leg.mode), width, opacity))
        return segments

    def markers(self) -> List[Marker]:
        markers = []
        for trip in self.trips:
            selected = trip.id == self.selected_trip_id
            for index, dest in enumerate(trip.destinations):
                color, radius, opacity = self._marker_style(trip, index, dest)
                markers.append(Marker(
                    trip_id=trip.id,
                    destination=dest,
                    index=index,
                    point=self.viewport.geo_to_screen(dest.point),
                    color=color,
                    radius=radius,
                    opacity=opacity,
                    selected=selected,
                ))
        return markers

    def frame(self) -> MapFrame:
        """Recompute tiles, routes and markers for the current view."""
        width = self.viewport.container_width
        height = self.viewport.container_height
        return MapFrame(
            state=self.state,
            width=width,
            height=height,
            tiles=visible_tiles(self.state, width, height, self.viewport.config.tile_size),
            routes=self.routes(),
            markers=self.markers(),
        )

    def marker_at(self, x: float, y: float) -> Optional[Marker]:
        """Topmost marker under a screen position."""
        for marker in reversed(self.markers()):
            reach = max(marker.radius, MARKER_HIT_RADIUS)
            if math.hypot(marker.point.x - x, marker.point.y - y) <= reach:
                return marker
        return None

    # -------------------------------------------------------------------------
    # Input
    # -------------------------------------------------------------------------

    def pointer_down(self, x: float, y: float, button: int = PRIMARY_BUTTON) -> bool:
        self._pressed_marker = self.marker_at(x, y) if button == PRIMARY_BUTTON else None
        return self.gestures.pointer_down(x, y, button, on_control=self._pressed_marker is not None)

    def pointer_move(self, x: float, y: float) -> Optional[ViewportState]:
        return self.gestures.pointer_move(x, y)

    def pointer_up(self, x: float, y: float) -> GestureOutcome:
        """Finish a press; a click on a marker toggles its trip's selection."""
        pressed, self._pressed_marker = self._pressed_marker, None
        if pressed is None:
            return self.gestures.pointer_up(x, y)

        released = self.marker_at(x, y)
        if released is None or released.trip_id != pressed.trip_id:
            return GestureOutcome.NONE
        self._toggle_selection(pressed.trip_id)
        return GestureOutcome.CLICK

    def pointer_leave(self) -> GestureOutcome:
        self._pressed_marker = None
        return self.gestures.pointer_leave()

    def wheel(self, x: float, y: float, delta_y: float) -> Optional[ViewportState]:
        return self.gestures.wheel(x, y, delta_y)

    def context_menu(self) -> bool:
        return self.gestures.context_menu()

    def touch_start(self, contacts: Sequence[Point]) -> None:
        on_control = False
        if len(contacts) == 1:
            self._pressed_marker = self.marker_at(*contacts[0])
            on_control = self._pressed_marker is not None
        else:
            self._pressed_marker = None
        self.gestures.touch_start(contacts, on_control=on_control)

    def touch_move(self, contacts: Sequence[Point]) -> Optional[ViewportState]:
        return self.gestures.touch_move(contacts)

    def touch_end(self, contacts: Sequence[Point], last: Optional[Point] = None) -> GestureOutcome:
        """A contact lifted; ``last`` is where the lifted finger left the screen."""
        if not contacts and self._pressed_marker is not None:
            if last is not None:
                return self.pointer_up(*last)
            self._pressed_marker = None
        return self.gestures.touch_end(contacts)

    def _toggle_selection(self, trip_id: str) -> None:
        if self.mode == MapMode.DETAIL:
            return
        new_id = None if trip_id == self.selected_trip_id else trip_id
        self.select_trip(new_id)
        if self.on_select:
            self.on_select(new_id)


def overview_map(trips: Sequence[Trip], selected_trip_id: Optional[str] = None,
                 config: Optional[ViewportConfig] = None,
                 width: float = OVERVIEW_WIDTH, height: float = OVERVIEW_HEIGHT,
                 on_select: Optional[Callable[[Optional[str]], None]] = None) -> MapEngine:
    """Map of many trips, optionally focused on a selected one."""
    engine = MapEngine(trips, MapMode.OVERVIEW, config, width, height, on_select)
    if selected_trip_id is not None:
        engine.select_trip(selected_trip_id)
    return engine


def detail_map(trip: Trip, config: Optional[ViewportConfig] = None,
               width: float = DETAIL_WIDTH, height: float = DETAIL_HEIGHT) -> MapEngine:
    """Map of a single trip's route."""
    return MapEngine([trip], MapMode.DETAIL, config, width, height)
