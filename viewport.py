"""
Viewport state for the travel map.

The Viewport owns the current center and zoom. Every operation builds a new
immutable ViewportState and swaps it in, so a render pass never observes a
half-applied change.

Screen coordinates are relative to the map container's top-left corner:
    screen = world - center_world + container / 2
"""

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple

from pydantic import BaseModel, Field, model_validator

from constants import (
    DEFAULT_CENTER,
    DEFAULT_ZOOM,
    DRAG_THRESHOLD_PX,
    FIT_PADDING_FRACTION,
    OVERVIEW_HEIGHT,
    OVERVIEW_WIDTH,
    SINGLE_POINT_ZOOM,
    TILE_SIZE,
    WHEEL_ZOOM_STEP,
    ZOOM_MAX,
    ZOOM_MIN,
)
from projection import GeoPoint, PixelPoint, guard_pole, project, unproject

logger = logging.getLogger(__name__)


class ViewportConfig(BaseModel):
    """Tunable parameters shared by the viewport and gesture controller."""
    default_center: Tuple[float, float] = Field(default=DEFAULT_CENTER)
    default_zoom: int = Field(default=DEFAULT_ZOOM)
    zoom_min: int = Field(default=ZOOM_MIN, ge=0, le=22)
    zoom_max: int = Field(default=ZOOM_MAX, ge=0, le=22)
    tile_size: int = Field(default=TILE_SIZE, gt=0)
    padding_fraction: float = Field(default=FIT_PADDING_FRACTION, ge=0.0, lt=0.5)
    single_point_zoom: Optional[int] = Field(default=SINGLE_POINT_ZOOM)
    drag_threshold_px: float = Field(default=DRAG_THRESHOLD_PX, ge=0.0)
    wheel_zoom_step: int = Field(default=WHEEL_ZOOM_STEP, ge=1)
    invert_wheel: bool = False
    suppress_context_menu: bool = True

    @model_validator(mode="after")
    def _check_zoom_range(self) -> "ViewportConfig":
        if self.zoom_min > self.zoom_max:
            raise ValueError(f"zoom_min ({self.zoom_min}) must not exceed zoom_max ({self.zoom_max})")
        if not self.zoom_min <= self.default_zoom <= self.zoom_max:
            raise ValueError(
                f"default_zoom {self.default_zoom} outside [{self.zoom_min}, {self.zoom_max}]"
            )
        return self

    def clamp_zoom(self, zoom: float) -> int:
        return int(round(max(self.zoom_min, min(self.zoom_max, zoom))))

    def default_state(self) -> "ViewportState":
        lat, lng = self.default_center
        return ViewportState(guard_pole(GeoPoint(lat, lng)), self.default_zoom)


@dataclass(frozen=True)
class ViewportState:
    """Snapshot of the visible region."""
    center: GeoPoint
    zoom: int


@dataclass(frozen=True)
class GeoBounds:
    """Axis-aligned geographic bounding box."""
    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float

    @classmethod
    def from_points(cls, points: Iterable[GeoPoint]) -> Optional["GeoBounds"]:
        """Smallest box around ``points``, or None if there are none."""
        points = list(points)
        if not points:
            return None
        lats = [p.latitude for p in points]
        lngs = [p.longitude for p in points]
        return cls(min(lats), max(lats), min(lngs), max(lngs))

    @property
    def center(self) -> GeoPoint:
        return GeoPoint((self.min_lat + self.max_lat) / 2, (self.min_lng + self.max_lng) / 2)

    @property
    def is_degenerate(self) -> bool:
        return self.min_lat == self.max_lat and self.min_lng == self.max_lng


def bounds_footprint(bounds: GeoBounds, zoom: int, tile_size: int = TILE_SIZE) -> Tuple[float, float]:
    """Pixel size of a bounding box at ``zoom``.

    The latitude span is measured in projected y. The longitude span is scaled
    by cos(center latitude) to compensate for Mercator stretching away from
    the equator.

    Returns:
        (width_px, height_px)
    """
    center_lat = math.radians(bounds.center.latitude)
    scale = (2 ** zoom) * tile_size
    width = (bounds.max_lng - bounds.min_lng) / 360.0 * scale * math.cos(center_lat)
    top = project(GeoPoint(bounds.max_lat, bounds.min_lng), zoom, tile_size)
    bottom = project(GeoPoint(bounds.min_lat, bounds.min_lng), zoom, tile_size)
    return abs(width), abs(bottom.y - top.y)


def footprint_fits(
    bounds: GeoBounds,
    zoom: int,
    container_width: float,
    container_height: float,
    padding_fraction: float = FIT_PADDING_FRACTION,
    tile_size: int = TILE_SIZE,
) -> bool:
    """Whether ``bounds`` plus padding on each side fits the container at ``zoom``."""
    if bounds.is_degenerate:
        return True
    width, height = bounds_footprint(bounds, zoom, tile_size)
    inflate = 1.0 + 2.0 * padding_fraction
    return width * inflate <= container_width and height * inflate <= container_height


def fit_view(
    points: Sequence[GeoPoint],
    container_width: float,
    container_height: float,
    config: Optional[ViewportConfig] = None,
    padding_fraction: Optional[float] = None,
) -> ViewportState:
    """Compute the tightest view that shows every point.

    Walks zoom levels from ``zoom_min`` upward and keeps the last one whose
    padded footprint still fits. A single distinct point fits at every level,
    so the walk ends at ``zoom_max``. No points gives the configured default.

    Args:
        points: Geographic points to show
        container_width: Container width in pixels
        container_height: Container height in pixels
        config: Zoom limits and defaults
        padding_fraction: Margin on each side as a fraction of the footprint

    Returns:
        ViewportState centered on the bounding box
    """
    config = config or ViewportConfig()
    if padding_fraction is None:
        padding_fraction = config.padding_fraction

    bounds = GeoBounds.from_points(points)
    if bounds is None:
        return config.default_state()

    best = config.zoom_min
    for zoom in range(config.zoom_min, config.zoom_max + 1):
        if footprint_fits(bounds, zoom, container_width, container_height,
                          padding_fraction, config.tile_size):
            best = zoom
        else:
            break

    return ViewportState(guard_pole(bounds.center), best)


class Viewport:
    """Current map view plus the operations that change it.

    Args:
        config: Zoom range, default view and fitting options
        container_width: Map container width in pixels
        container_height: Map container height in pixels
        initial: Starting state (defaults to the configured default view)
    """

    def __init__(self, config: Optional[ViewportConfig] = None,
                 container_width: float = OVERVIEW_WIDTH,
                 container_height: float = OVERVIEW_HEIGHT,
                 initial: Optional[ViewportState] = None):
        self.config = config or ViewportConfig()
        self.container_width = float(container_width)
        self.container_height = float(container_height)
        self._home = self._sanitize(initial) if initial else self.config.default_state()
        self._state = self._home

    @property
    def state(self) -> ViewportState:
        return self._state

    @property
    def center(self) -> GeoPoint:
        return self._state.center

    @property
    def zoom(self) -> int:
        return self._state.zoom

    @property
    def home(self) -> ViewportState:
        """State restored by ``reset``."""
        return self._home

    def set_home(self, state: ViewportState) -> None:
        self._home = self._sanitize(state)

    def set_state(self, state: ViewportState) -> ViewportState:
        self._state = self._sanitize(state)
        return self._state

    def _sanitize(self, state: ViewportState) -> ViewportState:
        zoom = self.config.clamp_zoom(state.zoom)
        center = guard_pole(state.center)
        if zoom == state.zoom and center is state.center:
            return state
        return ViewportState(center, zoom)

    def resize(self, width: float, height: float) -> None:
        self.container_width = float(width)
        self.container_height = float(height)

    # -------------------------------------------------------------------------
    # Coordinate conversion
    # -------------------------------------------------------------------------

    def center_world(self, state: Optional[ViewportState] = None) -> PixelPoint:
        state = state or self._state
        return project(state.center, state.zoom, self.config.tile_size)

    def geo_to_screen(self, point: GeoPoint, state: Optional[ViewportState] = None) -> PixelPoint:
        """Screen position of a geographic point."""
        state = state or self._state
        world = project(point, state.zoom, self.config.tile_size)
        center = self.center_world(state)
        return PixelPoint(world.x - center.x + self.container_width / 2,
                          world.y - center.y + self.container_height / 2)

    def screen_to_geo(self, x: float, y: float, state: Optional[ViewportState] = None) -> GeoPoint:
        """Geographic point under a screen position."""
        state = state or self._state
        center = self.center_world(state)
        world = PixelPoint(center.x + x - self.container_width / 2,
                           center.y + y - self.container_height / 2)
        return unproject(world, state.zoom, self.config.tile_size)

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def pan_by(self, dx: float, dy: float) -> ViewportState:
        """Move the map by a screen-pixel delta (content follows the pointer)."""
        center = self.center_world()
        new_center = unproject(PixelPoint(center.x - dx, center.y - dy),
                               self._state.zoom, self.config.tile_size)
        return self.set_state(ViewportState(new_center, self._state.zoom))

    def zoom_to(self, zoom: float, anchor: Optional[Tuple[float, float]] = None,
                base: Optional[ViewportState] = None) -> ViewportState:
        """Set the zoom level, optionally keeping an anchor point fixed on screen.

        Args:
            zoom: Target zoom (clamped to the configured range)
            anchor: Screen point whose geographic location must stay put
            base: State to zoom from (defaults to the current state)

        Returns:
            The new ViewportState
        """
        base = base or self._state
        new_zoom = self.config.clamp_zoom(zoom)

        if anchor is None or new_zoom == base.zoom:
            return self.set_state(ViewportState(base.center, new_zoom))

        ax, ay = anchor
        offset_x = ax - self.container_width / 2
        offset_y = ay - self.container_height / 2

        anchor_geo = self.screen_to_geo(ax, ay, base)
        anchor_world = project(anchor_geo, new_zoom, self.config.tile_size)
        new_center = unproject(PixelPoint(anchor_world.x - offset_x, anchor_world.y - offset_y),
                               new_zoom, self.config.tile_size)
        return self.set_state(ViewportState(new_center, new_zoom))

    def zoom_by(self, delta: float, anchor: Optional[Tuple[float, float]] = None) -> ViewportState:
        """Change zoom by ``delta`` levels; see ``zoom_to`` for anchoring."""
        return self.zoom_to(self._state.zoom + delta, anchor)

    def zoom_in(self) -> ViewportState:
        return self.zoom_by(1)

    def zoom_out(self) -> ViewportState:
        return self.zoom_by(-1)

    def reset(self) -> ViewportState:
        """Return to the default view or the last fitted view."""
        self._state = self._home
        return self._state

    def fit_to_bounds(self, points: Sequence[GeoPoint],
                      container_width: Optional[float] = None,
                      container_height: Optional[float] = None,
                      padding_fraction: Optional[float] = None) -> ViewportState:
        """Show every point, and remember the result as the reset target."""
        if container_width is not None and container_height is not None:
            self.resize(container_width, container_height)
        state = fit_view(points, self.container_width, self.container_height,
                         self.config, padding_fraction)
        logger.debug(f"Fitted {len(points)} points to zoom {state.zoom} at "
                     f"({state.center.latitude:.4f}, {state.center.longitude:.4f})")
        self.set_home(state)
        return self.set_state(state)

    def focus_on_entity(self, points: Sequence[GeoPoint],
                        single_point_zoom: Optional[int] = None) -> ViewportState:
        """Fit the view to one entity's points.

        When every point coincides the fitted zoom would be ``zoom_max``; it is
        capped at ``single_point_zoom`` (or the configured cap) instead. A config
        with ``single_point_zoom=None`` keeps the full zoom.
        """
        if single_point_zoom is None:
            single_point_zoom = self.config.single_point_zoom
        state = self.fit_to_bounds(points)
        bounds = GeoBounds.from_points(points)
        if bounds is not None and bounds.is_degenerate and single_point_zoom is not None:
            state = self.set_state(ViewportState(state.center, min(state.zoom, single_point_zoom)))
            self.set_home(state)
        return state

