"""
Route curves between consecutive trip destinations.

Each leg is drawn as a gentle curve rather than a straight chord so that
overlapping routes stay readable:
- car/train/bus/none: quadratic bezier bent by 12% of the chord length
- plane: quadratic bezier bent by 15%, drawn dashed
- boat: cubic bezier bent by 25%, bent toward the equator for east-west legs
  and toward the east for north-south legs

The boat rule is a visual heuristic that suggests sailing around land. It is
not marine routing and makes no claim of geographic accuracy.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, List, Optional, Tuple

import numpy as np

from constants import (
    CURVATURE_BOAT,
    CURVATURE_DEFAULT,
    CURVATURE_PLANE,
    CURVE_SAMPLES,
    DEGENERATE_SEGMENT_PX,
)
from projection import GeoPoint, PixelPoint


class TransportMode(str, Enum):
    """How a leg was travelled."""
    PLANE = "plane"
    TRAIN = "train"
    CAR = "car"
    BUS = "bus"
    BOAT = "boat"
    NONE = "none"

    @classmethod
    def parse(cls, value) -> "TransportMode":
        """Coerce None, strings and enum members into a mode (unknown -> NONE)."""
        if isinstance(value, cls):
            return value
        if value is None:
            return cls.NONE
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.NONE


CURVATURE = {
    TransportMode.PLANE: CURVATURE_PLANE,
    TransportMode.BOAT: CURVATURE_BOAT,
}


@dataclass(frozen=True)
class RouteLeg:
    """One segment of a trip between two consecutive destinations."""
    start: GeoPoint
    end: GeoPoint
    mode: TransportMode = TransportMode.NONE


@dataclass(frozen=True)
class RoutePath:
    """Drawable path for a leg.

    Attributes:
        start: Start point in screen pixels
        end: End point in screen pixels
        controls: Zero (straight), one (quadratic) or two (cubic) control points
        mode: Transport mode, so callers can style by mode
    """
    start: PixelPoint
    end: PixelPoint
    controls: Tuple[PixelPoint, ...] = ()
    mode: TransportMode = TransportMode.NONE

    @property
    def dashed(self) -> bool:
        return self.mode == TransportMode.PLANE

    @property
    def is_straight(self) -> bool:
        return not self.controls

    def to_svg(self) -> str:
        """SVG path data (``M``/``Q``/``C`` commands)."""
        parts = [f"M {self.start.x:.2f} {self.start.y:.2f}"]
        if len(self.controls) == 1:
            c = self.controls[0]
            parts.append(f"Q {c.x:.2f} {c.y:.2f} {self.end.x:.2f} {self.end.y:.2f}")
        elif len(self.controls) == 2:
            c1, c2 = self.controls
            parts.append(f"C {c1.x:.2f} {c1.y:.2f} {c2.x:.2f} {c2.y:.2f} "
                         f"{self.end.x:.2f} {self.end.y:.2f}")
        else:
            parts.append(f"L {self.end.x:.2f} {self.end.y:.2f}")
        return " ".join(parts)

    def sample(self, count: int = CURVE_SAMPLES) -> np.ndarray:
        """Evaluate the curve at ``count`` evenly spaced parameter values.

        Returns:
            (count, 2) float array of x, y points including both endpoints
        """
        count = max(2, count)
        if self.is_straight:
            count = 2
        t = np.linspace(0.0, 1.0, count)[:, None]
        nodes = [self.start, *self.controls, self.end]
        pts = np.array([[p.x, p.y] for p in nodes], dtype=float)

        if len(nodes) == 2:
            return (1 - t) * pts[0] + t * pts[1]
        if len(nodes) == 3:
            return (1 - t) ** 2 * pts[0] + 2 * (1 - t) * t * pts[1] + t ** 2 * pts[2]
        return ((1 - t) ** 3 * pts[0] + 3 * (1 - t) ** 2 * t * pts[1]
                + 3 * (1 - t) * t ** 2 * pts[2] + t ** 3 * pts[3])


def _boat_direction(start: PixelPoint, end: PixelPoint,
                    leg: Optional[RouteLeg]) -> Tuple[float, float]:
    """Preferred screen direction for a boat curve.

    East-west legs bend toward the equator; north-south legs bend east.
    Without geography the pixel deltas decide and the northern hemisphere
    is assumed.
    """
    if leg is not None:
        lat_delta = abs(leg.end.latitude - leg.start.latitude)
        lng_delta = abs(leg.end.longitude - leg.start.longitude)
        mid_lat = (leg.start.latitude + leg.end.latitude) / 2
    else:
        lat_delta = abs(end.y - start.y)
        lng_delta = abs(end.x - start.x)
        mid_lat = 1.0

    if lng_delta > lat_delta:
        # Screen y grows southward
        return (0.0, 1.0) if mid_lat > 0 else (0.0, -1.0)
    return 1.0, 0.0


def curved_path(start: PixelPoint, end: PixelPoint, mode=TransportMode.NONE,
                leg: Optional[RouteLeg] = None) -> RoutePath:
    """Build the drawable path for one leg.

    Args:
        start: Projected start point
        end: Projected end point
        mode: Transport mode (enum, string or None)
        leg: Geographic leg, used to orient boat curves

    Returns:
        RoutePath with 0-2 control points
    """
    mode = TransportMode.parse(mode)
    dx = end.x - start.x
    dy = end.y - start.y
    distance = math.hypot(dx, dy)

    if distance < DEGENERATE_SEGMENT_PX:
        return RoutePath(start, end, (), mode)

    # Left-hand unit normal of the chord
    nx, ny = -dy / distance, dx / distance

    if mode == TransportMode.BOAT:
        want_x, want_y = _boat_direction(start, end, leg)
        if nx * want_x + ny * want_y < 0:
            nx, ny = -nx, -ny
        offset = distance * CURVATURE_BOAT
        c1 = PixelPoint(start.x + dx / 3 + nx * offset, start.y + dy / 3 + ny * offset)
        c2 = PixelPoint(start.x + 2 * dx / 3 + nx * offset, start.y + 2 * dy / 3 + ny * offset)
        return RoutePath(start, end, (c1, c2), mode)

    offset = distance * CURVATURE.get(mode, CURVATURE_DEFAULT)
    control = PixelPoint(start.x + dx / 2 + nx * offset, start.y + dy / 2 + ny * offset)
    return RoutePath(start, end, (control,), mode)


def build_route_legs(destinations: Iterable) -> List[RouteLeg]:
    """Pair consecutive destinations into legs.

    Destinations need ``latitude``, ``longitude`` and ``transportation_type``
    attributes. A leg takes the transport mode of the destination it arrives at.
    """
    destinations = list(destinations)
    legs = []
    for current, following in zip(destinations, destinations[1:]):
        legs.append(RouteLeg(
            start=GeoPoint(current.latitude, current.longitude),
            end=GeoPoint(following.latitude, following.longitude),
            mode=TransportMode.parse(following.transportation_type),
        ))
    return legs


def leg_path(leg: RouteLeg, to_screen: Callable[[GeoPoint], PixelPoint]) -> RoutePath:
    """Project a leg's endpoints with ``to_screen`` and build its path."""
    return curved_path(to_screen(leg.start), to_screen(leg.end), leg.mode, leg)
