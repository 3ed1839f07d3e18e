"""
Constants for the travel map engine.

Centralized definitions for zoom limits, default views, gesture thresholds,
route curvature and map colors.
"""

from typing import Dict, Tuple
from dataclasses import dataclass


# =============================================================================
# Tiles
# =============================================================================

TILE_SIZE = 256  # Standard web map tile size
TILE_HOST = "a.basemaps.cartocdn.com"
TILE_STYLE = "dark_all"
TILE_URL_TEMPLATE = "https://{host}/{style}/{zoom}/{x}/{y}.png"
TILE_USER_AGENT = "TravelMap/1.0"
TILE_FETCH_TIMEOUT = 5  # Seconds
TILE_CACHE_SIZE = 100  # Max cached tiles
TILE_MARGIN = 1  # Extra tiles fetched around the container on each side

MAP_STYLES = frozenset({"dark_all", "light_all", "voyager", "rastertiles/voyager"})


# =============================================================================
# Zoom & Default View
# =============================================================================

ZOOM_MIN = 3
ZOOM_MAX = 12
DEFAULT_ZOOM = 5
DEFAULT_CENTER = (45.0, 10.0)  # Europe (lat, lng)
SINGLE_POINT_ZOOM = 6  # Focus zoom for trips with one distinct location
FIT_PADDING_FRACTION = 0.25

# Latitude where the Mercator world becomes square
MERCATOR_LAT_BOUND = 85.05112878

# View centers stay this far from the poles, where Mercator y is infinite
POLE_LAT_LIMIT = 89.999


# =============================================================================
# Container Sizes
# =============================================================================

OVERVIEW_WIDTH = 1200
OVERVIEW_HEIGHT = 800
DETAIL_WIDTH = 800
DETAIL_HEIGHT = 500


# =============================================================================
# Gestures
# =============================================================================

DRAG_THRESHOLD_PX = 3.0  # Movement below this is still a click
WHEEL_ZOOM_STEP = 1
PRIMARY_BUTTON = 0
MARKER_HIT_RADIUS = 10.0  # Pixels around a marker that count as a hit


# =============================================================================
# Route Geometry
# =============================================================================

DEGENERATE_SEGMENT_PX = 1.0  # Endpoints closer than this draw straight
CURVATURE_DEFAULT = 0.12
CURVATURE_PLANE = 0.15
CURVATURE_BOAT = 0.25
CURVE_SAMPLES = 32  # Polyline points per rendered curve


# =============================================================================
# Colors (RGB format for Pillow)
# =============================================================================

@dataclass(frozen=True)
class Colors:
    """Common colors in RGB format."""
    WHITE: Tuple[int, int, int] = (255, 255, 255)
    BLACK: Tuple[int, int, int] = (0, 0, 0)
    VOID_BLACK: Tuple[int, int, int] = (15, 18, 22)        # Blank map background
    STEEL_DARK: Tuple[int, int, int] = (80, 85, 90)        # Map border

    # Transportation palette
    PLANE: Tuple[int, int, int] = (59, 130, 246)           # Blue
    TRAIN: Tuple[int, int, int] = (34, 197, 94)            # Green
    CAR: Tuple[int, int, int] = (245, 158, 11)             # Amber
    BUS: Tuple[int, int, int] = (139, 92, 246)             # Purple
    BOAT: Tuple[int, int, int] = (6, 182, 212)             # Cyan
    DEFAULT: Tuple[int, int, int] = (107, 114, 128)        # Gray

    # Start/end markers on the detail map
    HOME: Tuple[int, int, int] = (245, 158, 11)


COLORS = Colors()

TRANSPORT_COLORS: Dict[str, Tuple[int, int, int]] = {
    "plane": COLORS.PLANE,
    "train": COLORS.TRAIN,
    "car": COLORS.CAR,
    "bus": COLORS.BUS,
    "boat": COLORS.BOAT,
}


# =============================================================================
# Route & Marker Styling
# =============================================================================

ROUTE_OPACITY_SELECTED = 1.0
ROUTE_OPACITY_FADED = 0.15
ROUTE_OPACITY_DEFAULT = 0.8
MARKER_OPACITY_SELECTED = 1.0
MARKER_OPACITY_FADED = 0.2
MARKER_OPACITY_DEFAULT = 0.9

ROUTE_WIDTH = 2
ROUTE_WIDTH_SELECTED = 4
ROUTE_WIDTH_DETAIL = 4
ROUTE_DASH = (10, 10)  # Dash, gap in pixels for plane legs

MARKER_RADIUS = 6
MARKER_RADIUS_SELECTED = 8
MARKER_RADIUS_DETAIL = 7
MARKER_RADIUS_HOME = 10
MARKER_OUTLINE = 2


# =============================================================================
# Renderer
# =============================================================================

MAP_SUPERSAMPLE = 2  # Render at 2x resolution and downsample
