"""
Slippy-map tile addressing and fetching.

Works out which 256px raster tiles cover the map container for a viewport and
where each one sits on screen. Tiles are addressed as ``{zoom}/{x}/{y}`` over a
``2**zoom`` square grid with no horizontal wraparound: anything outside the
grid is skipped rather than requested.
"""

import logging
import math
from dataclasses import dataclass
from functools import lru_cache
from io import BytesIO
from typing import Dict, Iterator, List, Optional, Tuple

import requests
from PIL import Image

from constants import (
    TILE_CACHE_SIZE,
    TILE_FETCH_TIMEOUT,
    TILE_HOST,
    TILE_MARGIN,
    TILE_SIZE,
    TILE_STYLE,
    TILE_URL_TEMPLATE,
    TILE_USER_AGENT,
)
from projection import GeoPoint, project
from viewport import ViewportState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TileDescriptor:
    """A tile in the global grid and its top-left corner on screen."""
    tile_x: int
    tile_y: int
    zoom: int
    screen_left: float
    screen_top: float

    @property
    def key(self) -> Tuple[int, int, int]:
        return self.zoom, self.tile_x, self.tile_y


def iter_visible_tiles(
    viewport: ViewportState,
    container_width: float,
    container_height: float,
    tile_size: int = TILE_SIZE,
) -> Iterator[TileDescriptor]:
    """Yield the tiles covering the container, one tile of margin included.

    Each call starts a fresh enumeration, so the generator can be recreated
    freely on every render pass.

    Args:
        viewport: Current center and zoom
        container_width: Container width in pixels
        container_height: Container height in pixels
        tile_size: Tile edge in pixels

    Yields:
        TileDescriptor for every in-range tile, row by row
    """
    zoom = viewport.zoom
    grid = 2 ** zoom
    center = project(viewport.center, zoom, tile_size)
    center_tile_x = int(math.floor(center.x / tile_size))
    center_tile_y = int(math.floor(center.y / tile_size))

    half_x = int(math.ceil(container_width / 2 / tile_size)) + TILE_MARGIN
    half_y = int(math.ceil(container_height / 2 / tile_size)) + TILE_MARGIN

    for dy in range(-half_y, half_y + 1):
        tile_y = center_tile_y + dy
        if tile_y < 0 or tile_y >= grid:
            continue
        for dx in range(-half_x, half_x + 1):
            tile_x = center_tile_x + dx
            if tile_x < 0 or tile_x >= grid:
                continue
            yield TileDescriptor(
                tile_x=tile_x,
                tile_y=tile_y,
                zoom=zoom,
                screen_left=tile_x * tile_size - center.x + container_width / 2,
                screen_top=tile_y * tile_size - center.y + container_height / 2,
            )


@lru_cache(maxsize=64)
def _visible_tiles_cached(zoom: int, lat: float, lng: float, width: float, height: float,
                          tile_size: int) -> Tuple[TileDescriptor, ...]:
    state = ViewportState(GeoPoint(lat, lng), zoom)
    return tuple(iter_visible_tiles(state, width, height, tile_size))


def visible_tiles(
    viewport: ViewportState,
    container_width: float,
    container_height: float,
    tile_size: int = TILE_SIZE,
) -> List[TileDescriptor]:
    """List the tiles covering the container (memoized on the inputs)."""
    return list(_visible_tiles_cached(
        viewport.zoom, viewport.center.latitude, viewport.center.longitude,
        float(container_width), float(container_height), tile_size,
    ))


def tile_url(tile: TileDescriptor, style: str = TILE_STYLE, host: str = TILE_HOST) -> str:
    """URL of a tile image in the ``https://<host>/<style>/{z}/{x}/{y}.png`` scheme."""
    return TILE_URL_TEMPLATE.format(host=host, style=style, zoom=tile.zoom,
                                    x=tile.tile_x, y=tile.tile_y)


class TileFetcher:
    """Downloads tile images and keeps a bounded cache of them.

    A failed download yields None; the caller leaves that area blank. There is
    no retry.

    Args:
        style: Tile style path segment (e.g. "dark_all")
        host: Tile server host name
        cache_size: Maximum number of cached tiles
        session: Optional requests session (shared connection pool)
    """

    def __init__(self, style: str = TILE_STYLE, host: str = TILE_HOST,
                 cache_size: int = TILE_CACHE_SIZE,
                 session: Optional[requests.Session] = None):
        self.style = style
        self.host = host
        self.cache_size = cache_size
        self._session = session or requests.Session()
        self._cache: Dict[Tuple[str, int, int, int], Image.Image] = {}
        self.failures = 0

    def fetch(self, tile: TileDescriptor) -> Optional[Image.Image]:
        """Fetch a single map tile by its grid coordinates.

        Returns the tile image, or None on failure.
        Caches tiles by (style, z, x, y) for reuse.
        """
        cache_key = (self.style, tile.zoom, tile.tile_x, tile.tile_y)
        if cache_key in self._cache:
            return self._cache[cache_key]

        url = tile_url(tile, self.style, self.host)
        try:
            headers = {"User-Agent": TILE_USER_AGENT}
            resp = self._session.get(url, headers=headers, timeout=TILE_FETCH_TIMEOUT)
            resp.raise_for_status()
            img = Image.open(BytesIO(resp.content)).convert('RGB')
        except (requests.RequestException, OSError) as e:
            self.failures += 1
            logger.debug(f"Failed to fetch tile {tile.zoom}/{tile.tile_x}/{tile.tile_y}: {e}")
            return None

        self._cache[cache_key] = img

        # Limit cache size by dropping the oldest entries
        if len(self._cache) > self.cache_size:
            keys = list(self._cache.keys())
            for k in keys[:max(1, self.cache_size // 5)]:
                del self._cache[k]

        return img

    def clear(self) -> None:
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)
