"""
Raster renderer for trip maps.

Provides MapRenderer, which turns a MapFrame into an image:
- Background tiles are fetched and pasted at their screen positions
- Route legs are drawn as sampled bezier polylines (planes dashed)
- Destination markers are drawn as outlined dots

Rendering happens at a supersampled resolution and is downscaled at the end
so curves and marker edges come out anti-aliased. A tile that fails to load
stays blank.
"""

import logging
import math
from typing import Optional, Tuple

import numpy as np
from PIL import Image, ImageDraw

from constants import (
    COLORS,
    CURVE_SAMPLES,
    MAP_SUPERSAMPLE,
    MARKER_OUTLINE,
    ROUTE_DASH,
    TILE_SIZE,
    TILE_STYLE,
)
from map_engine import MapFrame, Marker, RouteSegment
from tiles import TileFetcher

logger = logging.getLogger(__name__)


def _rgba(color: Tuple[int, int, int], opacity: float) -> Tuple[int, int, int, int]:
    return color[0], color[1], color[2], int(round(255 * max(0.0, min(1.0, opacity))))


def dash_polyline(points: np.ndarray, dash: float, gap: float) -> list:
    """Split a polyline into dash pieces of length ``dash`` separated by ``gap``.

    Returns:
        List of point lists, one per visible dash
    """
    pieces = []
    current = []
    drawing = True
    remaining = dash

    for i in range(len(points) - 1):
        start = points[i].astype(float)
        end = points[i + 1].astype(float)
        seg_len = float(np.hypot(*(end - start)))
        pos = 0.0
        if drawing and not current:
            current.append(tuple(start))
        while seg_len - pos > remaining:
            pos += remaining
            point = tuple(start + (end - start) * (pos / seg_len))
            if drawing:
                current.append(point)
                pieces.append(current)
                current = []
                remaining = gap
            else:
                current = [point]
                remaining = dash
            drawing = not drawing
        remaining -= seg_len - pos
        if drawing:
            current.append(tuple(end))

    if drawing and len(current) > 1:
        pieces.append(current)
    return pieces


class MapRenderer:
    """Renders map frames to RGB images.

    Args:
        scale: Scaling factor for line widths and marker sizes (default 1.0)
        style: Tile style ("dark_all", "light_all", "voyager"), or None to
            draw routes on a plain background
        fetcher: Tile fetcher to use (one is created for ``style`` if omitted)
        supersample: Internal resolution multiplier
    """

    def __init__(self, scale: float = 1.0, style: Optional[str] = TILE_STYLE,
                 fetcher: Optional[TileFetcher] = None, supersample: int = MAP_SUPERSAMPLE):
        self.scale = scale
        self.style = style
        self._supersample = max(1, int(supersample))
        if fetcher is None and style is not None:
            fetcher = TileFetcher(style=style)
        self.fetcher = fetcher
        self._warned_fallback = False

    def render(self, frame: MapFrame) -> Image.Image:
        """Render a frame at its container size.

        Args:
            frame: Tiles, routes and markers from MapEngine.frame()

        Returns:
            RGB image of ``frame.width`` x ``frame.height`` pixels
        """
        width, height = int(round(frame.width)), int(round(frame.height))
        ss = self._supersample
        internal = (width * ss, height * ss)

        img = Image.new('RGB', (width, height), COLORS.VOID_BLACK)
        if self.fetcher is not None and self.style is not None:
            self._draw_tiles(img, frame)
        if ss > 1:
            img = img.resize(internal, Image.Resampling.BILINEAR)
        img = img.convert('RGBA')

        overlay = Image.new('RGBA', internal, (0, 0, 0, 0))
        draw = ImageDraw.Draw(overlay)
        for segment in frame.routes:
            self._draw_route(draw, segment)
        img = Image.alpha_composite(img, overlay)

        overlay = Image.new('RGBA', internal, (0, 0, 0, 0))
        draw = ImageDraw.Draw(overlay)
        for marker in frame.markers:
            self._draw_marker(draw, marker)
        img = Image.alpha_composite(img, overlay).convert('RGB')

        # Border drawn before downsampling so its width scales with the rest
        draw = ImageDraw.Draw(img)
        border_width = max(1, int(2 * self.scale * ss))
        draw.rectangle([0, 0, internal[0] - 1, internal[1] - 1],
                       outline=COLORS.STEEL_DARK, width=border_width)

        if ss > 1:
            img = img.resize((width, height), Image.Resampling.LANCZOS)
        return img

    def render_array(self, frame: MapFrame) -> np.ndarray:
        """Render a frame as an RGB numpy array."""
        return np.array(self.render(frame))

    def save(self, frame: MapFrame, path: str) -> str:
        img = self.render(frame)
        img.save(path)
        logger.info(f"Saved {img.width}x{img.height} map to {path}")
        return path

    def _draw_tiles(self, img: Image.Image, frame: MapFrame) -> int:
        """Paste every fetched tile; returns how many were drawn."""
        drawn = 0
        for tile in frame.tiles:
            tile_img = self.fetcher.fetch(tile)
            if tile_img is None:
                continue
            if tile_img.size != (TILE_SIZE, TILE_SIZE):
                tile_img = tile_img.resize((TILE_SIZE, TILE_SIZE), Image.Resampling.BILINEAR)
            img.paste(tile_img, (int(math.floor(tile.screen_left)), int(math.floor(tile.screen_top))))
            drawn += 1

        if frame.tiles and drawn == 0 and not self._warned_fallback:
            logger.warning("Failed to fetch map tiles. Drawing routes on a blank background.")
            self._warned_fallback = True
        return drawn

    def _draw_route(self, draw: ImageDraw.ImageDraw, segment: RouteSegment) -> None:
        ss = self._supersample
        points = segment.path.sample(CURVE_SAMPLES) * ss
        fill = _rgba(segment.color, segment.opacity)
        width = max(1, int(round(segment.width * self.scale * ss)))

        if segment.dashed:
            dash, gap = (v * self.scale * ss for v in ROUTE_DASH)
            for piece in dash_polyline(points, dash, gap):
                draw.line(piece, fill=fill, width=width)
        else:
            draw.line([tuple(p) for p in points], fill=fill, width=width, joint="curve")

    def _draw_marker(self, draw: ImageDraw.ImageDraw, marker: Marker) -> None:
        ss = self._supersample
        cx, cy = marker.point.x * ss, marker.point.y * ss
        r = marker.radius * self.scale * ss
        outline = max(1, int(round(MARKER_OUTLINE * self.scale * ss)))
        draw.ellipse([cx - r, cy - r, cx + r, cy + r],
                     fill=_rgba(marker.color, marker.opacity),
                     outline=_rgba(COLORS.WHITE, marker.opacity),
                     width=outline)

