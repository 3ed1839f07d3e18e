#!/usr/bin/env python3
import argparse
import logging
import os
import sys
from typing import List, Optional

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from constants import (
    DETAIL_HEIGHT,
    DETAIL_WIDTH,
    MAP_STYLES,
    OVERVIEW_HEIGHT,
    OVERVIEW_WIDTH,
    TILE_STYLE,
    ZOOM_MAX,
    ZOOM_MIN,
)
from map_engine import detail_map, overview_map
from map_renderer import MapRenderer
from projection import GeoPoint
from rich_console import (
    console,
    create_tile_progress,
    print_breakdown_by_trip,
    print_city_summary,
    print_error,
    print_expense_breakdown,
    print_expenses_over_time,
    print_phase,
    print_render_summary,
    print_statistics,
    print_trip_table,
    setup_rich_logging,
)
from tiles import TileFetcher, tile_url, visible_tiles
from trip_log import (
    TripInput,
    TripRepository,
    breakdown_by_trip,
    calculate_statistics,
    city_summary,
    expense_breakdown,
    expense_trend,
    expenses_over_time,
    overall_breakdown,
)
from viewport import ViewportState

logger = logging.getLogger(__name__)


class RenderConfig(BaseModel):
    data_file: str
    output_file: str
    trip_id: Optional[str] = None
    width: Optional[int] = Field(default=None, ge=64, le=8192)
    height: Optional[int] = Field(default=None, ge=64, le=8192)
    style: Optional[str] = TILE_STYLE
    zoom: Optional[int] = Field(default=None, ge=ZOOM_MIN, le=ZOOM_MAX)
    scale: float = Field(default=1.0, ge=0.1)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Plot trips on a slippy map and summarize travel history.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    render = sub.add_parser("render", help="Render an overview map, or one trip's route")
    render.add_argument("data_file", help="Path to trips JSON file")
    render.add_argument("output_file", help="Path to output PNG file")
    render.add_argument("--trip", dest="trip_id", help="Render the detail map of this trip id")
    render.add_argument("--width", type=int, help="Map width in pixels")
    render.add_argument("--height", type=int, help="Map height in pixels")
    render.add_argument("--style", default=TILE_STYLE, choices=sorted(MAP_STYLES), help="Tile style")
    render.add_argument("--no-tiles", action="store_true", help="Skip tile downloads (plain background)")
    render.add_argument("--zoom", type=int, help="Override the fitted zoom level")
    render.add_argument("--scale", type=float, default=1.0, help="Scale for line widths and markers")

    stats = sub.add_parser("stats", help="Print travel statistics")
    stats.add_argument("data_file", help="Path to trips JSON file")
    stats.add_argument("--city", help="Summarize the trips that visited this city")
    stats.add_argument("--trip", dest="trip_id", help="Break down one trip's expenses")
    stats.add_argument("--per-night", action="store_true",
                       help="Use per-night spending for the trend and category table")

    tiles = sub.add_parser("tiles", help="List the tile URLs covering a view")
    tiles.add_argument("--lat", type=float, required=True, help="Center latitude")
    tiles.add_argument("--lng", type=float, required=True, help="Center longitude")
    tiles.add_argument("--zoom", type=int, required=True, help="Zoom level")
    tiles.add_argument("--width", type=int, default=OVERVIEW_WIDTH, help="Container width")
    tiles.add_argument("--height", type=int, default=OVERVIEW_HEIGHT, help="Container height")
    tiles.add_argument("--style", default=TILE_STYLE, choices=sorted(MAP_STYLES), help="Tile style")

    imp = sub.add_parser("import", help="Add or replace trips from a JSON list")
    imp.add_argument("data_file", help="Path to trips JSON file")
    imp.add_argument("input_file", help="JSON list of trips to import")

    return parser


def render_config_from_args(args: argparse.Namespace) -> RenderConfig:
    return RenderConfig(
        data_file=args.data_file,
        output_file=args.output_file,
        trip_id=args.trip_id,
        width=args.width,
        height=args.height,
        style=None if args.no_tiles else args.style,
        zoom=args.zoom,
        scale=args.scale,
    )


def prefetch_tiles(fetcher: TileFetcher, tiles) -> int:
    """Download every tile with a progress bar; returns how many loaded."""
    loaded = 0
    with create_tile_progress() as progress:
        task = progress.add_task("Fetching tiles", total=len(tiles))
        for tile in tiles:
            if fetcher.fetch(tile) is not None:
                loaded += 1
            progress.advance(task)
    return loaded


def cmd_render(config: RenderConfig) -> int:
    repo = TripRepository(config.data_file)
    trips = repo.list_trips()

    print_phase(1, 3, "Laying out map...")
    if config.trip_id is not None:
        trip = repo.get_trip(config.trip_id)
        if trip is None:
            print_error(f"Trip not found: {config.trip_id}",
                        hint=f"Run 'stats {config.data_file}' to list trip ids")
            return 1
        engine = detail_map(trip, width=config.width or DETAIL_WIDTH,
                            height=config.height or DETAIL_HEIGHT)
        drawn = [trip]
    else:
        engine = overview_map(trips, width=config.width or OVERVIEW_WIDTH,
                              height=config.height or OVERVIEW_HEIGHT)
        engine.reset()
        drawn = trips

    if config.zoom is not None:
        engine.viewport.zoom_to(config.zoom)

    frame = engine.frame()
    logger.debug(f"View: center={frame.state.center}, zoom={frame.state.zoom}, "
                 f"{len(frame.tiles)} tiles, {len(frame.routes)} legs")

    print_phase(2, 3, "Fetching tiles...")
    fetcher = None
    loaded = None
    if config.style is not None:
        fetcher = TileFetcher(style=config.style)
        loaded = prefetch_tiles(fetcher, frame.tiles)
    else:
        console.print("[muted]Skipped (plain background)[/]")

    print_phase(3, 3, "Drawing...")
    renderer = MapRenderer(scale=config.scale, style=config.style, fetcher=fetcher)
    renderer.save(frame, config.output_file)

    print_render_summary(
        config.output_file,
        trip_count=len(drawn),
        zoom=frame.state.zoom,
        tiles_drawn=loaded,
        tiles_total=len(frame.tiles) if fetcher else None,
    )
    return 0


def cmd_stats(data_file: str, city: Optional[str] = None, trip_id: Optional[str] = None,
              per_night: bool = False) -> int:
    repo = TripRepository(data_file)
    trips = repo.list_trips()
    if not trips:
        console.print("[warning]No trips recorded yet.[/]")
        return 0

    if trip_id is not None:
        trip = repo.get_trip(trip_id)
        if trip is None:
            print_error(f"Trip not found: {trip_id}", hint=f"Run 'stats {data_file}' to list trip ids")
            return 1
        print_expense_breakdown(expense_breakdown(trip.expenses), title=trip.name)
        return 0

    if city is not None:
        summary = city_summary(trips, city)
        if summary is None:
            print_error(f"No trips visited {city}")
            return 1
        print_city_summary(summary)
        return 0

    print_statistics(calculate_statistics(trips))
    points = expenses_over_time(trips)
    print_expenses_over_time(points, expense_trend(points, per_night=per_night))
    print_expense_breakdown(overall_breakdown(trips))
    print_breakdown_by_trip(breakdown_by_trip(trips, per_night=per_night), per_night=per_night)
    print_trip_table(trips)
    return 0


def cmd_tiles(lat: float, lng: float, zoom: int, width: int, height: int,
              style: str = TILE_STYLE) -> List[str]:
    if not ZOOM_MIN <= zoom <= ZOOM_MAX:
        raise ValueError(f"Zoom must be between {ZOOM_MIN} and {ZOOM_MAX}, got {zoom}")
    state = ViewportState(GeoPoint(lat, lng), zoom)
    urls = [tile_url(t, style=style) for t in visible_tiles(state, width, height)]
    for url in urls:
        console.print(url, highlight=False)
    return urls


def cmd_import(data_file: str, input_file: str) -> int:
    with open(input_file, 'r', encoding='utf-8') as f:
        inputs = TypeAdapter(List[TripInput]).validate_json(f.read())
    count = TripRepository(data_file).import_trips(inputs)
    console.print(f"[success]Imported {count} trip(s) into {data_file}[/]")
    return count


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_rich_logging(args.verbose)

    try:
        if args.command == "render":
            return cmd_render(render_config_from_args(args))
        if args.command == "stats":
            return cmd_stats(args.data_file, args.city, args.trip_id, args.per_night)
        if args.command == "tiles":
            cmd_tiles(args.lat, args.lng, args.zoom, args.width, args.height, args.style)
            return 0
        if args.command == "import":
            if not os.path.exists(args.input_file):
                print_error(f"Input file not found: {args.input_file}")
                return 1
            cmd_import(args.data_file, args.input_file)
            return 0
    except ValidationError as e:
        print_error(f"Invalid input: {e}", hint="Check the trip JSON against the expected fields")
        return 1
    except (OSError, ValueError) as e:
        print_error(str(e))
        return 1
    return 1


if __name__ == "__main__":
    sys.exit(main())
