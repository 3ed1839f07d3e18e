"""
Rich console configuration for the travel map tools.

Provides styled terminal output: logging handler, progress bars, trip tables,
statistics panels and expense breakdowns.
"""

import logging
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme
from rich.panel import Panel
from rich.table import Table
from rich.progress import (
    Progress,
    SpinnerColumn,
    TextColumn,
    BarColumn,
    TaskProgressColumn,
    TimeElapsedColumn,
    MofNCompleteColumn,
)

from trip_log.data_models import Trip
from trip_log.statistics import (
    EXPENSE_CATEGORIES,
    CategoryShare,
    CitySummary,
    ExpensePoint,
    TrendLine,
    TripBreakdown,
    TripStatistics,
    total_expenses,
)

TRAVEL_THEME = Theme({
    "info": "cyan",
    "warning": "yellow",
    "error": "bold red",
    "success": "bold green",
    "highlight": "bold magenta",
    "muted": "dim",
    "trip": "bold blue",
    "money": "bold cyan",
    "place": "green",
})

# Global console instance
console = Console(theme=TRAVEL_THEME)


def setup_rich_logging(verbose: bool = False) -> None:
    """
    Configure logging to use Rich handler.

    Args:
        verbose: Enable DEBUG level logging with full details
    """
    level = logging.DEBUG if verbose else logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[
            RichHandler(
                console=console,
                show_time=verbose,
                show_path=verbose,
                rich_tracebacks=True,
                tracebacks_show_locals=verbose,
                markup=False,
            )
        ],
        force=True,  # Override any existing configuration
    )


def create_tile_progress() -> Progress:
    """
    Create a progress bar for tile downloads.

    Returns:
        Configured Progress instance (removed from the terminal when done)
    """
    return Progress(
        SpinnerColumn("dots"),
        TextColumn("[cyan]{task.description}"),
        BarColumn(bar_width=30, style="dim cyan", complete_style="cyan"),
        TaskProgressColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    )


def format_currency(amount: float, decimals: int = 2) -> str:
    """Format euros UK-style, e.g. 1,234.50 -> "€1,234.50"."""
    return f"€{amount:,.{decimals}f}"


def print_phase(phase_num: int, total_phases: int, description: str) -> None:
    console.print(
        f"\n[bold cyan]Step {phase_num}/{total_phases}:[/] [bold]{description}[/]"
    )


def print_trip_table(trips: List[Trip], title: str = "Trips") -> None:
    """
    Print trips as a table, one row per trip.

    Args:
        trips: Trips to list
        title: Table title
    """
    table = Table(title=title, title_style="bold", header_style="bold cyan")
    table.add_column("Name", style="trip")
    table.add_column("Dates")
    table.add_column("Route", style="place")
    table.add_column("Companions", style="muted")
    table.add_column("Total", justify="right", style="money")
    table.add_column("ID", style="muted")

    for trip in trips:
        route = " → ".join(d.city for d in trip.destinations) or "-"
        table.add_row(
            trip.name,
            f"{trip.start_date:%d/%m/%Y} - {trip.end_date:%d/%m/%Y}",
            route,
            ", ".join(trip.companions) or "-",
            format_currency(total_expenses(trip.expenses)),
            trip.id[:8],
        )
    console.print(table)


def print_statistics(stats: TripStatistics, top: int = 5) -> None:
    """
    Print the summary statistics panel.

    Args:
        stats: Output of calculate_statistics
        top: How many companions, cities and countries to list
    """
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Metric", style="dim")
    table.add_column("Value", style="bold")

    def trip_name(trip: Optional[Trip]) -> str:
        return trip.name if trip else "-"

    table.add_row("Trips", f"[highlight]{stats.total_trips}[/]")
    table.add_row("Total spent", f"[money]{format_currency(stats.total_expenses)}[/]")
    table.add_row("Average per trip", format_currency(stats.average_expenses))
    table.add_row("Average per night", format_currency(stats.average_per_night))
    table.add_row("Most expensive", trip_name(stats.most_expensive_trip))
    table.add_row("Most expensive per night", trip_name(stats.most_expensive_per_night))
    table.add_row("Cheapest", trip_name(stats.cheapest_trip))
    table.add_row("Cheapest per night", trip_name(stats.cheapest_per_night))
    table.add_row("Longest", trip_name(stats.longest_trip))
    table.add_row("Shortest", trip_name(stats.shortest_trip))

    if stats.favorite_companions:
        table.add_row("Companions", ", ".join(
            f"{c.name} ({c.count})" for c in stats.favorite_companions[:top]))
    if stats.most_visited_cities:
        table.add_row("Cities", ", ".join(
            f"{c.city} ({c.count})" for c in stats.most_visited_cities[:top]))
    if stats.most_visited_countries:
        table.add_row("Countries", ", ".join(
            f"{c.country} ({c.count})" for c in stats.most_visited_countries[:top]))

    panel = Panel(
        table,
        title="[bold]Travel Statistics[/]",
        border_style="cyan",
        padding=(1, 2),
    )
    console.print(panel)


def print_expense_breakdown(shares: List[CategoryShare], title: str = "Expense Breakdown") -> None:
    """Print categories with amount, share and a proportional bar."""
    table = Table(title=title, title_style="bold", header_style="bold cyan")
    table.add_column("Category")
    table.add_column("Amount", justify="right", style="money")
    table.add_column("Share", justify="right")
    table.add_column("", style="cyan")

    for share in shares:
        table.add_row(
            share.label,
            format_currency(share.amount),
            f"{share.percentage:.1f}%",
            "█" * int(round(share.percentage / 5)),
        )
    console.print(table)


def print_expenses_over_time(points: List[ExpensePoint], trend: Optional[TrendLine] = None) -> None:
    """
    Print spending per trip in date order, with the fitted trend beside it.

    Args:
        points: Output of expenses_over_time
        trend: Trend fitted over ``points`` (optional)
    """
    table = Table(title="Expenses Over Time", title_style="bold", header_style="bold cyan")
    table.add_column("Date")
    table.add_column("Trip", style="trip")
    table.add_column("Total", justify="right", style="money")
    table.add_column("Per night", justify="right")
    if trend is not None:
        table.add_column("Trend", justify="right", style="muted")

    for i, point in enumerate(points):
        row = [
            f"{point.start_date:%d/%m/%Y}",
            point.name,
            format_currency(point.total),
            format_currency(point.per_night),
        ]
        if trend is not None:
            row.append(format_currency(trend.values[i]))
        table.add_row(*row)
    console.print(table)

    if trend is not None and len(points) > 1:
        direction = "rising" if trend.slope > 0 else "falling" if trend.slope < 0 else "flat"
        console.print(f"[muted]Trend {direction}: {format_currency(trend.slope)} per trip[/]")


def print_breakdown_by_trip(rows: List[TripBreakdown], per_night: bool = False) -> None:
    """Print one row per trip with each category's spending."""
    title = "Spending by Category per Night" if per_night else "Spending by Category"
    table = Table(title=title, title_style="bold", header_style="bold cyan")
    table.add_column("Trip", style="trip")
    for _, label in EXPENSE_CATEGORIES:
        table.add_column(label, justify="right")

    for row in rows:
        table.add_row(row.name, *(
            format_currency(getattr(row.expenses, field)) for field, _ in EXPENSE_CATEGORIES
        ))
    console.print(table)


def print_city_summary(summary: CitySummary) -> None:
    """Print the trips through one city and their combined totals."""
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Metric", style="dim")
    table.add_column("Value", style="bold")

    table.add_row("Trips", f"[highlight]{summary.total_trips}[/]")
    table.add_row("Nights", str(summary.total_nights))
    table.add_row("Total spent", f"[money]{format_currency(summary.total_expenses)}[/]")
    for trip in summary.trips:
        table.add_row("", f"[trip]{trip.name}[/] [muted]{trip.start_date:%d/%m/%Y}[/]")

    panel = Panel(
        table,
        title=f"[bold]{summary.city}, {summary.country}[/]",
        border_style="green",
        padding=(1, 2),
    )
    console.print(panel)


def print_render_summary(
    output_file: str,
    trip_count: int,
    zoom: int,
    tiles_drawn: Optional[int] = None,
    tiles_total: Optional[int] = None,
) -> None:
    """
    Print a styled completion summary for a rendered map.

    Args:
        output_file: Path to output image
        trip_count: Number of trips drawn
        zoom: Zoom level of the rendered view
        tiles_drawn: Tiles successfully fetched (optional)
        tiles_total: Tiles requested (optional)
    """
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Metric", style="dim")
    table.add_column("Value", style="bold green")

    table.add_row("Trips", str(trip_count))
    table.add_row("Zoom", str(zoom))
    if tiles_total is not None:
        table.add_row("Tiles", f"{tiles_drawn or 0}/{tiles_total}")
    table.add_row("Output", output_file)

    panel = Panel(
        table,
        title="[bold green]Complete[/]",
        border_style="green",
        padding=(1, 2),
    )
    console.print()
    console.print(panel)


def print_error(message: str, hint: Optional[str] = None) -> None:
    """
    Print a styled error message.

    Args:
        message: Error message
        hint: Optional hint for resolution
    """
    console.print(f"\n[error]Error:[/] {message}")
    if hint:
        console.print(f"[muted]Hint: {hint}[/]")
