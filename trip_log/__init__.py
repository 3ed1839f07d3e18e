"""
Trip log: data models, storage and aggregates for recorded trips.

Trips are kept in a JSON file and consumed read-only by the map engine.
"""

from trip_log.data_models import (
    TransportationType,
    Expenses,
    Destination,
    DestinationInput,
    Trip,
    TripInput,
)
from trip_log.repository import TripRepository, TripNotFoundError, TripExistsError
from trip_log.statistics import (
    TripStatistics,
    CategoryShare,
    ExpensePoint,
    TrendLine,
    TripBreakdown,
    CitySummary,
    calculate_statistics,
    expense_breakdown,
    overall_breakdown,
    breakdown_by_trip,
    expenses_over_time,
    expense_trend,
    trips_by_city,
    city_summary,
)
from trip_log.filters import FilterState, default_filters, filter_trips

__all__ = [
    "TransportationType",
    "Expenses",
    "Destination",
    "DestinationInput",
    "Trip",
    "TripInput",
    "TripRepository",
    "TripNotFoundError",
    "TripExistsError",
    "TripStatistics",
    "calculate_statistics",
    "CategoryShare",
    "ExpensePoint",
    "TrendLine",
    "TripBreakdown",
    "CitySummary",
    "expense_breakdown",
    "overall_breakdown",
    "breakdown_by_trip",
    "expenses_over_time",
    "expense_trend",
    "trips_by_city",
    "city_summary",
    "FilterState",
    "default_filters",
    "filter_trips",
]
