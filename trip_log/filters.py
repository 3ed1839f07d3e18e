"""
Trip filtering for the overview map and sidebar.

A trip passes when it overlaps the date range, matches at least one of each
non-empty selection (transport type, companion, country) and its total and
per-night expenses fall inside the inclusive ranges. An unset range does not
filter.
"""

from datetime import date
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field

from trip_log.data_models import TransportationType, Trip
from trip_log.statistics import expenses_per_night


class FilterState(BaseModel):
    """Active trip filters."""
    date_range: Optional[Tuple[date, date]] = None
    transportation_types: List[TransportationType] = Field(default_factory=list)
    companions: List[str] = Field(default_factory=list)
    countries: List[str] = Field(default_factory=list)
    expense_range: Optional[Tuple[float, float]] = None
    expense_per_night_range: Optional[Tuple[float, float]] = None

    def is_active(self, bounds: Optional["FilterState"] = None) -> bool:
        """Whether anything is filtered compared to ``bounds`` (the unfiltered state)."""
        bounds = bounds or FilterState()
        return (
            bool(self.transportation_types or self.companions or self.countries)
            or self.date_range != bounds.date_range
            or self.expense_range != bounds.expense_range
            or self.expense_per_night_range != bounds.expense_per_night_range
        )


def default_filters(trips: List[Trip]) -> FilterState:
    """Filters spanning the full range of ``trips`` (nothing excluded)."""
    if not trips:
        return FilterState()
    totals = [t.expenses.total for t in trips]
    per_night = [expenses_per_night(t) for t in trips]
    return FilterState(
        date_range=(min(t.start_date for t in trips), max(t.end_date for t in trips)),
        expense_range=(min(totals), max(totals)),
        expense_per_night_range=(min(per_night), max(per_night)),
    )


def _in_range(value: float, bounds: Optional[Tuple[float, float]]) -> bool:
    if bounds is None:
        return True
    return bounds[0] <= value <= bounds[1]


def trip_matches(trip: Trip, filters: FilterState) -> bool:
    if filters.date_range is not None:
        start, end = filters.date_range
        if trip.end_date < start or trip.start_date > end:
            return False

    if filters.transportation_types:
        modes = {d.transportation_type for d in trip.destinations if d.transportation_type}
        if not any(t in modes for t in filters.transportation_types):
            return False

    if filters.companions:
        if not any(c in trip.companions for c in filters.companions):
            return False

    if filters.countries:
        countries = {d.country for d in trip.destinations}
        if not any(c in countries for c in filters.countries):
            return False

    if not _in_range(trip.expenses.total, filters.expense_range):
        return False
    return _in_range(expenses_per_night(trip), filters.expense_per_night_range)


def filter_trips(trips: List[Trip], filters: FilterState) -> List[Trip]:
    """Trips passing every active filter, in input order."""
    return [trip for trip in trips if trip_matches(trip, filters)]
