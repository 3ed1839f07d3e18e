"""
Aggregate statistics over a list of trips.

Everything here is computed from an already-loaded trip list; nothing touches
storage. Visited cities and countries skip the home city (the first
destination) and count at most once per trip.

Alongside the dashboard figures sit the summary-page series (spending per
trip in date order with a least-squares trend, category breakdowns) and the
per-city view.
"""

import math
from datetime import date
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from trip_log.data_models import Destination, Expenses, Trip


class CompanionCount(BaseModel):
    name: str
    count: int


class CityCount(BaseModel):
    city: str
    country: str
    count: int


class CountryCount(BaseModel):
    country: str
    count: int


class TripStatistics(BaseModel):
    """Summary figures for the statistics dashboard."""
    most_expensive_trip: Optional[Trip] = None
    most_expensive_per_night: Optional[Trip] = None
    cheapest_trip: Optional[Trip] = None
    cheapest_per_night: Optional[Trip] = None
    longest_trip: Optional[Trip] = None
    shortest_trip: Optional[Trip] = None
    favorite_companions: List[CompanionCount] = Field(default_factory=list)
    most_visited_cities: List[CityCount] = Field(default_factory=list)
    most_visited_countries: List[CountryCount] = Field(default_factory=list)
    total_trips: int = 0
    total_expenses: float = 0.0
    average_expenses: float = 0.0
    average_per_night: float = 0.0


def total_expenses(expenses: Expenses) -> float:
    return expenses.total


def nights(trip: Trip) -> int:
    """Nights spent away, at least one."""
    return max(1, math.ceil((trip.end_date - trip.start_date).days))


def expenses_per_night(trip: Trip) -> float:
    return trip.expenses.total / nights(trip)


def home_city(destinations: List[Destination]) -> Optional[str]:
    """The trip's home city (its first destination)."""
    if not destinations:
        return None
    return destinations[0].city or None


def destinations_excluding_home(destinations: List[Destination]) -> List[Destination]:
    """Destinations other than the home city, wherever it appears in the route."""
    home = home_city(destinations)
    if home is None:
        return list(destinations)
    return [d for d in destinations if d.city != home]


def unique_companions(trips: List[Trip]) -> List[str]:
    return sorted({c for trip in trips for c in trip.companions})


def unique_countries(trips: List[Trip]) -> List[str]:
    return sorted({d.country for trip in trips for d in trip.destinations})


def _extremes(trips: List[Trip], key) -> Tuple[Trip, Trip]:
    """(max, min) by ``key``; ties keep the earliest trip."""
    best = worst = trips[0]
    best_value = worst_value = key(trips[0])
    for trip in trips[1:]:
        value = key(trip)
        if value > best_value:
            best, best_value = trip, value
        if value < worst_value:
            worst, worst_value = trip, value
    return best, worst


def calculate_statistics(trips: List[Trip]) -> TripStatistics:
    """Compute the dashboard statistics for ``trips``.

    Args:
        trips: Trips to aggregate (order decides ties)

    Returns:
        TripStatistics; an empty input gives the zero record
    """
    if not trips:
        return TripStatistics()

    most_expensive, cheapest = _extremes(trips, lambda t: t.expenses.total)
    most_per_night, cheapest_per_night = _extremes(trips, expenses_per_night)
    longest, shortest = _extremes(trips, lambda t: t.end_date - t.start_date)

    companion_counts: Dict[str, int] = {}
    city_counts: Dict[Tuple[str, str], int] = {}
    country_counts: Dict[str, int] = {}

    total = 0.0
    total_per_night = 0.0

    for trip in trips:
        total += trip.expenses.total
        total_per_night += expenses_per_night(trip)

        for companion in trip.companions:
            companion_counts[companion] = companion_counts.get(companion, 0) + 1

        visited = destinations_excluding_home(trip.destinations)
        for key in dict.fromkeys((d.city, d.country) for d in visited):
            city_counts[key] = city_counts.get(key, 0) + 1
        for country in dict.fromkeys(d.country for d in visited):
            country_counts[country] = country_counts.get(country, 0) + 1

    # sorted() is stable, so equal counts keep first-seen order
    favorite_companions = [
        CompanionCount(name=name, count=count)
        for name, count in sorted(companion_counts.items(), key=lambda kv: -kv[1])
    ]
    most_visited_cities = [
        CityCount(city=city, country=country, count=count)
        for (city, country), count in sorted(city_counts.items(), key=lambda kv: -kv[1])
    ]
    most_visited_countries = [
        CountryCount(country=country, count=count)
        for country, count in sorted(country_counts.items(), key=lambda kv: -kv[1])
    ]

    return TripStatistics(
        most_expensive_trip=most_expensive,
        most_expensive_per_night=most_per_night,
        cheapest_trip=cheapest,
        cheapest_per_night=cheapest_per_night,
        longest_trip=longest,
        shortest_trip=shortest,
        favorite_companions=favorite_companions,
        most_visited_cities=most_visited_cities,
        most_visited_countries=most_visited_countries,
        total_trips=len(trips),
        total_expenses=total,
        average_expenses=total / len(trips),
        average_per_night=total_per_night / len(trips),
    )


# =============================================================================
# Expense breakdown
# =============================================================================

# (field, label) in display order; ties in amount keep this order
EXPENSE_CATEGORIES = (
    ("hotel", "Accommodation"),
    ("food", "Food & Dining"),
    ("transportation", "Transportation"),
    ("entry_fees", "Entry Fees"),
    ("other", "Other"),
)


class CategoryShare(BaseModel):
    category: str
    label: str
    amount: float
    percentage: float = Field(description="Share of the total, 0-100")


def expense_breakdown(expenses: Expenses, skip_empty: bool = False) -> List[CategoryShare]:
    """Categories sorted by amount, largest first, with their share of the total."""
    total = expenses.total
    shares = [
        CategoryShare(
            category=field,
            label=label,
            amount=getattr(expenses, field),
            percentage=getattr(expenses, field) / total * 100 if total > 0 else 0.0,
        )
        for field, label in EXPENSE_CATEGORIES
    ]
    if skip_empty:
        shares = [s for s in shares if s.amount > 0]
    return sorted(shares, key=lambda s: -s.amount)


def combined_expenses(trips: List[Trip]) -> Expenses:
    """Category totals summed over every trip."""
    return Expenses(**{
        field: sum(getattr(t.expenses, field) for t in trips)
        for field, _ in EXPENSE_CATEGORIES
    })


def overall_breakdown(trips: List[Trip]) -> List[CategoryShare]:
    """Breakdown of all spending; categories nobody spent on are left out."""
    return expense_breakdown(combined_expenses(trips), skip_empty=True)


class TripBreakdown(BaseModel):
    trip_id: str
    name: str
    start_date: date
    expenses: Expenses


def breakdown_by_trip(trips: List[Trip], per_night: bool = False) -> List[TripBreakdown]:
    """Each trip's categories in start-date order, optionally divided by nights."""
    rows = []
    for trip in sorted(trips, key=lambda t: t.start_date):
        divisor = nights(trip) if per_night else 1
        rows.append(TripBreakdown(
            trip_id=trip.id,
            name=trip.name,
            start_date=trip.start_date,
            expenses=Expenses(**{
                field: getattr(trip.expenses, field) / divisor
                for field, _ in EXPENSE_CATEGORIES
            }),
        ))
    return rows


# =============================================================================
# Expenses over time
# =============================================================================

class ExpensePoint(BaseModel):
    trip_id: str
    name: str
    start_date: date
    total: float
    per_night: float


class TrendLine(BaseModel):
    """Least-squares line through the series, x being the position in it."""
    slope: float
    intercept: float
    values: List[float]


def expenses_over_time(trips: List[Trip]) -> List[ExpensePoint]:
    """One point per trip, oldest first."""
    return [
        ExpensePoint(
            trip_id=trip.id,
            name=trip.name,
            start_date=trip.start_date,
            total=trip.expenses.total,
            per_night=expenses_per_night(trip),
        )
        for trip in sorted(trips, key=lambda t: t.start_date)
    ]


def expense_trend(points: List[ExpensePoint], per_night: bool = False) -> Optional[TrendLine]:
    """Fit y = slope * index + intercept over the series.

    A single point gives a flat line through it. No points gives None.
    """
    if not points:
        return None
    ys = [p.per_night if per_night else p.total for p in points]
    n = len(ys)
    sum_x = sum(range(n))
    sum_y = sum(ys)
    sum_xy = sum(x * y for x, y in enumerate(ys))
    sum_xx = sum(x * x for x in range(n))

    denominator = n * sum_xx - sum_x * sum_x
    slope = (n * sum_xy - sum_x * sum_y) / denominator if denominator else 0.0
    intercept = (sum_y - slope * sum_x) / n
    return TrendLine(
        slope=slope,
        intercept=intercept,
        values=[slope * x + intercept for x in range(n)],
    )


# =============================================================================
# Cities
# =============================================================================

class CitySummary(BaseModel):
    city: str
    country: str
    trips: List[Trip]
    total_trips: int
    total_nights: int
    total_expenses: float


def trips_by_city(trips: List[Trip], city: str) -> List[Trip]:
    """Trips with a destination in ``city`` (case-insensitive), in input order."""
    wanted = city.casefold()
    return [t for t in trips if any(d.city.casefold() == wanted for d in t.destinations)]


def city_summary(trips: List[Trip], city: str) -> Optional[CitySummary]:
    """Trips through ``city`` with their combined nights and spending.

    The country and spelling come from the first matching destination.
    Returns None when no trip visited the city.
    """
    visits = trips_by_city(trips, city)
    if not visits:
        return None
    wanted = city.casefold()
    match = next(d for d in visits[0].destinations if d.city.casefold() == wanted)
    return CitySummary(
        city=match.city,
        country=match.country,
        trips=visits,
        total_trips=len(visits),
        total_nights=sum(nights(t) for t in visits),
        total_expenses=sum(t.expenses.total for t in visits),
    )
