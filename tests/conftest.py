"""
Pytest configuration and fixtures for travel map tests.

Provides reusable fixtures for sample trips (all starting and ending in
Milan), a viewport and a temporary trip store.
"""

import pytest
from datetime import date
from typing import List

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from trip_log import Expenses, DestinationInput, Trip, TripInput, TripRepository
from viewport import Viewport, ViewportConfig

MILAN = dict(city="Milan", country="Italy", latitude=45.4642, longitude=9.19)


def make_trip_input(name: str, start: date, end: date, stops: List[dict],
                    companions: List[str] = None, trip_id: str = None, **expenses) -> TripInput:
    """Build a round trip from Milan through ``stops``.

    Each stop dict holds city/country/latitude/longitude and an optional
    transportation_type; the return leg reuses the last stop's mode.
    """
    destinations = [DestinationInput(**MILAN)]
    destinations += [DestinationInput(**stop) for stop in stops]
    back = stops[-1].get("transportation_type") if stops else None
    destinations.append(DestinationInput(**MILAN, transportation_type=back))
    return TripInput(
        id=trip_id,
        name=name,
        start_date=start,
        end_date=end,
        companions=companions or [],
        expenses=Expenses(**expenses),
        destinations=destinations,
    )


@pytest.fixture
def paris_input() -> TripInput:
    """Three-night plane trip to Paris, 650 total."""
    return make_trip_input(
        "Paris weekend", date(2024, 5, 10), date(2024, 5, 13),
        [dict(city="Paris", country="France", latitude=48.8566, longitude=2.3522,
              transportation_type="plane")],
        companions=["Anna"], trip_id="paris",
        hotel=300, food=150, transportation=200,
    )


@pytest.fixture
def greece_input() -> TripInput:
    """Ten-night island hop: plane to Athens, boat to Santorini, 1950 total."""
    return make_trip_input(
        "Greek islands", date(2023, 8, 1), date(2023, 8, 11),
        [
            dict(city="Athens", country="Greece", latitude=37.9838, longitude=23.7275,
                 transportation_type="plane"),
            dict(city="Santorini", country="Greece", latitude=36.3932, longitude=25.4615,
                 transportation_type="boat"),
        ],
        companions=["Anna", "Marco"], trip_id="greece",
        hotel=900, food=400, transportation=600, entry_fees=50,
    )


@pytest.fixture
def turin_input() -> TripInput:
    """Same-day train trip to Turin, 70 total."""
    return make_trip_input(
        "Day in Turin", date(2024, 2, 3), date(2024, 2, 3),
        [dict(city="Turin", country="Italy", latitude=45.0703, longitude=7.6869,
              transportation_type="train")],
        trip_id="turin",
        food=40, transportation=30,
    )


@pytest.fixture
def sample_trips(paris_input, greece_input, turin_input) -> List[Trip]:
    """Paris, Greece and Turin trips, in that order."""
    return [paris_input.to_trip(), greece_input.to_trip(), turin_input.to_trip()]


@pytest.fixture
def viewport() -> Viewport:
    """Default 1200x800 viewport centered on Europe at zoom 5."""
    return Viewport(ViewportConfig(), 1200, 800)


@pytest.fixture
def repo_path(tmp_path):
    """Path for a fresh trip store."""
    return tmp_path / "trips.json"


@pytest.fixture
def repo(repo_path) -> TripRepository:
    return TripRepository(repo_path)
