"""
Data models for recorded trips.

Pydantic models for trips, their ordered destinations and their expenses.
The first destination of a trip is its home city (usually also the last).
"""

import uuid
from datetime import date
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from projection import GeoPoint
from route_geometry import TransportMode

# Transport modes as stored on destinations; None means "not recorded"
TransportationType = TransportMode


def new_id() -> str:
    return uuid.uuid4().hex


class Expenses(BaseModel):
    """Money spent on a trip, by category (euros)."""
    hotel: float = Field(default=0.0, ge=0.0)
    food: float = Field(default=0.0, ge=0.0)
    transportation: float = Field(default=0.0, ge=0.0)
    entry_fees: float = Field(default=0.0, ge=0.0)
    other: float = Field(default=0.0, ge=0.0)

    @property
    def total(self) -> float:
        return self.hotel + self.food + self.transportation + self.entry_fees + self.other


class DestinationInput(BaseModel):
    """A destination as entered in the admin form or an import file."""
    city: str = Field(min_length=1)
    country: str = Field(min_length=1)
    latitude: float = Field(ge=-90.0, le=90.0, description="WGS84 latitude in degrees")
    longitude: float = Field(ge=-180.0, le=180.0, description="WGS84 longitude in degrees")
    transportation_type: Optional[TransportationType] = Field(
        default=None, description="How this destination was reached"
    )


class Destination(DestinationInput):
    """A stored destination with its position in the trip."""
    id: str = Field(default_factory=new_id)
    order: int = Field(default=0, ge=0)

    @property
    def point(self) -> GeoPoint:
        return GeoPoint(self.latitude, self.longitude)


class _TripFields(BaseModel):
    name: str = Field(min_length=1)
    description: str = ""
    start_date: date
    end_date: date
    companions: List[str] = Field(default_factory=list)
    expenses: Expenses = Field(default_factory=Expenses)

    @model_validator(mode="after")
    def _check_dates(self):
        if self.end_date < self.start_date:
            raise ValueError(f"end_date {self.end_date} is before start_date {self.start_date}")
        return self


class Trip(_TripFields):
    """
    A recorded trip.

    Destinations are kept sorted by ``order``.
    """
    id: str = Field(default_factory=new_id)
    destinations: List[Destination] = Field(default_factory=list)

    @model_validator(mode="after")
    def _sort_destinations(self) -> "Trip":
        self.destinations.sort(key=lambda d: d.order)
        return self

    @property
    def points(self) -> List[GeoPoint]:
        return [d.point for d in self.destinations]

    @property
    def duration_days(self) -> int:
        return (self.end_date - self.start_date).days

    @property
    def transport_modes(self) -> List[TransportationType]:
        """Distinct recorded transport modes, in route order."""
        modes = []
        for dest in self.destinations:
            mode = dest.transportation_type
            if mode is not None and mode != TransportationType.NONE and mode not in modes:
                modes.append(mode)
        return modes


class TripInput(_TripFields):
    """Trip fields as submitted for create, update or import."""
    id: Optional[str] = None
    destinations: List[DestinationInput] = Field(default_factory=list)

    def to_trip(self, trip_id: Optional[str] = None) -> Trip:
        """Build a Trip, numbering destinations in submission order."""
        return Trip(
            id=trip_id or self.id or new_id(),
            name=self.name,
            description=self.description,
            start_date=self.start_date,
            end_date=self.end_date,
            companions=list(self.companions),
            expenses=self.expenses.model_copy(),
            destinations=[
                Destination(order=i, **dest.model_dump())
                for i, dest in enumerate(self.destinations)
            ],
        )
