"""
JSON-file trip repository.

Stores every trip in a single JSON document (a list of serialized Trip
objects) and rewrites the file on each change.
"""

import json
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from pydantic import TypeAdapter

from trip_log.data_models import Trip, TripInput

logger = logging.getLogger(__name__)

_TRIP_LIST = TypeAdapter(List[Trip])


class TripNotFoundError(LookupError):
    """Raised when updating a trip id that does not exist."""


class TripExistsError(ValueError):
    """Raised when creating a trip whose id is already stored."""


class TripRepository:
    """
    Create/read/update/delete access to stored trips.

    Usage:
        repo = TripRepository('trips.json')
        trip = repo.create_trip(TripInput(...))
        repo.list_trips()

    Args:
        path: JSON file holding the trips (created on first write)
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._trips: Optional[Dict[str, Trip]] = None

    # -------------------------------------------------------------------------
    # Storage
    # -------------------------------------------------------------------------

    def _load(self) -> Dict[str, Trip]:
        if self._trips is not None:
            return self._trips

        if not self.path.exists():
            self._trips = {}
            return self._trips

        with open(self.path, 'r', encoding='utf-8') as f:
            raw = f.read()
        trips = _TRIP_LIST.validate_json(raw) if raw.strip() else []
        self._trips = {trip.id: trip for trip in trips}
        logger.debug(f"Loaded {len(self._trips)} trips from {self.path}")
        return self._trips

    def _save(self) -> None:
        trips = list(self._load().values())
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, 'w', encoding='utf-8') as f:
            json.dump(_TRIP_LIST.dump_python(trips, mode='json'), f, indent=2, ensure_ascii=False)
        logger.debug(f"Saved {len(trips)} trips to {self.path}")

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def list_trips(self) -> List[Trip]:
        """All trips, most recent start date first."""
        return sorted(self._load().values(), key=lambda t: t.start_date, reverse=True)

    def get_trip(self, trip_id: str) -> Optional[Trip]:
        return self._load().get(trip_id)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def create_trip(self, trip_input: TripInput) -> Trip:
        """Store a new trip (a fresh id unless the input carries one).

        Raises:
            TripExistsError: If the input's id is already stored
        """
        trips = self._load()
        if trip_input.id and trip_input.id in trips:
            raise TripExistsError(f"Trip already exists: {trip_input.id}")
        trip = trip_input.to_trip()
        trips[trip.id] = trip
        self._save()
        logger.info(f"Created trip {trip.name!r} ({trip.id})")
        return trip

    def update_trip(self, trip_id: str, trip_input: TripInput) -> Trip:
        """Replace a stored trip's fields and destinations.

        Raises:
            TripNotFoundError: If no trip has ``trip_id``
        """
        trips = self._load()
        if trip_id not in trips:
            raise TripNotFoundError(f"Trip not found: {trip_id}")
        trip = trip_input.to_trip(trip_id)
        trips[trip_id] = trip
        self._save()
        logger.info(f"Updated trip {trip.name!r} ({trip_id})")
        return trip

    def delete_trip(self, trip_id: str) -> None:
        """Remove a trip; unknown ids are ignored."""
        trips = self._load()
        if trips.pop(trip_id, None) is not None:
            self._save()
            logger.info(f"Deleted trip {trip_id}")

    def import_trips(self, trip_inputs: Iterable[TripInput]) -> int:
        """Upsert trips: inputs with a known id update, the rest are created.

        Returns:
            Number of trips imported
        """
        trips = self._load()
        count = 0
        for trip_input in trip_inputs:
            if trip_input.id and trip_input.id in trips:
                trip = trip_input.to_trip(trip_input.id)
            else:
                trip = trip_input.to_trip()
            trips[trip.id] = trip
            count += 1
        if count:
            self._save()
        logger.info(f"Imported {count} trips into {self.path}")
        return count

    def __len__(self) -> int:
        return len(self._load())
