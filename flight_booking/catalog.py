"""Aircraft catalog access used by scheduling and seat inventory."""
from __future__ import annotations

from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from .database import TransactionalStore
from .errors import AircraftNotFoundError
from .models import Aircraft, AircraftType
from .seat_map import generate_seat_numbers


def add_aircraft_type(
    session: Session,
    *,
    name: str,
    seat_capacity: int,
    seat_map: Optional[Dict[str, Any]] = None,
) -> AircraftType:
    """Create an aircraft type after checking its seat map can seat everyone."""

    generate_seat_numbers(seat_capacity, seat_map)
    aircraft_type = AircraftType(name=name, seat_capacity=seat_capacity, seat_map=seat_map)
    session.add(aircraft_type)
    session.flush()
    return aircraft_type


def add_aircraft(session: Session, *, registration: str, aircraft_type_id: int) -> Aircraft:
    aircraft = Aircraft(registration=registration, aircraft_type_id=aircraft_type_id)
    session.add(aircraft)
    session.flush()
    return aircraft


class CatalogLookup:
    """Read-only lookups against the aircraft catalog."""

    def __init__(self, store: TransactionalStore):
        self.store = store

    def get_aircraft_type(self, aircraft_id: int, *, session: Optional[Session] = None) -> AircraftType:
        with self.store.transaction(session) as tx:
            aircraft = tx.get(Aircraft, aircraft_id)
            if aircraft is None:
                raise AircraftNotFoundError(aircraft_id)
            return aircraft.aircraft_type


__all__ = ["CatalogLookup", "add_aircraft", "add_aircraft_type"]
