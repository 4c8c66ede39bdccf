"""Flight creation: the flight row, its seats and its stopovers in one unit."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from loguru import logger
from sqlalchemy.orm import Session

from .database import TransactionalStore
from .errors import ValidationError
from .inventory import SeatInventory
from .models import Flight, FlightStatus, Stopover


@dataclass
class StopoverSpec:
    airport_code: str
    sequence: int
    arrival_time: datetime
    departure_time: datetime


def validate_schedule(
    *,
    origin: str,
    destination: str,
    departure_time: datetime,
    arrival_time: datetime,
    stopovers: Sequence[StopoverSpec] = (),
) -> None:
    if departure_time >= arrival_time:
        raise ValidationError("Departure must be before arrival.")
    if origin.upper() == destination.upper():
        raise ValidationError("Origin and destination must differ.")
    seen = set()
    for stopover in stopovers:
        if stopover.sequence < 1:
            raise ValidationError("Stopover sequence numbers must be positive.")
        if stopover.sequence in seen:
            raise ValidationError(f"Duplicate stopover sequence {stopover.sequence}.")
        seen.add(stopover.sequence)
        if stopover.arrival_time > stopover.departure_time:
            raise ValidationError(f"Stopover {stopover.sequence} departs before it arrives.")
        if not (departure_time <= stopover.arrival_time and stopover.departure_time <= arrival_time):
            raise ValidationError(f"Stopover {stopover.sequence} falls outside the flight window.")
    ordered = sorted(stopovers, key=lambda stop: stop.sequence)
    for previous, current in zip(ordered, ordered[1:]):
        if current.arrival_time < previous.departure_time:
            raise ValidationError(f"Stopover {current.sequence} overlaps stopover {previous.sequence}.")


def schedule_flight(
    store: TransactionalStore,
    inventory: SeatInventory,
    *,
    flight_number: str,
    origin: str,
    destination: str,
    departure_time: datetime,
    arrival_time: datetime,
    aircraft_id: int,
    stopovers: Iterable[StopoverSpec] = (),
    session: Optional[Session] = None,
) -> Flight:
    """Create an ACTIVE flight with its full seat inventory."""

    stopover_list: List[StopoverSpec] = list(stopovers)
    validate_schedule(
        origin=origin,
        destination=destination,
        departure_time=departure_time,
        arrival_time=arrival_time,
        stopovers=stopover_list,
    )
    with store.transaction(session) as tx:
        aircraft_type = inventory.catalog.get_aircraft_type(aircraft_id, session=tx)
        flight = Flight(
            flight_number=flight_number,
            origin=origin.upper(),
            destination=destination.upper(),
            departure_time=departure_time,
            arrival_time=arrival_time,
            aircraft_id=aircraft_id,
            status=FlightStatus.ACTIVE,
        )
        tx.add(flight)
        tx.flush()
        inventory.create_seats_for_flight(flight.id, aircraft_type, session=tx)
        for stopover in stopover_list:
            tx.add(
                Stopover(
                    flight_id=flight.id,
                    airport_code=stopover.airport_code.upper(),
                    sequence=stopover.sequence,
                    arrival_time=stopover.arrival_time,
                    departure_time=stopover.departure_time,
                )
            )
        tx.flush()
    logger.info(f"Scheduled flight {flight_number} ({flight.origin}->{flight.destination}) as #{flight.id}")
    return flight


__all__ = ["StopoverSpec", "schedule_flight", "validate_schedule"]
