"""Utilities to populate the database with a sample catalog and schedule."""
from __future__ import annotations

import random
from datetime import datetime, timedelta
from typing import Dict, Sequence

from sqlalchemy import select

from .booking import BookingService
from .catalog import add_aircraft, add_aircraft_type
from .models import AircraftType, utcnow

AIRPORTS: Sequence[str] = ("GRU", "GIG", "BSB", "CNF", "SSA", "POA", "REC", "FOR")

SAMPLE_AIRCRAFT_TYPES = (
    {"name": "Airbus A320", "seat_capacity": 180, "seat_map": {"rows": 30, "seatsPerRow": 6, "layout": "3-3"}},
    {"name": "Boeing 737-800", "seat_capacity": 194, "seat_map": {"rows": 32, "seatsPerRow": 6, "layout": "3-3"}},
    {"name": "Embraer E195", "seat_capacity": 124, "seat_map": {"rows": 20, "seatsPerRow": 2, "layout": "2-2"}},
)


def _random_departure(days_from_now: int) -> datetime:
    start = utcnow() + timedelta(days=days_from_now)
    hour = random.randint(5, 22)
    minute = random.choice((0, 15, 30, 45))
    return start.replace(hour=hour, minute=minute, second=0, microsecond=0)


def generate_sample_data(service: BookingService, *, flights: int = 6) -> Dict[str, int]:
    """Install the sample aircraft catalog and schedule ``flights`` flights."""

    random.seed(42)
    installed = 0
    with service.store.transaction() as session:
        existing = set(session.scalars(select(AircraftType.name)))
        for index, spec in enumerate(SAMPLE_AIRCRAFT_TYPES):
            if spec["name"] in existing:
                continue
            aircraft_type = add_aircraft_type(session, **spec)
            add_aircraft(session, registration=f"PR-SK{index}", aircraft_type_id=aircraft_type.id)
            installed += 1
        aircraft_ids = [aircraft.id for aircraft_type in session.scalars(select(AircraftType))
                        for aircraft in aircraft_type.aircraft]

    seats = 0
    for index in range(flights):
        origin, destination = random.sample(AIRPORTS, 2)
        departure = _random_departure(random.randint(1, 14))
        flight = service.schedule_flight(
            flight_number=f"SK{1000 + index}",
            origin=origin,
            destination=destination,
            departure_time=departure,
            arrival_time=departure + timedelta(hours=random.randint(1, 5)),
            aircraft_id=random.choice(aircraft_ids),
        )
        seats += len(service.get_seat_map(flight.id))
    return {"aircraft_types": installed, "flights": flights, "seats": seats}


__all__ = ["generate_sample_data"]
