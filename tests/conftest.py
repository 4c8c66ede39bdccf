from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

import pytest
from sqlalchemy import select

from flight_booking.booking import BookingService
from flight_booking.catalog import add_aircraft, add_aircraft_type
from flight_booking.database import TransactionalStore
from flight_booking.models import Reservation, ReservationStatus, Seat, Ticket


class FixedClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def store(tmp_path):
    store = TransactionalStore.from_url(f"sqlite+pysqlite:///{tmp_path / 'booking.db'}")
    yield store
    store.dispose()


@pytest.fixture
def clock():
    return FixedClock(datetime(2030, 5, 1, 12, 0, 0))


@pytest.fixture
def service(store, clock):
    return BookingService(store, clock=clock, barcode_factory=lambda now: "0" * 23)


@pytest.fixture
def make_flight(service, clock):
    counter = {"value": 0}

    def _make_flight(
        *,
        capacity: int = 10,
        seat_map: Optional[dict] = None,
        departs_in: timedelta = timedelta(days=10),
    ):
        counter["value"] += 1
        index = counter["value"]
        with service.store.transaction() as session:
            aircraft_type = add_aircraft_type(
                session,
                name=f"Test type {index}",
                seat_capacity=capacity,
                seat_map=seat_map if seat_map is not None else {"layout": "2-2"},
            )
            aircraft = add_aircraft(session, registration=f"PR-T{index:02d}", aircraft_type_id=aircraft_type.id)
        departure = clock.now + departs_in
        return service.schedule_flight(
            flight_number=f"SK{100 + index}",
            origin="GRU",
            destination="GIG",
            departure_time=departure,
            arrival_time=departure + timedelta(hours=2),
            aircraft_id=aircraft.id,
        )

    return _make_flight


def taken_seats(store: TransactionalStore, flight_id: int) -> set:
    with store.transaction() as session:
        return set(
            session.scalars(
                select(Seat.seat_number).where(Seat.flight_id == flight_id, Seat.is_available.is_(False))
            )
        )


def ticketed_seats(store: TransactionalStore, flight_id: int) -> set:
    """Seats held by PENDING or CONFIRMED reservations of ``flight_id``."""

    with store.transaction() as session:
        return set(
            session.scalars(
                select(Ticket.seat_number)
                .join(Reservation)
                .where(
                    Reservation.flight_id == flight_id,
                    Reservation.status.in_([ReservationStatus.PENDING, ReservationStatus.CONFIRMED]),
                )
            )
        )
