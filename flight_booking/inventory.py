"""Per-flight seat inventory.

Availability only changes through ``reserve_seats`` and ``release_seats``, and
both are single conditional UPDATE statements, so the database decides which
of two concurrent bookings gets a seat.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Union

from loguru import logger
from sqlalchemy import insert, select, update
from sqlalchemy.orm import Session

from .catalog import CatalogLookup
from .database import TransactionalStore
from .errors import FlightNotFoundError, SeatUnavailableError, ValidationError
from .models import AircraftType, Flight, Seat
from .seat_map import generate_seat_numbers


@dataclass(frozen=True)
class SeatStatus:
    seat_number: str
    is_available: bool

    def as_dict(self) -> dict:
        return {"seat_number": self.seat_number, "is_available": self.is_available}


class SeatInventory:
    def __init__(self, store: TransactionalStore, catalog: Optional[CatalogLookup] = None):
        self.store = store
        self.catalog = catalog or CatalogLookup(store)

    def create_seats_for_flight(
        self,
        flight_id: int,
        aircraft_type: Union[AircraftType, int],
        *,
        session: Optional[Session] = None,
    ) -> List[str]:
        """Insert one available seat per seat number of ``aircraft_type``.

        ``aircraft_type`` may also be an aircraft id, resolved through the catalog.
        """

        with self.store.transaction(session) as tx:
            if not isinstance(aircraft_type, AircraftType):
                aircraft_type = self.catalog.get_aircraft_type(aircraft_type, session=tx)
            seat_numbers = generate_seat_numbers(aircraft_type.seat_capacity, aircraft_type.seat_map)
            tx.execute(
                insert(Seat),
                [
                    {"flight_id": flight_id, "seat_number": seat_number, "is_available": True}
                    for seat_number in seat_numbers
                ],
            )
        logger.debug(f"Created {len(seat_numbers)} seats for flight {flight_id}")
        return seat_numbers

    def reserve_seats(
        self,
        flight_id: int,
        seat_numbers: Iterable[str],
        *,
        session: Optional[Session] = None,
    ) -> List[str]:
        """Mark every requested seat taken, or none of them."""

        if isinstance(seat_numbers, str):
            raise ValidationError("Seat numbers must be given as a list, not a single string.")
        requested = list(dict.fromkeys(seat_numbers))
        if not requested:
            raise ValidationError("At least one seat number is required.")

        with self.store.transaction(session) as tx:
            try:
                with tx.begin_nested():
                    result = tx.execute(
                        update(Seat)
                        .where(
                            Seat.flight_id == flight_id,
                            Seat.seat_number.in_(requested),
                            Seat.is_available.is_(True),
                        )
                        .values(is_available=False)
                        .execution_options(synchronize_session=False)
                    )
                    if result.rowcount != len(requested):
                        raise SeatUnavailableError()
            except SeatUnavailableError:
                # The savepoint is rolled back here, so only foreign holds remain.
                taken = self._unavailable_among(tx, flight_id, requested)
                logger.warning(f"Seat grab rejected on flight {flight_id}: {', '.join(taken)}")
                raise SeatUnavailableError(taken) from None
        return requested

    def release_seats(
        self,
        flight_id: int,
        seat_numbers: Iterable[str],
        *,
        session: Optional[Session] = None,
    ) -> int:
        """Mark the seats available again; already free seats are left alone."""

        seats = list(dict.fromkeys(seat_numbers))
        if not seats:
            return 0
        with self.store.transaction(session) as tx:
            result = tx.execute(
                update(Seat)
                .where(
                    Seat.flight_id == flight_id,
                    Seat.seat_number.in_(seats),
                    Seat.is_available.is_(False),
                )
                .values(is_available=True)
                .execution_options(synchronize_session=False)
            )
        return result.rowcount

    def get_seat_map(self, flight_id: int, *, session: Optional[Session] = None) -> List[SeatStatus]:
        with self.store.transaction(session) as tx:
            if tx.get(Flight, flight_id) is None:
                raise FlightNotFoundError(flight_id)
            rows = tx.execute(
                select(Seat.seat_number, Seat.is_available)
                .where(Seat.flight_id == flight_id)
                .order_by(Seat.id)
            ).all()
        return [SeatStatus(seat_number=row.seat_number, is_available=row.is_available) for row in rows]

    @staticmethod
    def _unavailable_among(session: Session, flight_id: int, seat_numbers: List[str]) -> List[str]:
        free = set(
            session.scalars(
                select(Seat.seat_number).where(
                    Seat.flight_id == flight_id,
                    Seat.seat_number.in_(seat_numbers),
                    Seat.is_available.is_(True),
                )
            )
        )
        return [seat for seat in seat_numbers if seat not in free]


__all__ = ["SeatInventory", "SeatStatus"]
