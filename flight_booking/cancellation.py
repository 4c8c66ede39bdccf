"""Flight cancellation and its cascade onto reservations and seats."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from loguru import logger
from sqlalchemy.orm import Session

from .database import TransactionalStore
from .errors import FlightNotFoundError
from .inventory import SeatInventory
from .models import Flight, FlightStatus
from .reservations import ReservationLifecycle


@dataclass
class CancellationSummary:
    flight: Flight
    cancelled_reservation_ids: List[int] = field(default_factory=list)
    released_seats: List[str] = field(default_factory=list)
    already_cancelled: bool = False


class FlightCancellation:
    """Cancel a flight, its active reservations and their seat holds as one unit."""

    def __init__(
        self,
        store: TransactionalStore,
        reservations: ReservationLifecycle,
        inventory: SeatInventory,
    ):
        self.store = store
        self.reservations = reservations
        self.inventory = inventory

    def cancel_flight(self, flight_id: int, *, session: Optional[Session] = None) -> CancellationSummary:
        with self.store.transaction(session) as tx:
            flight = tx.get(Flight, flight_id, with_for_update=True)
            if flight is None:
                raise FlightNotFoundError(flight_id)
            if flight.status == FlightStatus.CANCELLED:
                return CancellationSummary(flight=flight, already_cancelled=True)

            bulk = self.reservations.cancel_active_for_flight(tx, flight_id)
            self.inventory.release_seats(flight_id, bulk.seat_numbers, session=tx)
            flight.status = FlightStatus.CANCELLED
            tx.flush()

        logger.info(
            f"Flight {flight_id} CANCELLED: {len(bulk.reservation_ids)} reservations cancelled, "
            f"{len(bulk.seat_numbers)} seats released"
        )
        return CancellationSummary(
            flight=flight,
            cancelled_reservation_ids=bulk.reservation_ids,
            released_seats=bulk.seat_numbers,
        )


__all__ = ["CancellationSummary", "FlightCancellation"]
