"""Entry points used by controllers, the CLI and admin tooling."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional, Union

from .cancellation import CancellationSummary, FlightCancellation
from .catalog import CatalogLookup
from .database import TransactionalStore
from .inventory import SeatInventory, SeatStatus
from .models import Flight, Payment, PaymentMethod, Reservation, utcnow
from .payments import BarcodeFactory, Clock, PaymentDetails, PaymentProcessor, generate_bank_slip_barcode
from .reservations import ReservationLifecycle
from .scheduling import StopoverSpec, schedule_flight


class BookingService:
    """Wire the booking components around one injected store."""

    def __init__(
        self,
        store: TransactionalStore,
        *,
        clock: Clock = utcnow,
        barcode_factory: BarcodeFactory = generate_bank_slip_barcode,
    ):
        self.store = store
        self.catalog = CatalogLookup(store)
        self.inventory = SeatInventory(store, self.catalog)
        self.reservations = ReservationLifecycle(store, self.inventory)
        self.payments = PaymentProcessor(
            store, self.reservations, clock=clock, barcode_factory=barcode_factory
        )
        self.cancellation = FlightCancellation(store, self.reservations, self.inventory)

    def schedule_flight(
        self,
        *,
        flight_number: str,
        origin: str,
        destination: str,
        departure_time: datetime,
        arrival_time: datetime,
        aircraft_id: int,
        stopovers: Iterable[StopoverSpec] = (),
    ) -> Flight:
        return schedule_flight(
            self.store,
            self.inventory,
            flight_number=flight_number,
            origin=origin,
            destination=destination,
            departure_time=departure_time,
            arrival_time=arrival_time,
            aircraft_id=aircraft_id,
            stopovers=stopovers,
        )

    def create_reservation(self, flight_id: int, user_id: int, seat_numbers: Iterable[str]) -> Reservation:
        return self.reservations.create_reservation(flight_id, user_id, seat_numbers)

    def process_payment(
        self,
        reservation_id: int,
        user_id: int,
        method: Union[str, PaymentMethod],
        fields: Union[PaymentDetails, Mapping[str, Any], None] = None,
    ) -> Payment:
        return self.payments.process_payment(reservation_id, user_id, method, fields)

    def cancel_reservation(
        self, reservation_id: int, actor_id: Optional[int], *, as_admin: bool = False
    ) -> Reservation:
        return self.reservations.cancel_reservation(reservation_id, actor_id, as_admin=as_admin)

    def cancel_flight(self, flight_id: int) -> Flight:
        return self.cancel_flight_with_summary(flight_id).flight

    def cancel_flight_with_summary(self, flight_id: int) -> CancellationSummary:
        return self.cancellation.cancel_flight(flight_id)

    def get_seat_map(self, flight_id: int) -> List[SeatStatus]:
        return self.inventory.get_seat_map(flight_id)

    def get_reservation(
        self, reservation_id: int, user_id: Optional[int], *, as_admin: bool = False
    ) -> Reservation:
        return self.reservations.get_reservation(reservation_id, user_id, as_admin=as_admin)


__all__ = ["BookingService"]
