"""Reservation state machine: PENDING -> CONFIRMED, PENDING/CONFIRMED -> CANCELLED.

Every transition is a compare-and-set on the status column, so of two
transactions racing on one reservation only the first to commit moves it.
Seat holds change in the same transaction as the status they belong to.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from loguru import logger
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .database import TransactionalStore
from .errors import (
    ConflictError,
    FlightNotFoundError,
    ForbiddenError,
    InvalidTransitionError,
    ReservationNotFoundError,
    SeatUnavailableError,
    ValidationError,
)
from .inventory import SeatInventory
from .models import (
    ACTIVE_RESERVATION_STATUSES,
    Flight,
    FlightStatus,
    Reservation,
    ReservationStatus,
    Ticket,
)


@dataclass
class BulkCancellation:
    reservation_ids: List[int] = field(default_factory=list)
    seat_numbers: List[str] = field(default_factory=list)


def _hydrate(reservation: Reservation) -> Reservation:
    # Callers get detached objects, so load what they read while the session is open.
    reservation.tickets
    reservation.payment
    return reservation


def normalize_seat_numbers(seat_numbers: Iterable[str]) -> List[str]:
    if isinstance(seat_numbers, str):
        raise ValidationError("Seat numbers must be given as a list, not a single string.")
    seats = [str(seat).strip().upper() for seat in seat_numbers]
    if not seats or any(not seat for seat in seats):
        raise ValidationError("At least one seat number is required.")
    if len(set(seats)) != len(seats):
        raise ValidationError("The same seat cannot be requested twice.")
    return seats


class ReservationLifecycle:
    def __init__(self, store: TransactionalStore, inventory: SeatInventory):
        self.store = store
        self.inventory = inventory

    def create_reservation(
        self,
        flight_id: int,
        user_id: int,
        seat_numbers: Iterable[str],
        *,
        session: Optional[Session] = None,
    ) -> Reservation:
        """Hold ``seat_numbers`` for ``user_id`` under a new PENDING reservation."""

        seats = normalize_seat_numbers(seat_numbers)
        with self.store.transaction(session) as tx:
            flight = tx.get(Flight, flight_id, with_for_update={"read": True})
            if flight is None:
                raise FlightNotFoundError(flight_id)
            if flight.status != FlightStatus.ACTIVE:
                raise ConflictError(f"Flight with ID {flight_id} is cancelled.")

            self.inventory.reserve_seats(flight_id, seats, session=tx)
            reservation = Reservation(
                user_id=user_id,
                flight_id=flight_id,
                status=ReservationStatus.PENDING,
                tickets=[Ticket(flight_id=flight_id, seat_number=seat, active=True) for seat in seats],
            )
            tx.add(reservation)
            try:
                tx.flush()
            except IntegrityError as exc:
                raise SeatUnavailableError(seats) from exc
            _hydrate(reservation)
        logger.info(f"Reservation {reservation.id} PENDING for user {user_id} on flight {flight_id}: {seats}")
        return reservation

    def get_reservation(
        self,
        reservation_id: int,
        user_id: Optional[int] = None,
        *,
        as_admin: bool = False,
        session: Optional[Session] = None,
    ) -> Reservation:
        with self.store.transaction(session) as tx:
            reservation = self._load_owned(tx, reservation_id, user_id, as_admin=as_admin)
            return _hydrate(reservation)

    def confirm(self, session: Session, reservation: Reservation) -> Reservation:
        """Move a PENDING reservation to CONFIRMED; seats stay held."""

        result = session.execute(
            update(Reservation)
            .where(
                Reservation.id == reservation.id,
                Reservation.status == ReservationStatus.PENDING,
            )
            .values(status=ReservationStatus.CONFIRMED)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            session.refresh(reservation)
            raise InvalidTransitionError(
                f"Reservation {reservation.id} is {reservation.status.value} and cannot be confirmed."
            )
        session.refresh(reservation)
        logger.info(f"Reservation {reservation.id} CONFIRMED")
        return reservation

    def cancel_reservation(
        self,
        reservation_id: int,
        actor_id: Optional[int],
        *,
        as_admin: bool = False,
        session: Optional[Session] = None,
    ) -> Reservation:
        """Cancel a reservation and free its seats. Cancelling twice is a no-op."""

        with self.store.transaction(session) as tx:
            reservation = self._load_owned(tx, reservation_id, actor_id, as_admin=as_admin, lock=True)
            if reservation.status == ReservationStatus.CANCELLED:
                logger.debug(f"Reservation {reservation_id} already cancelled")
                return _hydrate(reservation)
            self._cancel(tx, reservation)
            return _hydrate(reservation)

    def cancel_active_for_flight(self, session: Session, flight_id: int) -> BulkCancellation:
        """Cancel every PENDING or CONFIRMED reservation on ``flight_id``.

        Returns the ticketed seats; the caller frees them in the same transaction.
        """

        reservation_ids = list(
            session.scalars(
                select(Reservation.id)
                .where(
                    Reservation.flight_id == flight_id,
                    Reservation.status.in_(ACTIVE_RESERVATION_STATUSES),
                )
                .order_by(Reservation.id)
                .with_for_update()
            )
        )
        if not reservation_ids:
            return BulkCancellation()

        seats = list(
            session.scalars(
                select(Ticket.seat_number).where(
                    Ticket.reservation_id.in_(reservation_ids),
                    Ticket.active.is_(True),
                )
            )
        )
        session.execute(
            update(Reservation)
            .where(
                Reservation.id.in_(reservation_ids),
                Reservation.status.in_(ACTIVE_RESERVATION_STATUSES),
            )
            .values(status=ReservationStatus.CANCELLED)
            .execution_options(synchronize_session="fetch")
        )
        self._deactivate_tickets(session, reservation_ids)
        return BulkCancellation(reservation_ids=reservation_ids, seat_numbers=seats)

    def _cancel(self, session: Session, reservation: Reservation) -> None:
        result = session.execute(
            update(Reservation)
            .where(
                Reservation.id == reservation.id,
                Reservation.status.in_(ACTIVE_RESERVATION_STATUSES),
            )
            .values(status=ReservationStatus.CANCELLED)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            # Someone else cancelled it first; their transaction freed the seats.
            session.refresh(reservation)
            return
        seats = [ticket.seat_number for ticket in reservation.tickets if ticket.active]
        self._deactivate_tickets(session, [reservation.id])
        self.inventory.release_seats(reservation.flight_id, seats, session=session)
        session.refresh(reservation)
        logger.info(f"Reservation {reservation.id} CANCELLED, released {seats}")

    @staticmethod
    def _deactivate_tickets(session: Session, reservation_ids: List[int]) -> None:
        session.execute(
            update(Ticket)
            .where(Ticket.reservation_id.in_(reservation_ids), Ticket.active.is_(True))
            .values(active=False)
            .execution_options(synchronize_session="fetch")
        )

    @staticmethod
    def _load_owned(
        session: Session,
        reservation_id: int,
        user_id: Optional[int],
        *,
        as_admin: bool = False,
        lock: bool = False,
    ) -> Reservation:
        reservation = session.get(Reservation, reservation_id, with_for_update=lock or None)
        if reservation is None:
            raise ReservationNotFoundError(reservation_id)
        if not as_admin and reservation.user_id != user_id:
            raise ForbiddenError("You are not authorized to access this reservation.")
        return reservation


__all__ = ["BulkCancellation", "ReservationLifecycle", "normalize_seat_numbers"]
