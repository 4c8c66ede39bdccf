from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import select

from conftest import taken_seats, ticketed_seats
from flight_booking.errors import BookingError, ConflictError, FlightNotFoundError
from flight_booking.models import (
    FlightStatus,
    Payment,
    Reservation,
    ReservationStatus,
    Ticket,
)

CARD = {"card_type": "VISA", "card_number": "4111111111111111"}


def _statuses(store, flight_id):
    with store.transaction() as session:
        rows = session.execute(
            select(Reservation.id, Reservation.status).where(Reservation.flight_id == flight_id)
        )
        return {reservation_id: status for reservation_id, status in rows}


def test_cancel_flight_cascades_to_reservations_and_seats(service, store, make_flight):
    flight = make_flight()
    first = service.create_reservation(flight.id, 1, ["1A", "1B"])
    second = service.create_reservation(flight.id, 2, ["2A"])
    pending = service.create_reservation(flight.id, 3, ["2B"])
    earlier = service.create_reservation(flight.id, 4, ["3A"])
    service.process_payment(first.id, 1, "CREDIT_CARD", CARD)
    service.process_payment(second.id, 2, "CREDIT_CARD", CARD)
    service.cancel_reservation(earlier.id, 4)

    summary = service.cancel_flight_with_summary(flight.id)

    assert summary.flight.status == FlightStatus.CANCELLED
    assert not summary.already_cancelled
    assert summary.cancelled_reservation_ids == [first.id, second.id, pending.id]
    assert sorted(summary.released_seats) == ["1A", "1B", "2A", "2B"]
    assert set(_statuses(store, flight.id).values()) == {ReservationStatus.CANCELLED}
    assert taken_seats(store, flight.id) == set()
    assert ticketed_seats(store, flight.id) == set()
    with store.transaction() as session:
        assert not any(session.scalars(select(Ticket.active).where(Ticket.flight_id == flight.id)))
        # Payments are history; the cascade leaves them in place.
        assert len(session.scalars(select(Payment)).all()) == 2


def test_cancel_flight_without_reservations(service, store, make_flight):
    flight = make_flight()

    cancelled = service.cancel_flight(flight.id)

    assert cancelled.status == FlightStatus.CANCELLED
    assert taken_seats(store, flight.id) == set()
    assert len(service.get_seat_map(flight.id)) == 10


def test_cancel_unknown_flight(service):
    with pytest.raises(FlightNotFoundError):
        service.cancel_flight(404)


def test_cancelling_a_cancelled_flight_changes_nothing(service, make_flight):
    flight = make_flight()
    reservation = service.create_reservation(flight.id, 1, ["1A"])
    service.cancel_flight(flight.id)

    again = service.cancel_flight_with_summary(flight.id)

    assert again.already_cancelled
    assert again.cancelled_reservation_ids == []
    assert again.released_seats == []
    assert service.get_reservation(reservation.id, 1).status == ReservationStatus.CANCELLED


def test_payment_after_flight_cancellation_is_rejected(service, make_flight):
    flight = make_flight()
    reservation = service.create_reservation(flight.id, 1, ["1A"])
    service.cancel_flight(flight.id)

    with pytest.raises(ConflictError):
        service.process_payment(reservation.id, 1, "CREDIT_CARD", CARD)


def test_other_flights_are_untouched(service, store, make_flight):
    flight = make_flight()
    other = make_flight()
    kept = service.create_reservation(other.id, 1, ["1A"])
    service.create_reservation(flight.id, 1, ["1A"])

    service.cancel_flight(flight.id)

    assert service.get_reservation(kept.id, 1).status == ReservationStatus.PENDING
    assert taken_seats(store, other.id) == {"1A"}


@pytest.mark.parametrize("attempt", range(3))
def test_payment_racing_flight_cancellation(service, store, make_flight, attempt):
    flight = make_flight()
    reservations = [service.create_reservation(flight.id, user, [seat]) for user, seat in
                    [(1, "1A"), (2, "1B"), (3, "1C"), (4, "1D")]]

    def pay(reservation):
        try:
            return service.process_payment(reservation.id, reservation.user_id, "CREDIT_CARD", CARD)
        except BookingError:
            return None

    with ThreadPoolExecutor(max_workers=5) as pool:
        payments = [pool.submit(pay, reservation) for reservation in reservations]
        cancellation = pool.submit(service.cancel_flight_with_summary, flight.id)
        summary = cancellation.result()
        for future in payments:
            future.result()

    assert summary.flight.status == FlightStatus.CANCELLED
    assert set(_statuses(store, flight.id).values()) == {ReservationStatus.CANCELLED}
    assert taken_seats(store, flight.id) == set()
    with store.transaction() as session:
        assert not any(session.scalars(select(Ticket.active).where(Ticket.flight_id == flight.id)))
        paid = set(session.scalars(select(Payment.reservation_id)))
    # Every payment that landed did so before the cascade, which then cancelled it.
    assert paid <= {reservation.id for reservation in reservations}
