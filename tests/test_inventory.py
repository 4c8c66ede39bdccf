from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest
from sqlalchemy import func, select

from conftest import taken_seats
from flight_booking.errors import (
    AircraftNotFoundError,
    FlightNotFoundError,
    SeatUnavailableError,
    ValidationError,
)
from flight_booking.models import Flight, Seat, Stopover
from flight_booking.scheduling import StopoverSpec
from flight_booking.seat_map import generate_seat_numbers


def test_scheduling_creates_the_full_seat_inventory(service, make_flight):
    flight = make_flight(capacity=10, seat_map={"layout": "2-2"})

    seat_map = service.get_seat_map(flight.id)

    assert [seat.seat_number for seat in seat_map] == generate_seat_numbers(10, {"layout": "2-2"})
    assert all(seat.is_available for seat in seat_map)
    assert seat_map[0].as_dict() == {"seat_number": "1A", "is_available": True}


def test_reserve_seats_is_all_or_nothing(service, store, make_flight):
    flight = make_flight()
    inventory = service.inventory

    assert inventory.reserve_seats(flight.id, ["1A", "1B"]) == ["1A", "1B"]

    with pytest.raises(SeatUnavailableError) as excinfo:
        inventory.reserve_seats(flight.id, ["1B", "1C"])

    assert excinfo.value.seat_numbers == ("1B",)
    assert taken_seats(store, flight.id) == {"1A", "1B"}


def test_reserve_unknown_seat_fails_without_side_effects(service, store, make_flight):
    flight = make_flight()

    with pytest.raises(SeatUnavailableError) as excinfo:
        service.inventory.reserve_seats(flight.id, ["2A", "99Z"])

    assert excinfo.value.seat_numbers == ("99Z",)
    assert taken_seats(store, flight.id) == set()


def test_reserve_requires_at_least_one_seat(service, make_flight):
    flight = make_flight()
    with pytest.raises(ValidationError):
        service.inventory.reserve_seats(flight.id, [])


def test_release_is_idempotent(service, store, make_flight):
    flight = make_flight()
    service.inventory.reserve_seats(flight.id, ["1A", "1B"])

    assert service.inventory.release_seats(flight.id, ["1A", "1C"]) == 1
    assert service.inventory.release_seats(flight.id, ["1A"]) == 0
    assert service.inventory.release_seats(flight.id, []) == 0
    assert taken_seats(store, flight.id) == {"1B"}


def test_seat_map_for_unknown_flight(service):
    with pytest.raises(FlightNotFoundError):
        service.get_seat_map(404)


def test_concurrent_disjoint_reservations_both_succeed(service, store, make_flight):
    flight = make_flight(capacity=12, seat_map={"layout": "3-3"})
    requests = [["1A", "1B"], ["1C", "1D"], ["2A"], ["2B", "2C", "2D"]]

    with ThreadPoolExecutor(max_workers=4) as pool:
        results = list(pool.map(lambda seats: service.inventory.reserve_seats(flight.id, seats), requests))

    assert results == requests
    assert taken_seats(store, flight.id) == {seat for seats in requests for seat in seats}


def test_unknown_aircraft_creates_nothing(service, store, clock):
    with pytest.raises(AircraftNotFoundError):
        service.schedule_flight(
            flight_number="SK999",
            origin="GRU",
            destination="POA",
            departure_time=clock.now,
            arrival_time=clock.now + timedelta(hours=2),
            aircraft_id=12345,
        )

    with store.transaction() as session:
        assert session.scalar(select(func.count()).select_from(Flight)) == 0
        assert session.scalar(select(func.count()).select_from(Seat)) == 0


def test_schedule_validation(service, make_flight, clock):
    flight = make_flight()
    aircraft_id = flight.aircraft_id

    with pytest.raises(ValidationError):
        service.schedule_flight(
            flight_number="SK901",
            origin="GRU",
            destination="POA",
            departure_time=clock.now,
            arrival_time=clock.now,
            aircraft_id=aircraft_id,
        )
    with pytest.raises(ValidationError):
        service.schedule_flight(
            flight_number="SK902",
            origin="GRU",
            destination="gru",
            departure_time=clock.now,
            arrival_time=clock.now + timedelta(hours=1),
            aircraft_id=aircraft_id,
        )
    with pytest.raises(ValidationError):
        service.schedule_flight(
            flight_number="SK903",
            origin="GRU",
            destination="POA",
            departure_time=clock.now,
            arrival_time=clock.now + timedelta(hours=4),
            aircraft_id=aircraft_id,
            stopovers=[
                StopoverSpec(
                    airport_code="CNF",
                    sequence=1,
                    arrival_time=clock.now + timedelta(hours=3),
                    departure_time=clock.now + timedelta(hours=5),
                )
            ],
        )


def test_stopovers_are_stored_in_sequence(service, store, make_flight, clock):
    aircraft_id = make_flight().aircraft_id
    departure = clock.now + timedelta(days=5)

    flight = service.schedule_flight(
        flight_number="SK777",
        origin="poa",
        destination="for",
        departure_time=departure,
        arrival_time=departure + timedelta(hours=8),
        aircraft_id=aircraft_id,
        stopovers=[
            StopoverSpec("REC", 2, departure + timedelta(hours=5), departure + timedelta(hours=6)),
            StopoverSpec("BSB", 1, departure + timedelta(hours=2), departure + timedelta(hours=3)),
        ],
    )

    with store.transaction() as session:
        stored = session.scalars(
            select(Stopover).where(Stopover.flight_id == flight.id).order_by(Stopover.sequence)
        ).all()
        assert [(stop.sequence, stop.airport_code) for stop in stored] == [(1, "BSB"), (2, "REC")]
    assert (flight.origin, flight.destination) == ("POA", "FOR")
    assert len(service.get_seat_map(flight.id)) == 10
