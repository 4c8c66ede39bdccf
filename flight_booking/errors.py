"""Typed failures raised by the booking core.

Every error carries a ``kind`` so callers can tell outcomes apart without
string matching, and a ``status_code`` the web adapter forwards verbatim.
"""
from __future__ import annotations


class BookingError(RuntimeError):
    kind = "internal"
    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundError(BookingError):
    kind = "not_found"
    status_code = 404


class ForbiddenError(BookingError):
    kind = "forbidden"
    status_code = 403


class ConflictError(BookingError):
    kind = "conflict"
    status_code = 409


class BadRequestError(BookingError):
    kind = "bad_request"
    status_code = 400


class InternalError(BookingError):
    """Raised when the store fails for a reason other than a conflict."""


class FlightNotFoundError(NotFoundError):
    def __init__(self, flight_id: int):
        self.flight_id = flight_id
        super().__init__(f"Flight with ID {flight_id} not found.")


class ReservationNotFoundError(NotFoundError):
    def __init__(self, reservation_id: int):
        self.reservation_id = reservation_id
        super().__init__(f"Reservation with ID {reservation_id} not found.")


class AircraftNotFoundError(NotFoundError):
    def __init__(self, aircraft_id: int):
        self.aircraft_id = aircraft_id
        super().__init__(f"Aircraft with ID {aircraft_id} not found.")


class SeatUnavailableError(ConflictError):
    def __init__(self, seat_numbers=()):
        self.seat_numbers = tuple(seat_numbers)
        message = "Seat unavailable, choose another."
        if self.seat_numbers:
            message = f"Seat unavailable, choose another: {', '.join(self.seat_numbers)}."
        super().__init__(message)


class InvalidTransitionError(ConflictError):
    pass


class PaymentAlreadyInitiatedError(ConflictError):
    def __init__(self) -> None:
        super().__init__("A payment has already been initiated for this reservation.")


class ValidationError(BadRequestError):
    pass


class InvalidLayoutError(BadRequestError, ValueError):
    """Raised when a seat map descriptor cannot produce seat numbers."""


__all__ = [
    "BookingError",
    "NotFoundError",
    "ForbiddenError",
    "ConflictError",
    "BadRequestError",
    "InternalError",
    "FlightNotFoundError",
    "ReservationNotFoundError",
    "AircraftNotFoundError",
    "SeatUnavailableError",
    "InvalidTransitionError",
    "PaymentAlreadyInitiatedError",
    "ValidationError",
    "InvalidLayoutError",
]
