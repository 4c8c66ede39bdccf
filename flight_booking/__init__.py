"""Seat inventory, reservation and payment core for airline flight bookings."""
from typing import TYPE_CHECKING, Any

from .booking import BookingService
from .cancellation import CancellationSummary, FlightCancellation
from .catalog import CatalogLookup, add_aircraft, add_aircraft_type
from .database import TransactionalStore, create_session_factory, init_db
from .errors import (
    BadRequestError,
    BookingError,
    ConflictError,
    ForbiddenError,
    InternalError,
    InvalidLayoutError,
    NotFoundError,
    SeatUnavailableError,
)
from .inventory import SeatInventory, SeatStatus
from .payments import PaymentDetails, PaymentProcessor
from .reservations import ReservationLifecycle
from .scheduling import StopoverSpec, schedule_flight
from .seat_map import generate_seat_numbers

if TYPE_CHECKING:  # pragma: no cover - import for type hints only
    from .web import create_app as _create_app


def create_app(*args: Any, **kwargs: Any):  # pragma: no cover - thin wrapper
    from .web import create_app as _create_app

    return _create_app(*args, **kwargs)


__all__ = [
    "BookingService",
    "CancellationSummary",
    "FlightCancellation",
    "CatalogLookup",
    "add_aircraft",
    "add_aircraft_type",
    "TransactionalStore",
    "create_session_factory",
    "init_db",
    "BadRequestError",
    "BookingError",
    "ConflictError",
    "ForbiddenError",
    "InternalError",
    "InvalidLayoutError",
    "NotFoundError",
    "SeatUnavailableError",
    "SeatInventory",
    "SeatStatus",
    "PaymentDetails",
    "PaymentProcessor",
    "ReservationLifecycle",
    "StopoverSpec",
    "schedule_flight",
    "generate_seat_numbers",
    "create_app",
]
