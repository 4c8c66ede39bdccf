"""FastAPI application exposing the booking core."""
from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO, StringIO
from typing import Any, Dict, List, Literal, Optional

import pandas as pd
from fastapi import Depends, FastAPI, Header, Request, status
from fastapi.responses import JSONResponse, StreamingResponse
from loguru import logger
from pydantic import BaseModel, Field

from .booking import BookingService
from .cancellation import CancellationSummary
from .database import TransactionalStore
from .errors import BookingError, ForbiddenError
from .inventory import SeatStatus
from .models import Flight, Payment, Reservation


class ReservationRequest(BaseModel):
    seat_numbers: List[str] = Field(..., min_length=1)


class PaymentRequest(BaseModel):
    method: str
    card_type: Optional[str] = None
    card_number: Optional[str] = None
    card_expiry_date: Optional[str] = None


@dataclass
class Caller:
    user_id: int
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def current_caller(
    x_user_id: int = Header(..., description="Authenticated user id"),
    x_user_role: str = Header("passenger", description="Authenticated role"),
) -> Caller:
    # Authentication happens upstream; these headers carry its verdict.
    return Caller(user_id=x_user_id, role=x_user_role.lower())


def require_admin(caller: Caller = Depends(current_caller)) -> Caller:
    if not caller.is_admin:
        raise ForbiddenError("Admin role required.")
    return caller


def _isoformat(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _flight_payload(flight: Flight) -> Dict[str, Any]:
    return {
        "id": flight.id,
        "flight_number": flight.flight_number,
        "origin": flight.origin,
        "destination": flight.destination,
        "departure_time": _isoformat(flight.departure_time),
        "arrival_time": _isoformat(flight.arrival_time),
        "status": flight.status.value,
    }


def _payment_payload(payment: Optional[Payment]) -> Optional[Dict[str, Any]]:
    if payment is None:
        return None
    return {
        "id": payment.id,
        "reservation_id": payment.reservation_id,
        "method": payment.method.value,
        "status": payment.status.value,
        "processed_at": _isoformat(payment.processed_at),
        "card_type": payment.card_type,
        "card_last_four_digits": payment.card_last_four_digits,
        "card_expiry_date": payment.card_expiry_date,
        "slip_barcode": payment.slip_barcode,
        "slip_expiry_date": _isoformat(payment.slip_expiry_date),
    }


def _reservation_payload(reservation: Reservation) -> Dict[str, Any]:
    return {
        "id": reservation.id,
        "user_id": reservation.user_id,
        "flight_id": reservation.flight_id,
        "status": reservation.status.value,
        "created_at": _isoformat(reservation.created_at),
        "seat_numbers": reservation.seat_numbers,
        "payment": _payment_payload(reservation.payment),
    }


def _cancellation_payload(summary: CancellationSummary) -> Dict[str, Any]:
    return {
        "flight": _flight_payload(summary.flight),
        "cancelled_reservation_ids": summary.cancelled_reservation_ids,
        "released_seats": summary.released_seats,
        "already_cancelled": summary.already_cancelled,
    }


def _seat_map_frame(seats: List[SeatStatus]) -> pd.DataFrame:
    return pd.DataFrame(
        [{"Seat": seat.seat_number, "Available": seat.is_available} for seat in seats],
        columns=["Seat", "Available"],
    )


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.exception(f"Booking error: {exc.message}")
    else:
        logger.info(f"Booking request rejected ({exc.kind}): {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "kind": exc.kind})


def create_app(service: Optional[BookingService] = None) -> FastAPI:
    """Return an application serving the booking endpoints for ``service``."""

    if service is None:
        service = BookingService(TransactionalStore.from_url())

    app = FastAPI(title="Flight Booking", description="Seat inventory, reservations and payments")
    app.add_exception_handler(BookingError, booking_error_handler)

    @app.get("/flights/{flight_id}/seats")
    def seat_map(flight_id: int) -> List[Dict[str, Any]]:
        return [seat.as_dict() for seat in service.get_seat_map(flight_id)]

    @app.get("/flights/{flight_id}/seats/download/{file_format}")
    def download_seat_map(flight_id: int, file_format: Literal["csv", "xlsx"]) -> StreamingResponse:
        dataframe = _seat_map_frame(service.get_seat_map(flight_id))
        filename = f"flight_{flight_id}_seats.{file_format}"
        headers = {"Content-Disposition": f"attachment; filename=\"{filename}\""}

        if file_format == "csv":
            buffer = StringIO()
            dataframe.to_csv(buffer, index=False)
            buffer.seek(0)
            return StreamingResponse(iter([buffer.getvalue()]), media_type="text/csv", headers=headers)

        buffer = BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            dataframe.to_excel(writer, index=False, sheet_name="Seat Map")
        buffer.seek(0)
        return StreamingResponse(
            buffer,
            media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            headers=headers,
        )

    @app.post("/flights/{flight_id}/reservations", status_code=status.HTTP_201_CREATED)
    def create_reservation(
        flight_id: int,
        body: ReservationRequest,
        caller: Caller = Depends(current_caller),
    ) -> Dict[str, Any]:
        reservation = service.create_reservation(flight_id, caller.user_id, body.seat_numbers)
        return _reservation_payload(reservation)

    @app.get("/reservations/{reservation_id}")
    def get_reservation(reservation_id: int, caller: Caller = Depends(current_caller)) -> Dict[str, Any]:
        reservation = service.get_reservation(reservation_id, caller.user_id, as_admin=caller.is_admin)
        return _reservation_payload(reservation)

    @app.post("/reservations/{reservation_id}/cancel")
    def cancel_reservation(reservation_id: int, caller: Caller = Depends(current_caller)) -> Dict[str, Any]:
        reservation = service.cancel_reservation(reservation_id, caller.user_id, as_admin=caller.is_admin)
        return _reservation_payload(reservation)

    @app.post("/payments/{reservation_id}", status_code=status.HTTP_201_CREATED)
    def process_payment(
        reservation_id: int,
        body: PaymentRequest,
        caller: Caller = Depends(current_caller),
    ) -> Dict[str, Any]:
        payment = service.process_payment(
            reservation_id,
            caller.user_id,
            body.method,
            body.model_dump(exclude={"method"}),
        )
        return _payment_payload(payment)

    @app.post("/admin/flights/{flight_id}/cancel")
    def cancel_flight(flight_id: int, caller: Caller = Depends(require_admin)) -> Dict[str, Any]:
        summary = service.cancel_flight_with_summary(flight_id)
        return _cancellation_payload(summary)

    return app


__all__ = ["create_app"]
