"""Payment decisions for PENDING reservations.

A reservation is paid at most once: the decision, the PENDING -> CONFIRMED
transition and the payment row are written in a single transaction, and the
unique ``payments.reservation_id`` constraint rejects a second row outright.
"""
from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Mapping, Optional, Union

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .config import BANK_SLIP_EXPIRY_DAYS, BANK_SLIP_MIN_DAYS_BEFORE_DEPARTURE
from .database import TransactionalStore
from .errors import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    PaymentAlreadyInitiatedError,
    ReservationNotFoundError,
)
from .models import (
    Payment,
    PaymentMethod,
    PaymentStatus,
    Reservation,
    ReservationStatus,
    utcnow,
)
from .reservations import ReservationLifecycle

Clock = Callable[[], datetime]
BarcodeFactory = Callable[[datetime], str]


@dataclass
class PaymentDetails:
    """Method-specific fields supplied with a payment request."""

    card_type: Optional[str] = None
    card_number: Optional[str] = None
    card_expiry_date: Optional[str] = None

    @classmethod
    def from_mapping(cls, fields: Optional[Mapping[str, Any]]) -> "PaymentDetails":
        fields = fields or {}
        return cls(
            card_type=fields.get("card_type"),
            card_number=fields.get("card_number"),
            card_expiry_date=fields.get("card_expiry_date"),
        )


def generate_bank_slip_barcode(now: datetime, rng: Optional[random.Random] = None) -> str:
    """Return a 23 digit slip barcode: bank code, sequence, clock digits, random tail.

    Uniqueness is best effort only.
    """

    rng = rng or random
    bank_code = str(rng.randint(1, 900)).zfill(3)
    sequence = str(rng.randrange(9_999_999)).zfill(7)
    millis = int(now.replace(tzinfo=timezone.utc).timestamp() * 1000)
    clock_digits = str(millis)[-10:].zfill(10)
    tail = str(rng.randrange(999)).zfill(3)
    return f"{bank_code}{sequence}{clock_digits}{tail}"


def mask_card_number(card_number: str) -> str:
    digits = "".join(ch for ch in card_number if ch.isdigit())
    if len(digits) < 4:
        raise BadRequestError("Card number must contain at least four digits.")
    return digits[-4:]


def _parse_method(method: Union[str, PaymentMethod, None]) -> PaymentMethod:
    try:
        return PaymentMethod(method.upper() if isinstance(method, str) else method)
    except ValueError:
        raise BadRequestError("Invalid payment method.") from None


class PaymentProcessor:
    def __init__(
        self,
        store: TransactionalStore,
        reservations: ReservationLifecycle,
        *,
        clock: Clock = utcnow,
        barcode_factory: BarcodeFactory = generate_bank_slip_barcode,
    ):
        self.store = store
        self.reservations = reservations
        self.clock = clock
        self.barcode_factory = barcode_factory

    def process_payment(
        self,
        reservation_id: int,
        user_id: int,
        method: Union[str, PaymentMethod],
        fields: Union[PaymentDetails, Mapping[str, Any], None] = None,
        *,
        session: Optional[Session] = None,
    ) -> Payment:
        details = fields if isinstance(fields, PaymentDetails) else PaymentDetails.from_mapping(fields)

        with self.store.transaction(session) as tx:
            reservation = tx.get(Reservation, reservation_id, with_for_update=True)
            if reservation is None:
                raise ReservationNotFoundError(reservation_id)
            if reservation.user_id != user_id:
                raise ForbiddenError("You are not authorized to pay for this reservation.")
            if reservation.status != ReservationStatus.PENDING:
                raise ConflictError("This reservation is not pending payment.")
            if reservation.payment is not None:
                raise PaymentAlreadyInitiatedError()

            payment_method = _parse_method(method)
            now = self.clock()
            if payment_method == PaymentMethod.CREDIT_CARD:
                decision = self._card_payment(details, now)
            else:
                decision = self._bank_slip_payment(reservation, now)

            self.reservations.confirm(tx, reservation)
            payment = Payment(reservation=reservation, method=payment_method, **decision)
            tx.add(payment)
            try:
                tx.flush()
            except IntegrityError as exc:
                raise PaymentAlreadyInitiatedError() from exc
        logger.info(
            f"Payment {payment.id} {payment.status.value} via {payment.method.value} "
            f"for reservation {reservation_id}"
        )
        return payment

    @staticmethod
    def _card_payment(details: PaymentDetails, now: datetime) -> dict:
        if not details.card_type or not details.card_number:
            raise BadRequestError("Card type and card number are required for credit card payments.")
        # No gateway call: card payments are approved on the spot.
        return {
            "status": PaymentStatus.APPROVED,
            "processed_at": now,
            "card_type": details.card_type,
            "card_last_four_digits": mask_card_number(details.card_number),
            "card_expiry_date": details.card_expiry_date,
        }

    def _bank_slip_payment(self, reservation: Reservation, now: datetime) -> dict:
        days_until_departure = (reservation.flight.departure_time - now).total_seconds() / 86400
        if days_until_departure <= BANK_SLIP_MIN_DAYS_BEFORE_DEPARTURE:
            raise BadRequestError(
                "Bank slip payments are only available for flights more than 3 days away."
            )
        # TODO: record slips as awaiting settlement and confirm from the bank's
        # callback instead of approving at issue time.
        return {
            "status": PaymentStatus.APPROVED,
            "processed_at": now,
            "slip_barcode": self.barcode_factory(now),
            "slip_expiry_date": now + timedelta(days=BANK_SLIP_EXPIRY_DAYS),
        }


__all__ = [
    "PaymentDetails",
    "PaymentProcessor",
    "generate_bank_slip_barcode",
    "mask_card_number",
]
