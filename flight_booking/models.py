"""SQLAlchemy models for the flight booking core."""
from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Any, List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    true,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores."""

    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    pass


class FlightStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    CANCELLED = "CANCELLED"


class ReservationStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


ACTIVE_RESERVATION_STATUSES = (ReservationStatus.PENDING, ReservationStatus.CONFIRMED)


class PaymentMethod(str, enum.Enum):
    CREDIT_CARD = "CREDIT_CARD"
    BANK_SLIP = "BANK_SLIP"


class PaymentStatus(str, enum.Enum):
    APPROVED = "APPROVED"
    DECLINED = "DECLINED"


class AircraftType(Base):
    __tablename__ = "aircraft_types"
    __table_args__ = (
        UniqueConstraint("name", name="uq_aircraft_type_name"),
        CheckConstraint("seat_capacity > 0", name="ck_seat_capacity_positive"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    seat_capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    seat_map: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)

    aircraft: Mapped[List["Aircraft"]] = relationship(back_populates="aircraft_type")


class Aircraft(Base):
    __tablename__ = "aircraft"
    __table_args__ = (UniqueConstraint("registration", name="uq_aircraft_registration"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    registration: Mapped[str] = mapped_column(String(12), nullable=False)
    aircraft_type_id: Mapped[int] = mapped_column(ForeignKey("aircraft_types.id"), nullable=False)

    aircraft_type: Mapped[AircraftType] = relationship(back_populates="aircraft")


class Flight(Base):
    __tablename__ = "flights"
    __table_args__ = (
        CheckConstraint("departure_time < arrival_time", name="ck_flight_window"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    flight_number: Mapped[str] = mapped_column(String(8), nullable=False)
    origin: Mapped[str] = mapped_column(String(3), nullable=False)
    destination: Mapped[str] = mapped_column(String(3), nullable=False)
    departure_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    arrival_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    aircraft_id: Mapped[int] = mapped_column(ForeignKey("aircraft.id"), nullable=False)
    status: Mapped[FlightStatus] = mapped_column(
        Enum(FlightStatus, name="flight_status"), default=FlightStatus.ACTIVE, nullable=False
    )

    aircraft: Mapped[Aircraft] = relationship()
    seats: Mapped[List["Seat"]] = relationship(
        back_populates="flight", cascade="all, delete-orphan", order_by="Seat.id"
    )
    stopovers: Mapped[List["Stopover"]] = relationship(
        back_populates="flight", cascade="all, delete-orphan", order_by="Stopover.sequence"
    )
    reservations: Mapped[List["Reservation"]] = relationship(back_populates="flight")


class Stopover(Base):
    __tablename__ = "stopovers"
    __table_args__ = (
        UniqueConstraint("flight_id", "sequence", name="uq_stopover_sequence"),
        CheckConstraint("sequence > 0", name="ck_stopover_sequence_positive"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    flight_id: Mapped[int] = mapped_column(ForeignKey("flights.id", ondelete="CASCADE"))
    airport_code: Mapped[str] = mapped_column(String(3), nullable=False)
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    arrival_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    departure_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    flight: Mapped[Flight] = relationship(back_populates="stopovers")


class Seat(Base):
    __tablename__ = "seats"
    __table_args__ = (UniqueConstraint("flight_id", "seat_number", name="uq_flight_seat"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    flight_id: Mapped[int] = mapped_column(ForeignKey("flights.id", ondelete="CASCADE"))
    seat_number: Mapped[str] = mapped_column(String(4), nullable=False)
    is_available: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    flight: Mapped[Flight] = relationship(back_populates="seats")


class Reservation(Base):
    __tablename__ = "reservations"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    flight_id: Mapped[int] = mapped_column(ForeignKey("flights.id"), nullable=False, index=True)
    status: Mapped[ReservationStatus] = mapped_column(
        Enum(ReservationStatus, name="reservation_status"),
        default=ReservationStatus.PENDING,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    flight: Mapped[Flight] = relationship(back_populates="reservations")
    tickets: Mapped[List["Ticket"]] = relationship(
        back_populates="reservation", cascade="all, delete-orphan", order_by="Ticket.id"
    )
    payment: Mapped[Optional["Payment"]] = relationship(
        back_populates="reservation", uselist=False, cascade="all, delete-orphan"
    )

    @property
    def seat_numbers(self) -> List[str]:
        return [ticket.seat_number for ticket in self.tickets]


class Ticket(Base):
    __tablename__ = "tickets"

    id: Mapped[int] = mapped_column(primary_key=True)
    reservation_id: Mapped[int] = mapped_column(ForeignKey("reservations.id", ondelete="CASCADE"))
    flight_id: Mapped[int] = mapped_column(ForeignKey("flights.id"), nullable=False)
    seat_number: Mapped[str] = mapped_column(String(4), nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    reservation: Mapped[Reservation] = relationship(back_populates="tickets")


# At most one live ticket per seat and flight; cancelled tickets drop out of it.
Index(
    "uq_active_ticket_seat",
    Ticket.flight_id,
    Ticket.seat_number,
    unique=True,
    sqlite_where=Ticket.active == true(),
    postgresql_where=Ticket.active == true(),
)


class Payment(Base):
    __tablename__ = "payments"
    __table_args__ = (UniqueConstraint("reservation_id", name="uq_payment_reservation"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    reservation_id: Mapped[int] = mapped_column(ForeignKey("reservations.id", ondelete="CASCADE"))
    method: Mapped[PaymentMethod] = mapped_column(Enum(PaymentMethod, name="payment_method"), nullable=False)
    status: Mapped[PaymentStatus] = mapped_column(Enum(PaymentStatus, name="payment_status"), nullable=False)
    processed_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    card_type: Mapped[Optional[str]] = mapped_column(String(20))
    card_last_four_digits: Mapped[Optional[str]] = mapped_column(String(4))
    card_expiry_date: Mapped[Optional[str]] = mapped_column(String(10))
    slip_barcode: Mapped[Optional[str]] = mapped_column(String(47))
    slip_expiry_date: Mapped[Optional[datetime]] = mapped_column(DateTime)

    reservation: Mapped[Reservation] = relationship(back_populates="payment")
