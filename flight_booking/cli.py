"""Command line interface for operating the booking core."""
from __future__ import annotations

import argparse
import sys
from typing import Iterable, List

from tabulate import tabulate

from .booking import BookingService
from .database import TransactionalStore
from .dataset import generate_sample_data
from .errors import BookingError
from .inventory import SeatStatus
from .log import configure_logging


def _render_seat_map(seats: List[SeatStatus], per_row: int = 0) -> str:
    if per_row <= 0:
        rows = [[seat.seat_number, "free" if seat.is_available else "taken"] for seat in seats]
        return tabulate(rows, headers=["Seat", "Status"], tablefmt="github")

    cells = [seat.seat_number if seat.is_available else "--" for seat in seats]
    grid = [cells[index : index + per_row] for index in range(0, len(cells), per_row)]
    return tabulate(grid, tablefmt="plain")


def parse_args(argv: Iterable[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Manage seat inventory, reservations and payments.")
    parser.add_argument("--db-url", default=None, help="SQLAlchemy database URL (default: FLIGHT_BOOKING_DB_URL).")
    parser.add_argument("--log-level", default=None, help="Log level (default: FLIGHT_BOOKING_LOG_LEVEL or INFO).")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("init-db", help="Create the database schema.")

    seed = commands.add_parser("seed", help="Install the sample aircraft catalog and flights.")
    seed.add_argument("--flights", type=int, default=6, help="Number of flights to schedule (default: 6).")

    seats = commands.add_parser("seats", help="Show a flight's seat map.")
    seats.add_argument("flight_id", type=int)
    seats.add_argument(
        "--per-row",
        type=int,
        default=0,
        help="Render as a grid with this many seats per row; taken seats show as '--'.",
    )

    reserve = commands.add_parser("reserve", help="Reserve seats on a flight.")
    reserve.add_argument("flight_id", type=int)
    reserve.add_argument("seats", nargs="+", help="Seat numbers such as 12A 12B.")
    reserve.add_argument("--user", type=int, required=True, help="Id of the booking user.")

    pay = commands.add_parser("pay", help="Pay for a pending reservation.")
    pay.add_argument("reservation_id", type=int)
    pay.add_argument("--user", type=int, required=True, help="Id of the reservation owner.")
    pay.add_argument("--method", choices=["CREDIT_CARD", "BANK_SLIP"], required=True)
    pay.add_argument("--card-type")
    pay.add_argument("--card-number")
    pay.add_argument("--card-expiry", help="Card expiry date, e.g. 12/2030.")

    cancel = commands.add_parser("cancel", help="Cancel a reservation.")
    cancel.add_argument("reservation_id", type=int)
    cancel.add_argument("--user", type=int, default=None, help="Id of the reservation owner.")
    cancel.add_argument("--admin", action="store_true", help="Cancel on behalf of the owner.")

    cancel_flight = commands.add_parser("cancel-flight", help="Cancel a flight and all of its reservations.")
    cancel_flight.add_argument("flight_id", type=int)

    return parser.parse_args(list(argv))


def main(argv: Iterable[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    configure_logging(args.log_level)
    store = TransactionalStore.from_url(args.db_url)
    service = BookingService(store)

    try:
        if args.command == "init-db":
            print("Database schema is ready.")
        elif args.command == "seed":
            summary = generate_sample_data(service, flights=args.flights)
            print(
                f"Installed {summary['aircraft_types']} aircraft types and scheduled "
                f"{summary['flights']} flights with {summary['seats']} seats."
            )
        elif args.command == "seats":
            print(_render_seat_map(service.get_seat_map(args.flight_id), per_row=args.per_row))
        elif args.command == "reserve":
            reservation = service.create_reservation(args.flight_id, args.user, args.seats)
            print(
                f"Reservation {reservation.id} {reservation.status.value}: "
                f"{', '.join(reservation.seat_numbers)}"
            )
        elif args.command == "pay":
            payment = service.process_payment(
                args.reservation_id,
                args.user,
                args.method,
                {
                    "card_type": args.card_type,
                    "card_number": args.card_number,
                    "card_expiry_date": args.card_expiry,
                },
            )
            print(f"Payment {payment.id} {payment.status.value} via {payment.method.value}")
            if payment.slip_barcode:
                print(f"Barcode {payment.slip_barcode}, expires {payment.slip_expiry_date:%Y-%m-%d %H:%M}")
        elif args.command == "cancel":
            reservation = service.cancel_reservation(args.reservation_id, args.user, as_admin=args.admin)
            print(f"Reservation {reservation.id} {reservation.status.value}")
        elif args.command == "cancel-flight":
            summary = service.cancel_flight_with_summary(args.flight_id)
            print(
                f"Flight {summary.flight.flight_number} {summary.flight.status.value}: "
                f"{len(summary.cancelled_reservation_ids)} reservations cancelled, "
                f"{len(summary.released_seats)} seats released"
            )
    except BookingError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1
    finally:
        store.dispose()
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
