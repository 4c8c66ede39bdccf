"""Runtime configuration for the flight booking core."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Final, Optional

DEFAULT_DB_URL: Final[str] = "sqlite+pysqlite:///flight_booking.db"

# Bank slips are only offered when departure is strictly more than this many
# days away, and expire this many days after they are issued.
BANK_SLIP_MIN_DAYS_BEFORE_DEPARTURE: Final[float] = 3.0
BANK_SLIP_EXPIRY_DAYS: Final[int] = 2

DEFAULT_SEAT_LETTERS: Final[str] = "ABCDEF"


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    db_url: str
    sql_echo: bool
    db_timeout: float
    log_level: str
    log_file: Optional[str]


def load_settings() -> Settings:
    """Read settings from ``FLIGHT_BOOKING_*`` environment variables."""

    return Settings(
        db_url=os.environ.get("FLIGHT_BOOKING_DB_URL", DEFAULT_DB_URL),
        sql_echo=_env_flag("FLIGHT_BOOKING_SQL_ECHO"),
        db_timeout=float(os.environ.get("FLIGHT_BOOKING_DB_TIMEOUT", 30)),
        log_level=os.environ.get("FLIGHT_BOOKING_LOG_LEVEL", "INFO").upper(),
        log_file=os.environ.get("FLIGHT_BOOKING_LOG_FILE") or None,
    )
