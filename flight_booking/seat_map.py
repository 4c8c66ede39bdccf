"""Seat number generation from an aircraft type's seat map descriptor.

Two descriptor shapes are accepted:

* ``{"layout": "3-3"}``: seats left and right of the aisle; letters run
  A, B, C, ... across the whole row.
* ``{"rows": 30, "columns": "ABCDEF"}``: an explicit grid, with ``columns``
  given as a string or a list of letters.

Either way the sequence is row-major, rows start at 1 and the result holds
exactly ``capacity`` seats.
"""
from __future__ import annotations

import string
from math import ceil
from typing import Any, List, Mapping, Optional, Sequence

from .config import DEFAULT_SEAT_LETTERS
from .errors import InvalidLayoutError

SEAT_LETTERS: str = string.ascii_uppercase


def parse_layout(layout: str) -> tuple[int, int]:
    """Split ``"L-R"`` into the seat counts either side of the aisle."""

    if not isinstance(layout, str):
        raise InvalidLayoutError(f"Seat layout must be a string like '3-3', got {layout!r}.")
    parts = layout.strip().split("-")
    if len(parts) != 2 or not all(part.strip().isdigit() for part in parts):
        raise InvalidLayoutError(f"Malformed seat layout {layout!r}; expected '<left>-<right>'.")
    left, right = (int(part) for part in parts)
    if left < 1 or right < 1:
        raise InvalidLayoutError(f"Seat layout {layout!r} needs at least one seat per side.")
    if left + right > len(SEAT_LETTERS):
        raise InvalidLayoutError(f"Seat layout {layout!r} has more columns than seat letters.")
    return left, right


def _normalize_columns(columns: Any) -> List[str]:
    if isinstance(columns, str):
        letters = [letter for letter in columns if not letter.isspace()]
    elif isinstance(columns, Sequence):
        letters = [str(letter).strip() for letter in columns]
    else:
        raise InvalidLayoutError(f"Seat map columns must be letters, got {columns!r}.")
    if not letters or any(not letter for letter in letters):
        raise InvalidLayoutError("Seat map columns cannot be empty.")
    if len(set(letters)) != len(letters):
        raise InvalidLayoutError(f"Seat map columns repeat a letter: {columns!r}.")
    return letters


def _grid(rows: int, columns: Sequence[str], capacity: int) -> List[str]:
    seats: List[str] = []
    for row in range(1, rows + 1):
        for column in columns:
            if len(seats) == capacity:
                return seats
            seats.append(f"{row}{column}")
    return seats


def generate_seat_numbers(capacity: int, descriptor: Optional[Mapping[str, Any]] = None) -> List[str]:
    """Return the ordered seat numbers for an aircraft of ``capacity`` seats."""

    if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity < 1:
        raise InvalidLayoutError(f"Seat capacity must be a positive integer, got {capacity!r}.")
    descriptor = descriptor or {}
    if not isinstance(descriptor, Mapping):
        raise InvalidLayoutError(f"Seat map descriptor must be a mapping, got {descriptor!r}.")

    explicit_grid = descriptor.get("columns") is not None or (
        descriptor.get("rows") is not None and descriptor.get("layout") is None
    )
    if explicit_grid:
        rows = descriptor.get("rows")
        if isinstance(rows, bool) or not isinstance(rows, int) or rows < 1:
            raise InvalidLayoutError(f"Seat map rows must be a positive integer, got {rows!r}.")
        if descriptor.get("columns") is not None:
            columns = _normalize_columns(descriptor["columns"])
        else:
            columns = list(DEFAULT_SEAT_LETTERS)
        if rows * len(columns) < capacity:
            raise InvalidLayoutError(
                f"Seat map of {rows} rows x {len(columns)} columns cannot hold {capacity} seats."
            )
        return _grid(rows, columns, capacity)

    # With a layout, "rows" is informational: the row count follows capacity.
    if descriptor.get("layout") is not None:
        left, right = parse_layout(descriptor["layout"])
        seats_per_row = left + right
    else:
        seats_per_row = len(DEFAULT_SEAT_LETTERS)
    rows = ceil(capacity / seats_per_row)
    return _grid(rows, SEAT_LETTERS[:seats_per_row], capacity)


__all__ = ["SEAT_LETTERS", "generate_seat_numbers", "parse_layout"]
