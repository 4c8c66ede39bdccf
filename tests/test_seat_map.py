import pytest

from flight_booking.errors import InvalidLayoutError
from flight_booking.seat_map import generate_seat_numbers, parse_layout


def test_layout_example_with_partial_last_row():
    seats = generate_seat_numbers(10, {"layout": "2-2"})
    assert seats == ["1A", "1B", "1C", "1D", "2A", "2B", "2C", "2D", "3A", "3B"]


def test_three_three_layout_fills_capacity_without_duplicates():
    seats = generate_seat_numbers(180, {"layout": "3-3"})
    assert len(seats) == 180
    assert len(set(seats)) == 180
    assert seats[:6] == ["1A", "1B", "1C", "1D", "1E", "1F"]
    assert seats[-1] == "30F"


def test_layout_wins_over_informational_rows():
    # 194 seats cannot fit the 32 declared rows; capacity decides the row count.
    seats = generate_seat_numbers(194, {"rows": 32, "seatsPerRow": 6, "layout": "3-3"})
    assert len(seats) == 194
    assert seats[-2:] == ["33A", "33B"]


def test_explicit_grid_with_string_columns():
    seats = generate_seat_numbers(6, {"rows": 2, "columns": "ABC"})
    assert seats == ["1A", "1B", "1C", "2A", "2B", "2C"]


def test_explicit_grid_with_list_columns_is_truncated_to_capacity():
    seats = generate_seat_numbers(5, {"rows": 3, "columns": ["A", "C", "D"]})
    assert seats == ["1A", "1C", "1D", "2A", "2C"]


def test_rows_without_columns_use_six_default_letters():
    seats = generate_seat_numbers(7, {"rows": 2})
    assert seats == ["1A", "1B", "1C", "1D", "1E", "1F", "2A"]


def test_missing_descriptor_falls_back_to_six_abreast():
    assert generate_seat_numbers(8, None) == ["1A", "1B", "1C", "1D", "1E", "1F", "2A", "2B"]
    assert generate_seat_numbers(3, {}) == ["1A", "1B", "1C"]


def test_generation_is_deterministic():
    descriptor = {"layout": "3-4"}
    assert generate_seat_numbers(50, descriptor) == generate_seat_numbers(50, descriptor)
    assert generate_seat_numbers(50, descriptor)[:7] == ["1A", "1B", "1C", "1D", "1E", "1F", "1G"]


def test_parse_layout():
    assert parse_layout("3-3") == (3, 3)
    assert parse_layout(" 2-4 ") == (2, 4)


@pytest.mark.parametrize("capacity", [0, -4, 2.5, True, "10"])
def test_rejects_non_positive_or_non_integer_capacity(capacity):
    with pytest.raises(InvalidLayoutError):
        generate_seat_numbers(capacity, {"layout": "2-2"})


@pytest.mark.parametrize(
    "descriptor",
    [
        {"layout": "3x3"},
        {"layout": "0-3"},
        {"layout": "3-3-3"},
        {"layout": "20-20"},
        {"layout": 33},
        {"rows": 0, "columns": "AB"},
        {"rows": 2, "columns": ""},
        {"rows": 2, "columns": "AAB"},
        {"rows": 1, "columns": "AB"},
        ["3-3"],
    ],
)
def test_rejects_malformed_descriptors(descriptor):
    with pytest.raises(InvalidLayoutError):
        generate_seat_numbers(4, descriptor)


def test_invalid_layout_is_a_value_error():
    with pytest.raises(ValueError):
        generate_seat_numbers(4, {"layout": "nope"})
