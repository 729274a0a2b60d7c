from datetime import datetime

import pytest

from trayflow.domain.routing.lot_numbers import (
    batch_serial,
    batch_serials,
    lot_prefix,
    lot_sequence,
    next_lot_number,
    quarter_code,
    year_code,
)


class TestYearCode:
    def test_base_year(self):
        assert year_code(2025) == "K"

    def test_offsets_advance_the_letter(self):
        assert year_code(2026) == "L"
        assert year_code(2040) == "Z"

    def test_outside_the_window_falls_back(self):
        assert year_code(2041) == "AA"
        assert year_code(2024) == "AA"

    def test_configurable_base(self):
        assert year_code(2031, base_year=2030, base_letter="A") == "B"


@pytest.mark.parametrize(
    "month, code", [(1, "A"), (3, "A"), (4, "B"), (6, "B"), (7, "C"), (10, "D"), (12, "D")]
)
def test_quarter_code(month, code):
    assert quarter_code(month) == code


def test_quarter_code_rejects_invalid_month():
    with pytest.raises(ValueError):
        quarter_code(13)


def test_lot_prefix():
    assert lot_prefix(datetime(2026, 8, 14)) == "LC"


class TestNextLotNumber:
    def test_first_lot_of_a_quarter(self):
        assert next_lot_number("KA", []) == "KA001"

    def test_max_plus_one(self):
        assert next_lot_number("KA", ["KA001", "KA007", "KA003"]) == "KA008"

    def test_other_prefixes_are_ignored(self):
        assert next_lot_number("KB", ["KA010", "KB002", "AAB099"]) == "KB003"

    def test_non_numeric_tails_are_ignored(self):
        assert lot_sequence("KA01X", "KA") is None
        assert next_lot_number("KA", ["KA01X"]) == "KA001"

    def test_sequence_beyond_width_keeps_growing(self):
        assert next_lot_number("KA", ["KA999"]) == "KA1000"


def test_batch_serials_are_consecutive():
    assert batch_serial("KA001", 7) == "KA001-007M"
    assert batch_serials("KA001", 99, 3) == ["KA001-099M", "KA001-100M", "KA001-101M"]
