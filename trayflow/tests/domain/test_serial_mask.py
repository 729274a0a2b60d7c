from types import SimpleNamespace

import pytest

from trayflow.domain.routing.serial_mask import matches_mask, select_by_mask, strip_suffix


@pytest.mark.parametrize(
    "value, mask, expected",
    [
        ("KA001-001", "@@###-###", True),
        ("KA001-001M", "@@###-###", True),  # trailing check letter
        ("KA001-01M", "@@###-###", False),
        ("ka001-001", "@@###-###", False),
        ("PCB123456", "PCB######", True),
        ("PCX123456", "PCB######", False),
        ("A1.2", "@#.#", True),
        ("A152", "@#.#", False),  # '.' is literal
        ("", "@@###", False),
        ("KA001", "", False),
    ],
)
def test_matches_mask(value, mask, expected):
    assert matches_mask(value, mask) is expected


def test_only_one_trailing_letter_is_stripped():
    assert strip_suffix("KA001-001MM") == "KA001-001M"
    assert not matches_mask("KA001-001MM", "@@###-###")


def test_digit_suffix_is_not_stripped():
    assert strip_suffix("KA001-0011") == "KA001-0011"


def test_select_by_mask_keeps_candidate_order():
    parts = [
        SimpleNamespace(code="board", mask="PCB######"),
        SimpleNamespace(code="lot-a", mask="@@###-###"),
        SimpleNamespace(code="lot-b", mask="@@###-###"),
    ]
    selected = select_by_mask("KB002-010M", parts, lambda p: p.mask)
    assert [p.code for p in selected] == ["lot-a", "lot-b"]
    assert select_by_mask("XYZ", parts, lambda p: p.mask) == []
