"""
Lot number and batch serial generation.

Lot numbers read ``<year code><quarter code><sequence>``, e.g. ``KA001`` for
the first lot of Q1 in the base year. Batch serials append a per-lot unit
sequence: ``KA001-001M``.
"""

from collections.abc import Iterable
from datetime import datetime

QUARTER_CODES = "ABCD"
MAX_YEAR_OFFSET = 15
FALLBACK_YEAR_CODE = "AA"


def year_code(year: int, base_year: int = 2025, base_letter: str = "K") -> str:
    offset = year - base_year
    if 0 <= offset <= MAX_YEAR_OFFSET:
        return chr(ord(base_letter) + offset)
    return FALLBACK_YEAR_CODE


def quarter_code(month: int) -> str:
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month: {month}")
    return QUARTER_CODES[(month - 1) // 3]


def lot_prefix(moment: datetime, base_year: int = 2025, base_letter: str = "K") -> str:
    return year_code(moment.year, base_year, base_letter) + quarter_code(moment.month)


def lot_sequence(lot_number: str, prefix: str) -> int | None:
    """Numeric sequence of ``lot_number`` under ``prefix``, if it has one."""
    if not lot_number.startswith(prefix):
        return None
    tail = lot_number[len(prefix):]
    return int(tail) if tail.isdigit() else None


def next_lot_number(prefix: str, existing: Iterable[str], width: int = 3) -> str:
    """
    Next lot number under ``prefix``.

    Args:
        prefix: Year and quarter code
        existing: Lot numbers already issued (any prefix)
        width: Zero padding of the sequence

    Returns:
        Prefix followed by one more than the highest existing sequence
    """
    sequences = [
        seq for seq in (lot_sequence(lot, prefix) for lot in existing) if seq is not None
    ]
    return f"{prefix}{max(sequences, default=0) + 1:0{width}d}"


def batch_serial(order_number: str, sequence: int, width: int = 3, suffix: str = "M") -> str:
    return f"{order_number}-{sequence:0{width}d}{suffix}"


def batch_serials(
    order_number: str, first: int, count: int, width: int = 3, suffix: str = "M"
) -> list[str]:
    return [batch_serial(order_number, first + i, width, suffix) for i in range(count)]
