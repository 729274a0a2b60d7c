"""
Serial mask matching.

A mask is a string of literal characters and placeholders:
``#`` stands for one digit and ``@`` for one uppercase letter. Scanners
often append a single check letter, so a serial also conforms when it
matches after that trailing letter is removed.
"""

import re
from collections.abc import Callable, Iterable
from functools import lru_cache
from typing import TypeVar

T = TypeVar("T")

DIGIT_PLACEHOLDER = "#"
LETTER_PLACEHOLDER = "@"


@lru_cache(maxsize=256)
def mask_pattern(mask: str) -> re.Pattern[str]:
    parts = []
    for char in mask:
        if char == DIGIT_PLACEHOLDER:
            parts.append(r"\d")
        elif char == LETTER_PLACEHOLDER:
            parts.append("[A-Z]")
        else:
            parts.append(re.escape(char))
    return re.compile("".join(parts))


def strip_suffix(value: str) -> str:
    """Drop one trailing letter, if present."""
    if len(value) > 1 and value[-1].isalpha():
        return value[:-1]
    return value


def matches_mask(value: str, mask: str) -> bool:
    if not value or not mask:
        return False
    pattern = mask_pattern(mask)
    if pattern.fullmatch(value):
        return True
    stripped = strip_suffix(value)
    return stripped != value and pattern.fullmatch(stripped) is not None


def select_by_mask(
    value: str, candidates: Iterable[T], mask_of: Callable[[T], str]
) -> list[T]:
    """Candidates whose mask accepts ``value``, in their original order."""
    return [candidate for candidate in candidates if matches_mask(value, mask_of(candidate))]
