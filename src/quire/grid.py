# Quire Sheets
# File: grid.py
# Version: v1

"""Shared grid aliases and column addressing helpers."""

from __future__ import annotations

from typing import Any, List, Sequence

Cell = Any
Row = List[Cell]
Grid = List[Row]


def column_index(header: Sequence[Cell], column: str) -> int:
    """Return the index of the first header cell equal to ``column``, or -1."""
    for i, name in enumerate(header):
        if name == column:
            return i
    return -1


def column_letter(index: int) -> str:
    """Convert a zero-based column index into spreadsheet letters.

    0 -> A, 25 -> Z, 26 -> AA, 701 -> ZZ, 702 -> AAA. Negative indices map to A.
    """
    if index < 0:
        return "A"
    letters = ""
    while index >= 0:
        letters = chr(ord("A") + index % 26) + letters
        index = index // 26 - 1
    return letters


def letter_index(letters: str) -> int:
    """Inverse of :func:`column_letter` (``"A"`` -> 0)."""
    index = 0
    for ch in letters.upper():
        if not "A" <= ch <= "Z":
            raise ValueError(f"invalid column letters: {letters!r}")
        index = index * 26 + (ord(ch) - ord("A") + 1)
    if index == 0:
        raise ValueError("column letters must not be empty")
    return index - 1
