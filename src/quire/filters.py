# Quire Sheets
# File: filters.py
# Version: v1

"""Row predicates: ``column operator value`` conditions over raw grid rows."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .coerce import cell_text, parse_float
from .grid import Cell, Row, column_index

OPERATORS = ("=", "==", "!=", ">", ">=", "<", "<=", "contains", "like")


@dataclass(frozen=True)
class Filter:
    """A single WHERE condition."""

    column: str
    operator: str
    value: Any


def _number(text: str) -> Optional[float]:
    try:
        return parse_float(text)
    except ValueError:
        return None


def compare(a: Cell, b: Cell) -> int:
    """Three-way comparison: numeric when both sides parse, else by text."""
    a_text = cell_text(a)
    b_text = cell_text(b)

    a_num = _number(a_text)
    b_num = _number(b_text)
    if a_num is not None and b_num is not None:
        return (a_num > b_num) - (a_num < b_num)

    return (a_text > b_text) - (a_text < b_text)


def matches_operator(cell: Cell, operator: str, value: Any) -> bool:
    """Evaluate ``cell <operator> value``. Unknown operators never match."""
    cell_str = cell_text(cell)
    value_str = cell_text(value)

    if operator in ("=", "=="):
        return cell_str == value_str
    if operator == "!=":
        return cell_str != value_str
    if operator == ">":
        return compare(cell, value) > 0
    if operator == ">=":
        return compare(cell, value) >= 0
    if operator == "<":
        return compare(cell, value) < 0
    if operator == "<=":
        return compare(cell, value) <= 0
    if operator in ("contains", "like"):
        return value_str.lower() in cell_str.lower()
    return False


def matches(row: Row, header: Row, flt: Filter) -> bool:
    """True when the row has the filter's column and the condition holds."""
    idx = column_index(header, flt.column)
    if idx < 0 or idx >= len(row):
        return False
    return matches_operator(row[idx], flt.operator, flt.value)
