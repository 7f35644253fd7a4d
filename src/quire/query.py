# Quire Sheets
# File: query.py
# Version: v1

"""Fluent query builder: filter -> sort -> limit over one fetched grid."""

from __future__ import annotations

import logging
from collections.abc import MutableSequence
from typing import TYPE_CHECKING, Any, List, Optional, Sequence

from .filters import Filter, matches
from .grid import Row
from .models import QueryResult
from .record import decode_many

if TYPE_CHECKING:
    from .table import Table

logger = logging.getLogger(__name__)


def apply_filters(rows: Sequence[Row], header: Row, filters: Sequence[Filter]) -> List[Row]:
    """Rows for which every filter matches, in their original order."""
    if not filters:
        return list(rows)
    return [row for row in rows if all(matches(row, header, f) for f in filters)]


def apply_sort(rows: List[Row], header: Row, column: str, descending: bool = False) -> List[Row]:  # noqa: ARG001
    """Ordering hook. Rows are returned in their fetched order."""
    return rows


def apply_limit(rows: List[Row], n: int) -> List[Row]:
    """First ``n`` rows; ``n <= 0`` means no limit."""
    if 0 < n < len(rows):
        return rows[:n]
    return rows


class Query:
    """Accumulates conditions for one table and runs them with ``get``.

    Builder methods return the query itself so calls can be chained::

        users = await db.table("Users").query().where("Age", ">=", 28).limit(10).get(User)
    """

    def __init__(self, table: "Table") -> None:
        self.table = table
        self.filters: List[Filter] = []
        self.max_results = 0
        self.order_column = ""
        self.descending = False

    def where(self, column: str, operator: str, value: Any) -> "Query":
        self.filters.append(Filter(column=column, operator=operator, value=value))
        return self

    def limit(self, n: int) -> "Query":
        self.max_results = n
        return self

    def order_by(self, column: str, descending: bool = False) -> "Query":
        self.order_column = column
        self.descending = descending
        return self

    async def fetch(self) -> QueryResult:
        """Read the table and return the raw rows that pass the pipeline."""
        grid = await self.table.read_grid()

        meta = {
            "table": self.table.name,
            "filters": len(self.filters),
            "limit": self.max_results,
            "order_by": self.order_column or None,
            "descending": self.descending,
        }

        if len(grid) < 2:
            meta["row_count"] = 0
            meta["matched_count"] = 0
            columns = list(grid[0]) if grid else []
            return QueryResult(columns=columns, rows=[], truncated=False, meta=meta)

        header = grid[0]
        rows = grid[1:]

        filtered = apply_filters(rows, header, self.filters)

        if self.order_column:
            logger.debug(
                "order_by(%r) on table '%s' keeps fetched row order",
                self.order_column,
                self.table.name,
            )
            filtered = apply_sort(filtered, header, self.order_column, self.descending)

        limited = apply_limit(filtered, self.max_results)

        meta["row_count"] = len(rows)
        meta["matched_count"] = len(filtered)
        return QueryResult(
            columns=list(header),
            rows=limited,
            truncated=len(limited) < len(filtered),
            meta=meta,
        )

    async def get(self, record_type: type, dest: Optional[MutableSequence] = None) -> MutableSequence:
        """Run the query and decode the surviving rows into ``record_type``.

        Records are appended to ``dest`` when given; the list is returned.
        """
        result = await self.fetch()
        return decode_many(result.rows, result.columns, record_type, dest)
