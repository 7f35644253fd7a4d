# Quire Sheets
# File: table.py
# Version: v1

"""Table handle: CRUD operations on one sheet.

Row indices are 0-based and exclude the header row. The grid itself is
1-based with the header on row 1, so data row ``i`` lives on sheet row
``i + 2`` for writes. Row deletion addresses sheet rows 0-based, where the
header is row 0, so data row ``i`` is deleted as index ``i + 1``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, TypeVar

from .errors import QuireError, RangeError, TransportError
from .filters import Filter, matches
from .grid import Grid, column_letter
from .query import Query
from .record import encode, encode_many
from .store import GridStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


def row_range(table: str, row: int, width: int) -> str:
    """A1 range covering ``width`` cells of sheet row ``row`` (1-based)."""
    end = column_letter(width - 1)
    return f"{table}!A{row}:{end}{row}"


@dataclass
class Table:
    """A sheet used as a table; the first row is the header."""

    store: GridStore
    name: str

    async def _call(self, action: str, func: Callable[..., Awaitable[T]], *args: Any) -> T:
        try:
            return await func(*args)
        except QuireError:
            raise
        except Exception as exc:
            raise TransportError(f"failed to {action} for table '{self.name}': {exc}") from exc

    async def read_grid(self) -> Grid:
        """The whole sheet, header first."""
        grid = await self._call("read data", self.store.read, self.name)
        return list(grid or [])

    async def header(self) -> List[Any]:
        grid = await self.read_grid()
        return list(grid[0]) if grid else []

    def query(self) -> Query:
        return Query(self)

    async def insert(self, records: Any) -> None:
        """Append records after the last occupied row."""
        values = encode_many(records)
        if not values:
            logger.debug("insert into '%s' called with no records", self.name)
            return

        await self._call("append rows", self.store.append, f"{self.name}!A1", values)
        logger.debug("Appended %d rows to '%s'", len(values), self.name)

    async def update(self, row_index: int, record: Any) -> None:
        """Overwrite data row ``row_index`` with ``record``."""
        if row_index < 0:
            raise RangeError("row index cannot be negative")

        values = encode(record)
        range_spec = row_range(self.name, row_index + 2, len(values))
        await self._call("write row", self.store.write, range_spec, [values])

    async def _matching_positions(self, flt: Filter) -> List[int]:
        grid = await self.read_grid()
        if len(grid) < 2:
            return []

        header = grid[0]
        return [i for i, row in enumerate(grid[1:]) if matches(row, header, flt)]

    async def update_where(self, column: str, operator: str, value: Any, record: Any) -> int:
        """Overwrite every row matching the condition. Returns rows written.

        Writes are issued one row at a time; a failure stops the loop and
        earlier writes stay applied.
        """
        positions = await self._matching_positions(Filter(column, operator, value))
        if not positions:
            return 0

        values = encode(record)
        for position in positions:
            range_spec = row_range(self.name, position + 2, len(values))
            try:
                await self.store.write(range_spec, [values])
            except QuireError:
                raise
            except Exception as exc:
                raise TransportError(
                    f"failed to update row {position} for table '{self.name}': {exc}"
                ) from exc

        logger.debug("Updated %d rows in '%s' where %s %s %r", len(positions), self.name, column, operator, value)
        return len(positions)

    async def delete(self, row_index: int) -> None:
        """Delete data row ``row_index``."""
        if row_index < 0:
            raise RangeError("row index cannot be negative")

        await self._call("delete row", self.store.delete_rows, self.name, [row_index + 1])

    async def delete_where(self, column: str, operator: str, value: Any) -> int:
        """Delete every row matching the condition in one batch. Returns the count."""
        positions = await self._matching_positions(Filter(column, operator, value))
        if not positions:
            return 0

        # Descending: a deletion only shifts the rows below it.
        indices = sorted((p + 1 for p in positions), reverse=True)
        await self._call("delete rows", self.store.delete_rows, self.name, indices)

        logger.debug("Deleted %d rows from '%s' where %s %s %r", len(indices), self.name, column, operator, value)
        return len(indices)


__all__ = ["Table", "column_letter", "row_range"]
