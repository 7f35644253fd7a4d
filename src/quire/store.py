# Quire Sheets
# File: store.py
# Version: v1

"""The GridStore seam and an in-memory implementation.

``GridStore`` is everything the table layer needs from a spreadsheet
backend. ``SheetsClient`` (see ``client.py``) talks to the Google Sheets API;
``MemoryGridStore`` keeps grids in a dict and backs mock mode and tests.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol, Sequence, Tuple, runtime_checkable

from .errors import TransportError
from .grid import Grid, Row, letter_index


@runtime_checkable
class GridStore(Protocol):
    """Rectangular cell access to the sheets of one spreadsheet.

    Range specs look like ``"Users"`` (whole sheet), ``"Users!A1"`` or
    ``"Users!A3:D3"``. Row indices given to ``delete_rows`` are 0-based sheet
    rows and are deleted one at a time in the order given.
    """

    async def read(self, range_spec: str) -> Grid: ...

    async def write(self, range_spec: str, rows: Sequence[Row]) -> None: ...

    async def append(self, range_spec: str, rows: Sequence[Row]) -> None: ...

    async def clear(self, range_spec: str) -> None: ...

    async def delete_rows(self, table: str, indices: Sequence[int]) -> None: ...


_RANGE_RE = re.compile(
    r"^(?P<table>.+?)"
    r"(?:!(?P<c0>[A-Za-z]+)(?P<r0>[0-9]+)(?::(?P<c1>[A-Za-z]+)(?P<r1>[0-9]+))?)?$"
)


@dataclass(frozen=True)
class CellRange:
    """A parsed range spec. Coordinates are 0-based; ``None`` means whole sheet."""

    table: str
    start: Optional[Tuple[int, int]] = None
    end: Optional[Tuple[int, int]] = None


def parse_range(range_spec: str) -> CellRange:
    match = _RANGE_RE.match(range_spec or "")
    if not match:
        raise TransportError(f"Unable to parse range '{range_spec}'.")

    table = match.group("table")
    if len(table) >= 2 and table[0] == table[-1] == "'":
        table = table[1:-1].replace("''", "'")

    if match.group("c0") is None:
        return CellRange(table=table)

    start = (int(match.group("r0")) - 1, letter_index(match.group("c0")))
    end = start
    if match.group("c1") is not None:
        end = (int(match.group("r1")) - 1, letter_index(match.group("c1")))
    if start[0] < 0 or end[0] < 0:
        raise TransportError(f"Row numbers in range '{range_spec}' start at 1.")
    return CellRange(table=table, start=start, end=end)


@dataclass
class StoreCall:
    """One recorded call against a MemoryGridStore."""

    op: str
    target: str
    rows: Optional[List[Row]] = None
    indices: Optional[List[int]] = None


class MemoryGridStore:
    """In-process GridStore over ``{sheet name: grid}``.

    Every call is recorded in ``calls``. Setting ``failures[op]`` to an
    exception makes that operation raise it (after recording the call).
    """

    def __init__(self, sheets: Optional[Dict[str, Grid]] = None) -> None:
        self.sheets: Dict[str, Grid] = {
            name: [list(row) for row in grid] for name, grid in (sheets or {}).items()
        }
        self.calls: List[StoreCall] = []
        self.failures: Dict[str, Exception] = {}

    def calls_for(self, op: str) -> List[StoreCall]:
        return [c for c in self.calls if c.op == op]

    def reset_calls(self) -> None:
        self.calls = []

    def _record(self, call: StoreCall) -> None:
        self.calls.append(call)
        failure = self.failures.get(call.op)
        if failure is not None:
            raise failure

    def _sheet(self, table: str) -> Grid:
        if table not in self.sheets:
            raise TransportError(f"Unable to parse range: sheet '{table}' does not exist.")
        return self.sheets[table]

    async def ping(self) -> bool:
        return True

    async def read(self, range_spec: str) -> Grid:
        self._record(StoreCall(op="read", target=range_spec))
        rng = parse_range(range_spec)
        grid = self._sheet(rng.table)

        if rng.start is None:
            return [list(row) for row in grid]

        (r0, c0), (r1, c1) = rng.start, rng.end
        return [list(row[c0 : c1 + 1]) for row in grid[r0 : r1 + 1]]

    async def write(self, range_spec: str, rows: Sequence[Row]) -> None:
        self._record(StoreCall(op="write", target=range_spec, rows=[list(r) for r in rows]))
        rng = parse_range(range_spec)
        grid = self._sheet(rng.table)
        r0, c0 = rng.start or (0, 0)

        for offset, values in enumerate(rows):
            r = r0 + offset
            while len(grid) <= r:
                grid.append([])
            target = grid[r]
            for col_offset, value in enumerate(values):
                c = c0 + col_offset
                # None leaves the existing cell untouched, like the Sheets API.
                if value is None:
                    continue
                while len(target) <= c:
                    target.append("")
                target[c] = value

    async def append(self, range_spec: str, rows: Sequence[Row]) -> None:
        self._record(StoreCall(op="append", target=range_spec, rows=[list(r) for r in rows]))
        rng = parse_range(range_spec)
        grid = self.sheets.setdefault(rng.table, [])
        for values in rows:
            grid.append(["" if v is None else v for v in values])

    async def clear(self, range_spec: str) -> None:
        self._record(StoreCall(op="clear", target=range_spec))
        rng = parse_range(range_spec)
        grid = self._sheet(rng.table)

        if rng.start is None:
            grid.clear()
            return

        (r0, c0), (r1, c1) = rng.start, rng.end
        for row in grid[r0 : r1 + 1]:
            for c in range(c0, min(c1 + 1, len(row))):
                row[c] = ""

    async def delete_rows(self, table: str, indices: Sequence[int]) -> None:
        self._record(StoreCall(op="delete_rows", target=table, indices=list(indices)))
        grid = self._sheet(table)
        for index in indices:
            if 0 <= index < len(grid):
                del grid[index]

