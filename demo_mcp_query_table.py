# demo_mcp_query_table.py
# Version: v1

r"""
Demo: call the MCP task `query_table` to filter rows of a sheet.

Usage (PowerShell):

  $env:QUIRE_SPREADSHEET_ID = "<spreadsheet id>"
  $env:QUIRE_ACCESS_TOKEN   = "<oauth access token>"

  # Defaults (Users, top 10, no filter)
  python demo_mcp_query_table.py

  # With a filter:
  $env:QUIRE_TEST_TABLE    = "Users"
  $env:QUIRE_TEST_COLUMN   = "Age"
  $env:QUIRE_TEST_OPERATOR = ">="
  $env:QUIRE_TEST_VALUE    = "28"
  $env:QUIRE_TEST_LIMIT    = "5"

  python demo_mcp_query_table.py

Set QUIRE_MOCK_MODE=1 to run against the built-in demo spreadsheet.
"""

from __future__ import annotations

import asyncio
import os
from typing import Any, Dict, List, Optional

from quire.tools.tasks import query_table


# Read settings from environment, with sensible defaults
TABLE = os.environ.get("QUIRE_TEST_TABLE", "Users")
LIMIT = int(os.environ.get("QUIRE_TEST_LIMIT", "10"))

COLUMN = os.environ.get("QUIRE_TEST_COLUMN") or None
OPERATOR = os.environ.get("QUIRE_TEST_OPERATOR") or "="
VALUE = os.environ.get("QUIRE_TEST_VALUE", "")

if COLUMN:
    FILTERS: Optional[List[Dict[str, Any]]] = [
        {"column": COLUMN, "operator": OPERATOR, "value": VALUE}
    ]
else:
    FILTERS = None


async def main() -> None:
    print("Calling MCP task: query_table()")
    print(f"Table:   {TABLE}")
    print(f"Limit:   {LIMIT}")
    print(f"Filters: {FILTERS!r}")

    result: Dict[str, Any] = await query_table(
        table=TABLE,
        filters=FILTERS,
        limit=LIMIT,
    )

    if not result.get("ok"):
        print("\nQuery failed:", result.get("error"))
        return

    columns: List[str] = result.get("columns", []) or []
    rows: List[List[Any]] = result.get("rows", []) or []
    truncated: bool = bool(result.get("truncated", False))
    meta: Dict[str, Any] = result.get("meta", {}) or {}

    print("\nColumns:", columns)
    print("Rows returned:", len(rows))
    print("Truncated:", truncated)
    print("Meta:", meta)

    if not rows:
        print("\nNo rows returned - check your table name and filter.")
        return

    print("\nSample rows:")
    for i, row in enumerate(rows, start=1):
        print(f"  Row {i}:", row)


if __name__ == "__main__":
    asyncio.run(main())
