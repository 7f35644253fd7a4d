# Quire Sheets
# File: models.py
# Version: v1

"""Result models shared by the query pipeline and the MCP tools."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class QueryResult:
    """Header plus the raw rows that survived filtering and limiting."""

    columns: List[Any]
    rows: List[List[Any]]

    # True if the limit dropped matching rows.
    truncated: bool = False

    # Extra metadata: table name, row counts, applied limit, etc.
    meta: Dict[str, Any] = field(default_factory=dict)

    def as_dicts(self) -> List[Dict[str, Any]]:
        """Rows as column -> cell mappings (missing trailing cells omitted)."""
        out: List[Dict[str, Any]] = []
        for row in self.rows:
            out.append({str(col): row[i] for i, col in enumerate(self.columns) if i < len(row)})
        return out
