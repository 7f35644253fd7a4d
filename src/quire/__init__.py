# Quire Sheets
# File: __init__.py
# Version: v1

"""Quire: use a Google spreadsheet as a small typed database.

Each sheet is a table whose first row is the header; dataclass records map
onto it column by column.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from .coerce import Unsigned
from .config import QuireConfig
from .db import DB
from .errors import ConfigError, QuireError, RangeError, ShapeError, TransportError
from .filters import Filter
from .models import QueryResult
from .query import Query
from .record import IGNORE, column
from .store import GridStore, MemoryGridStore
from .table import Table

__all__ = [
    "__version__",
    "DB",
    "Table",
    "Query",
    "QueryResult",
    "Filter",
    "GridStore",
    "MemoryGridStore",
    "QuireConfig",
    "QuireError",
    "ConfigError",
    "ShapeError",
    "RangeError",
    "TransportError",
    "Unsigned",
    "IGNORE",
    "column",
]


def _resolve_version() -> str:
    """Resolve installed distribution version.

    Falls back to a reasonable default when running from source without an
    installed distribution.
    """
    try:
        return version("quire-sheets")
    except PackageNotFoundError:
        return "0.1.0"


__version__ = _resolve_version()
