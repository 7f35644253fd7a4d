# Quire Sheets
# File: tools/tasks.py
# Version: v1
#
# NOTE: This module is the single place where we define the business logic
# that is exposed as MCP tools.  The stdio transport simply calls
# `register_tools(server)` to wire these up.

from __future__ import annotations

import logging
import os
import time
from typing import Any, Dict, List, Optional

from .. import __version__
from ..coerce import cell_text
from ..config import QuireConfig
from ..db import DB
from ..errors import ConfigError, QuireError, RangeError, ShapeError, TransportError
from ..record import record_type_for, shape_of
from ..store import MemoryGridStore

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers (error shape, mock store)
# ---------------------------------------------------------------------------


def _make_error(
    code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Small, LLM-friendly error shape shared by all tools."""
    err: Dict[str, Any] = {"code": code, "message": message}
    if details:
        err["details"] = details
    return err


def _cap_int(value: int, cap: int, min_value: int = 1) -> tuple[int, bool]:
    """Clamp an integer to [min_value, cap]. Returns (effective, cap_applied)."""
    try:
        v = int(value)
    except (TypeError, ValueError):
        v = min_value

    if v < min_value:
        v = min_value
        return v, True

    if cap > 0 and v > cap:
        return cap, True

    return v, False


_ERROR_CODES = (
    (ConfigError, "CONFIG_ERROR"),
    (ShapeError, "SHAPE_ERROR"),
    (RangeError, "RANGE_ERROR"),
    (TransportError, "BACKEND_ERROR"),
)


def _failure(tool: str, exc: QuireError) -> Dict[str, Any]:
    code = "QUIRE_ERROR"
    for exc_type, exc_code in _ERROR_CODES:
        if isinstance(exc, exc_type):
            code = exc_code
            break

    logger.warning("Tool %s failed with %s: %s", tool, code, exc)
    return {"ok": False, "error": _make_error(code, str(exc))}


def _invalid(message: str, details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return {"ok": False, "error": _make_error("INVALID_ARGUMENT", message, details)}


def _demo_sheets() -> Dict[str, List[List[Any]]]:
    return {
        "Users": [
            ["ID", "Name", "Email", "Age"],
            [1, "Alice", "alice@example.com", 30],
            [2, "Bob", "bob@example.com", 25],
            [3, "Charlie", "charlie@example.com", 35],
        ],
        "Orders": [
            ["OrderID", "UserID", "Product", "Amount", "Paid"],
            ["O-1001", 1, "Notebook", 12.5, True],
            ["O-1002", 3, "Desk lamp", 39.99, False],
            ["O-1003", 1, "Pencil case", 7, True],
        ],
    }


_MOCK_STORE: MemoryGridStore | None = None


def _mock_store() -> MemoryGridStore:
    """Lazily create the in-memory spreadsheet used in mock mode."""
    global _MOCK_STORE

    if _MOCK_STORE is None:
        _MOCK_STORE = MemoryGridStore(_demo_sheets())
    return _MOCK_STORE


def reset_mock_store() -> None:
    """Restore the mock spreadsheet to its demo contents."""
    global _MOCK_STORE
    _MOCK_STORE = None


def _make_db(cfg: Optional[QuireConfig] = None) -> DB:
    """Create a DB from environment variables.

    If QUIRE_MOCK_MODE is truthy, the DB is backed by an in-process demo
    spreadsheet instead of the Google Sheets API.

    Note: Callers should prefer invoking this with *no arguments* to keep
    unit tests monkeypatch-friendly (tests often replace _make_db with
    a no-arg lambda).
    """
    cfg = cfg or QuireConfig.from_env()

    if cfg.mock_mode:
        return DB(store=_mock_store(), spreadsheet_id="MOCK")

    return DB.new(cfg)


def _record_from(record_type: type, values: Dict[str, Any]) -> Any:
    """Map a JSON object keyed by column name onto a header record."""
    kwargs = {
        binding.field_name: values[binding.column]
        for binding in shape_of(record_type)
        if binding.column in values
    }
    return record_type(**kwargs)


async def _header_record_type(db: DB, table: str) -> type:
    header = await db.table(table).header()
    if not header:
        raise ShapeError(f"table '{table}' has no header row")
    return record_type_for(header)


def _check_objects(values: Any, name: str) -> Optional[Dict[str, Any]]:
    if not isinstance(values, dict):
        return _invalid(f"'{name}' must be a JSON object keyed by column name")
    return None


# ---------------------------------------------------------------------------
# Library-style tasks
# ---------------------------------------------------------------------------


async def ping() -> Dict[str, Any]:
    try:
        db = _make_db()
        ok = await db.ping()
    except QuireError as exc:
        return _failure("ping", exc)
    return {"ok": bool(ok)}


def _collect_config_info() -> Dict[str, Any]:
    """Redacted snapshot of spreadsheet / OAuth configuration from env."""
    cfg = QuireConfig.from_env()

    return {
        "spreadsheet_id": cfg.spreadsheet_id,
        "api_base_url": cfg.api_base_url,
        "value_render_option": cfg.value_render_option,
        "mock_mode": bool(cfg.mock_mode),
        "verify_tls": bool(cfg.verify_tls),
        "timeout_seconds": cfg.timeout_seconds,
        "oauth": {
            "token_url": cfg.token_url,
            "access_token_configured": bool(cfg.access_token),
            "client_id_configured": bool(cfg.client_id),
            "client_secret_configured": bool(cfg.client_secret),
            "refresh_token_configured": bool(cfg.refresh_token),
            "service_account_configured": bool(cfg.uses_service_account),
            "credentials_file_configured": bool(os.getenv("QUIRE_CREDENTIALS_FILE")),
        },
        "limits": {
            "max_rows_query": cfg.max_rows_query,
        },
    }


async def get_config_info() -> Dict[str, Any]:
    try:
        info = _collect_config_info()
    except QuireError as exc:
        return _failure("get_config_info", exc)
    return {"ok": True, "config": info}


async def diagnostics() -> Dict[str, Any]:
    started = time.time()

    try:
        config_info = _collect_config_info()
    except QuireError as exc:
        return _failure("diagnostics", exc)

    checks: List[Dict[str, Any]] = []
    overall_ok = True

    # DB init
    t0 = time.time()
    try:
        db = _make_db()
        checks.append(
            {"name": "db_init", "ok": True, "error": None, "elapsed_ms": int((time.time() - t0) * 1000)}
        )
    except QuireError as exc:
        checks.append(
            {
                "name": "db_init",
                "ok": False,
                "error": _make_error("CONFIG_ERROR", str(exc)),
                "elapsed_ms": int((time.time() - t0) * 1000),
            }
        )
        elapsed_ms = int((time.time() - started) * 1000)
        return {
            "ok": False,
            "mock_mode": config_info["mock_mode"],
            "config": config_info,
            "checks": checks,
            "meta": {"elapsed_ms": elapsed_ms, "version": __version__},
        }

    # Ping
    t0 = time.time()
    try:
        ok_ping = await db.ping()
        if ok_ping:
            checks.append({"name": "ping", "ok": True, "error": None, "elapsed_ms": int((time.time() - t0) * 1000)})
        else:
            overall_ok = False
            checks.append(
                {
                    "name": "ping",
                    "ok": False,
                    "error": _make_error("BACKEND_ERROR", "Ping returned a falsy result."),
                    "elapsed_ms": int((time.time() - t0) * 1000),
                }
            )
    except QuireError as exc:
        overall_ok = False
        checks.append(
            {
                "name": "ping",
                "ok": False,
                "error": _make_error("BACKEND_ERROR", str(exc)),
                "elapsed_ms": int((time.time() - t0) * 1000),
            }
        )

    elapsed_ms = int((time.time() - started) * 1000)

    return {
        "ok": overall_ok,
        "mock_mode": config_info["mock_mode"],
        "config": config_info,
        "checks": checks,
        "meta": {"elapsed_ms": elapsed_ms, "version": __version__},
    }


async def describe_table(table: str) -> Dict[str, Any]:
    try:
        db = _make_db()
        grid = await db.table(table).read_grid()
    except QuireError as exc:
        return _failure("describe_table", exc)

    columns = [cell_text(c) for c in grid[0]] if grid else []
    return {
        "ok": True,
        "table": table,
        "columns": columns,
        "row_count": max(len(grid) - 1, 0),
    }


async def query_table(
    table: str,
    filters: Optional[List[Dict[str, Any]]] = None,
    limit: int = 50,
    order_by: Optional[str] = None,
    descending: bool = False,
) -> Dict[str, Any]:
    try:
        cfg = QuireConfig.from_env()
    except QuireError as exc:
        return _failure("query_table", exc)

    requested_limit = limit
    effective_limit, cap_applied = _cap_int(limit, cfg.max_rows_query, min_value=1)

    for position, flt in enumerate(filters or []):
        if not isinstance(flt, dict) or not flt.get("column"):
            return _invalid(
                "each filter must be an object with 'column', 'operator' and 'value'",
                {"position": position},
            )

    try:
        db = _make_db()
        query = db.table(table).query()
        for flt in filters or []:
            query.where(str(flt["column"]), str(flt.get("operator") or "="), flt.get("value"))
        query.limit(effective_limit)
        if order_by:
            query.order_by(order_by, descending=bool(descending))

        result = await query.fetch()
    except QuireError as exc:
        return _failure("query_table", exc)

    meta = dict(result.meta)
    meta.setdefault("requested_limit", requested_limit)
    meta.setdefault("effective_limit", effective_limit)
    meta.setdefault("cap_limit", cfg.max_rows_query)
    meta.setdefault("cap_applied", bool(cap_applied))

    return {
        "ok": True,
        "columns": [cell_text(c) for c in result.columns],
        "rows": result.rows,
        "truncated": result.truncated,
        "meta": meta,
    }


async def insert_rows(table: str, rows: List[Dict[str, Any]]) -> Dict[str, Any]:
    if not isinstance(rows, list):
        return _invalid("'rows' must be a list of JSON objects keyed by column name")
    for position, values in enumerate(rows):
        if not isinstance(values, dict):
            return _invalid(
                "'rows' must be a list of JSON objects keyed by column name",
                {"position": position},
            )

    try:
        db = _make_db()
        record_type = await _header_record_type(db, table)
        records = [_record_from(record_type, values) for values in rows]
        await db.table(table).insert(records)
    except QuireError as exc:
        return _failure("insert_rows", exc)

    return {"ok": True, "table": table, "inserted": len(records)}


async def update_row(table: str, row_index: int, values: Dict[str, Any]) -> Dict[str, Any]:
    invalid = _check_objects(values, "values")
    if invalid:
        return invalid

    try:
        db = _make_db()
        record_type = await _header_record_type(db, table)
        await db.table(table).update(int(row_index), _record_from(record_type, values))
    except QuireError as exc:
        return _failure("update_row", exc)

    return {"ok": True, "table": table, "row_index": int(row_index), "updated": 1}


async def update_where(
    table: str,
    column: str,
    operator: str,
    value: Any,
    values: Dict[str, Any],
) -> Dict[str, Any]:
    invalid = _check_objects(values, "values")
    if invalid:
        return invalid

    try:
        db = _make_db()
        record_type = await _header_record_type(db, table)
        count = await db.table(table).update_where(
            column, operator, value, _record_from(record_type, values)
        )
    except QuireError as exc:
        return _failure("update_where", exc)

    return {"ok": True, "table": table, "updated": count}


async def delete_row(table: str, row_index: int) -> Dict[str, Any]:
    try:
        db = _make_db()
        await db.table(table).delete(int(row_index))
    except QuireError as exc:
        return _failure("delete_row", exc)

    return {"ok": True, "table": table, "row_index": int(row_index), "deleted": 1}


async def delete_where(table: str, column: str, operator: str, value: Any) -> Dict[str, Any]:
    try:
        db = _make_db()
        count = await db.table(table).delete_where(column, operator, value)
    except QuireError as exc:
        return _failure("delete_where", exc)

    return {"ok": True, "table": table, "deleted": count}


# ---------------------------------------------------------------------------
# MCP tool registration
# ---------------------------------------------------------------------------


def register_tools(server: Any) -> None:
    """Register MCP tools on an MCP Server-like instance."""
    if server is None or not hasattr(server, "tool"):
        raise ValueError(
            "register_tools(server) expects an MCP Server-like object that exposes a .tool() decorator."
        )

    @server.tool(name="quire_ping", description="Basic health check for the Quire Sheets MCP server.")
    async def mcp_ping() -> Dict[str, Any]:
        return await ping()

    @server.tool(
        name="quire_get_config_info",
        description="Show the redacted spreadsheet and OAuth configuration in use.",
    )
    async def mcp_get_config_info() -> Dict[str, Any]:
        return await get_config_info()

    @server.tool(
        name="quire_diagnostics",
        description="Run configuration and connectivity checks against the spreadsheet.",
    )
    async def mcp_diagnostics() -> Dict[str, Any]:
        return await diagnostics()

    @server.tool(
        name="quire_describe_table",
        description="List the header columns and data row count of a sheet.",
    )
    async def mcp_describe_table(table: str) -> Dict[str, Any]:
        return await describe_table(table=table)

    @server.tool(
        name="quire_query_table",
        description=(
            "Query rows of a sheet. Filters are objects with 'column', 'operator' "
            "(=, ==, !=, >, >=, <, <=, contains, like) and 'value'; all filters must match."
        ),
    )
    async def mcp_query_table(
        table: str,
        filters: Optional[List[Dict[str, Any]]] = None,
        limit: int = 50,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> Dict[str, Any]:
        return await query_table(
            table=table,
            filters=filters,
            limit=limit,
            order_by=order_by,
            descending=descending,
        )

    @server.tool(
        name="quire_insert_rows",
        description="Append rows to a sheet. Each row is an object keyed by column name.",
    )
    async def mcp_insert_rows(table: str, rows: List[Dict[str, Any]]) -> Dict[str, Any]:
        return await insert_rows(table=table, rows=rows)

    @server.tool(
        name="quire_update_row",
        description="Overwrite one data row (0-based, header excluded). Omitted columns keep their values.",
    )
    async def mcp_update_row(table: str, row_index: int, values: Dict[str, Any]) -> Dict[str, Any]:
        return await update_row(table=table, row_index=row_index, values=values)

    @server.tool(
        name="quire_update_where",
        description="Overwrite every row where 'column operator value' holds.",
    )
    async def mcp_update_where(
        table: str,
        column: str,
        operator: str,
        value: Any,
        values: Dict[str, Any],
    ) -> Dict[str, Any]:
        return await update_where(
            table=table, column=column, operator=operator, value=value, values=values
        )

    @server.tool(
        name="quire_delete_row",
        description="Delete one data row (0-based, header excluded).",
    )
    async def mcp_delete_row(table: str, row_index: int) -> Dict[str, Any]:
        return await delete_row(table=table, row_index=row_index)

    @server.tool(
        name="quire_delete_where",
        description="Delete every row where 'column operator value' holds.",
    )
    async def mcp_delete_where(table: str, column: str, operator: str, value: Any) -> Dict[str, Any]:
        return await delete_where(table=table, column=column, operator=operator, value=value)
