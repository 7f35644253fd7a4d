# Quire Sheets
# File: tests/test_tasks.py
# Version: v1

from __future__ import annotations

import pytest

from quire.db import DB
from quire.errors import ConfigError, TransportError
from quire.store import MemoryGridStore
from quire.tools import tasks

ENV_VARS = (
    "QUIRE_SPREADSHEET_ID",
    "QUIRE_ACCESS_TOKEN",
    "QUIRE_CLIENT_ID",
    "QUIRE_CLIENT_SECRET",
    "QUIRE_REFRESH_TOKEN",
    "QUIRE_CREDENTIALS_FILE",
    "QUIRE_MOCK_MODE",
    "QUIRE_MAX_ROWS_QUERY",
)


class DummyServer:
    def __init__(self) -> None:
        self.names = []

    def tool(self, *args, **kwargs):
        def decorator(fn):
            self.names.append(kwargs["name"])
            return fn

        return decorator


@pytest.fixture(autouse=True)
def mock_mode(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("QUIRE_MOCK_MODE", "1")
    tasks.reset_mock_store()
    yield
    tasks.reset_mock_store()


def _users():
    return tasks._mock_store().sheets["Users"]


@pytest.mark.asyncio
async def test_ping_in_mock_mode():
    assert await tasks.ping() == {"ok": True}


@pytest.mark.asyncio
async def test_describe_table():
    out = await tasks.describe_table("Users")

    assert out["ok"] is True
    assert out["columns"] == ["ID", "Name", "Email", "Age"]
    assert out["row_count"] == 3


@pytest.mark.asyncio
async def test_query_table_with_filter():
    out = await tasks.query_table(
        "Users",
        filters=[{"column": "Age", "operator": ">=", "value": 28}],
    )

    assert out["ok"] is True
    assert out["columns"] == ["ID", "Name", "Email", "Age"]
    assert [row[1] for row in out["rows"]] == ["Alice", "Charlie"]
    assert out["truncated"] is False
    assert out["meta"]["matched_count"] == 2


@pytest.mark.asyncio
async def test_query_table_default_operator_is_equality():
    out = await tasks.query_table("Orders", filters=[{"column": "UserID", "value": 1}])

    assert [row[0] for row in out["rows"]] == ["O-1001", "O-1003"]


@pytest.mark.asyncio
async def test_query_respects_env_row_cap(monkeypatch):
    monkeypatch.setenv("QUIRE_MAX_ROWS_QUERY", "2")

    out = await tasks.query_table("Users", limit=999)

    assert len(out["rows"]) == 2
    assert out["truncated"] is True
    assert out["meta"]["requested_limit"] == 999
    assert out["meta"]["effective_limit"] == 2
    assert out["meta"]["cap_limit"] == 2
    assert out["meta"]["cap_applied"] is True


@pytest.mark.asyncio
async def test_query_rejects_malformed_filters():
    out = await tasks.query_table("Users", filters=[{"operator": "="}])

    assert out["ok"] is False
    assert out["error"]["code"] == "INVALID_ARGUMENT"
    assert out["error"]["details"] == {"position": 0}


@pytest.mark.asyncio
async def test_insert_rows_maps_keys_by_column():
    out = await tasks.insert_rows(
        "Users",
        rows=[{"ID": 4, "Name": "Dana", "Age": 41, "Nickname": "ignored"}],
    )

    assert out == {"ok": True, "table": "Users", "inserted": 1}
    assert _users()[-1] == [4, "Dana", "", 41]


@pytest.mark.asyncio
async def test_insert_rows_rejects_non_objects():
    out = await tasks.insert_rows("Users", rows=[["4", "Dana"]])

    assert out["error"]["code"] == "INVALID_ARGUMENT"
    assert len(_users()) == 4


@pytest.mark.asyncio
async def test_update_row_keeps_omitted_columns():
    out = await tasks.update_row("Users", row_index=1, values={"Age": 26})

    assert out["ok"] is True
    assert _users()[2] == [2, "Bob", "bob@example.com", 26]


@pytest.mark.asyncio
async def test_update_row_negative_index():
    out = await tasks.update_row("Users", row_index=-1, values={"Age": 1})

    assert out["ok"] is False
    assert out["error"]["code"] == "RANGE_ERROR"


@pytest.mark.asyncio
async def test_update_where():
    out = await tasks.update_where("Users", "Name", "contains", "li", {"Email": "hidden@example.com"})

    assert out == {"ok": True, "table": "Users", "updated": 2}
    assert [row[2] for row in _users()[1:]] == [
        "hidden@example.com",
        "bob@example.com",
        "hidden@example.com",
    ]


@pytest.mark.asyncio
async def test_delete_row_and_delete_where():
    out = await tasks.delete_row("Users", row_index=0)
    assert out["deleted"] == 1
    assert [row[1] for row in _users()[1:]] == ["Bob", "Charlie"]

    out = await tasks.delete_where("Users", "Age", "<", 31)
    assert out == {"ok": True, "table": "Users", "deleted": 1}
    assert [row[1] for row in _users()[1:]] == ["Charlie"]


@pytest.mark.asyncio
async def test_unknown_table_is_backend_error():
    out = await tasks.describe_table("Nope")

    assert out["ok"] is False
    assert out["error"]["code"] == "BACKEND_ERROR"


@pytest.mark.asyncio
async def test_missing_config_is_config_error(monkeypatch):
    monkeypatch.delenv("QUIRE_MOCK_MODE", raising=False)

    out = await tasks.ping()

    assert out["ok"] is False
    assert out["error"]["code"] == "CONFIG_ERROR"


@pytest.mark.asyncio
async def test_tasks_use_make_db(monkeypatch):
    class BrokenStore(MemoryGridStore):
        async def read(self, range_spec):
            raise TransportError("quota exceeded")

    monkeypatch.setattr(tasks, "_make_db", lambda: DB(store=BrokenStore()))

    out = await tasks.query_table("Users")

    assert out["ok"] is False
    assert out["error"] == {"code": "BACKEND_ERROR", "message": "quota exceeded"}


@pytest.mark.asyncio
async def test_config_info_is_redacted(monkeypatch):
    monkeypatch.setenv("QUIRE_CLIENT_SECRET", "s3cr3t")
    monkeypatch.setenv("QUIRE_SPREADSHEET_ID", "sheet-123")

    out = await tasks.get_config_info()

    assert out["ok"] is True
    assert out["config"]["spreadsheet_id"] == "sheet-123"
    assert out["config"]["oauth"]["client_secret_configured"] is True
    assert "s3cr3t" not in repr(out)


@pytest.mark.asyncio
async def test_diagnostics_in_mock_mode():
    diag = await tasks.diagnostics()

    assert diag["ok"] is True
    assert diag["mock_mode"] is True
    assert [c["name"] for c in diag["checks"]] == ["db_init", "ping"]
    assert "version" in diag["meta"]


@pytest.mark.asyncio
async def test_diagnostics_without_config(monkeypatch):
    monkeypatch.delenv("QUIRE_MOCK_MODE", raising=False)

    diag = await tasks.diagnostics()

    assert diag["ok"] is False
    assert diag["checks"][0]["name"] == "db_init"
    assert diag["checks"][0]["error"]["code"] == "CONFIG_ERROR"


def test_register_tools():
    server = DummyServer()
    tasks.register_tools(server)

    assert server.names == [
        "quire_ping",
        "quire_get_config_info",
        "quire_diagnostics",
        "quire_describe_table",
        "quire_query_table",
        "quire_insert_rows",
        "quire_update_row",
        "quire_update_where",
        "quire_delete_row",
        "quire_delete_where",
    ]

    with pytest.raises(ValueError):
        tasks.register_tools(None)


@pytest.mark.asyncio
async def test_store_config_errors_keep_their_code(monkeypatch):
    class UnauthenticatedStore(MemoryGridStore):
        async def read(self, range_spec):
            raise ConfigError("OAuth configuration is incomplete")

    monkeypatch.setattr(tasks, "_make_db", lambda: DB(store=UnauthenticatedStore()))

    out = await tasks.describe_table("Users")

    assert out["error"]["code"] == "CONFIG_ERROR"


@pytest.mark.asyncio
async def test_mock_mode_follows_config(monkeypatch):
    monkeypatch.setenv("QUIRE_MOCK_MODE", "off")

    out = await tasks.get_config_info()

    assert out["config"]["mock_mode"] is False
    assert (await tasks.ping())["error"]["code"] == "CONFIG_ERROR"
