# Quire Sheets
# File: tests/test_db.py
# Version: v1

from __future__ import annotations

import asyncio
from dataclasses import dataclass

import pytest

from quire import DB, MemoryGridStore, QuireConfig, column
from quire.client import SheetsClient
from quire.errors import ConfigError


@dataclass
class Order:
    order_id: str = column("OrderID")
    amount: float = column("Amount")


@dataclass
class User:
    id: int = column("ID")
    name: str = column("Name")


def test_new_requires_spreadsheet_id() -> None:
    with pytest.raises(ConfigError):
        DB.new(QuireConfig(spreadsheet_id=None, access_token="tok"))


def test_new_requires_credentials() -> None:
    with pytest.raises(ConfigError):
        DB.new(QuireConfig(spreadsheet_id="sheet-123"))


def test_new_builds_sheets_client() -> None:
    db = DB.new(QuireConfig(spreadsheet_id="sheet-123", access_token="tok"))

    assert isinstance(db.store, SheetsClient)
    assert db.spreadsheet_id == "sheet-123"


def test_table_binds_name_and_store() -> None:
    store = MemoryGridStore()
    table = DB(store=store).table("Users")

    assert table.name == "Users"
    assert table.store is store


@pytest.mark.asyncio
async def test_context_manager_and_ping() -> None:
    async with DB(store=MemoryGridStore()) as db:
        assert await db.ping() is True


@pytest.mark.asyncio
async def test_tables_can_be_used_concurrently() -> None:
    store = MemoryGridStore(
        {
            "Users": [["ID", "Name"], [1, "Alice"], [2, "Bob"]],
            "Orders": [["OrderID", "Amount"], ["O-1", "12.5"], ["O-2", "7"]],
        }
    )
    db = DB(store=store)

    users, orders = await asyncio.gather(
        db.table("Users").query().where("ID", ">", 1).get(User),
        db.table("Orders").query().get(Order),
    )

    assert users == [User(2, "Bob")]
    assert orders == [Order("O-1", 12.5), Order("O-2", 7.0)]
