# Quire Sheets
# File: db.py
# Version: v1

"""Database handle: one spreadsheet, one GridStore, many tables."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from .auth import OAuthClient
from .client import SheetsClient
from .config import QuireConfig
from .errors import ConfigError
from .store import GridStore
from .table import Table

logger = logging.getLogger(__name__)


@dataclass
class DB:
    """A spreadsheet treated as a database of sheet-tables."""

    store: GridStore
    spreadsheet_id: str = ""

    @classmethod
    def new(cls, config: QuireConfig) -> "DB":
        """Build a DB that talks to the Google Sheets API."""
        if not config.spreadsheet_id:
            raise ConfigError("spreadsheet ID is required (set QUIRE_SPREADSHEET_ID)")

        if not config.has_credentials:
            raise ConfigError(
                "credentials are required (set QUIRE_ACCESS_TOKEN, "
                "QUIRE_CREDENTIALS_FILE or QUIRE_CLIENT_ID/QUIRE_CLIENT_SECRET/QUIRE_REFRESH_TOKEN)"
            )

        oauth = OAuthClient(config=config)
        client = SheetsClient(config=config, oauth=oauth)
        return cls(store=client, spreadsheet_id=config.spreadsheet_id)

    def table(self, name: str) -> Table:
        return Table(store=self.store, name=name)

    async def ping(self) -> bool:
        ping = getattr(self.store, "ping", None)
        if ping is None:
            return True
        return bool(await ping())

    async def close(self) -> None:
        """Release held resources. HTTP clients are per request, so nothing is held."""
        logger.debug("Closing DB for spreadsheet '%s'", self.spreadsheet_id)

    async def __aenter__(self) -> "DB":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
