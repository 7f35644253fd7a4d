# Quire Sheets
# File: client.py
# Version: v1
"""Google Sheets v4 REST implementation of the GridStore interface.

Implements:

- read() via spreadsheets.values.get
- write() via spreadsheets.values.update (RAW input)
- append() via spreadsheets.values.append (RAW, INSERT_ROWS)
- clear() via spreadsheets.values.clear
- delete_rows() via spreadsheets.batchUpdate deleteDimension requests
"""

from __future__ import annotations

import dataclasses
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import quote

import httpx
from httpx import HTTPStatusError, RequestError

from .auth import OAuthClient
from .config import QuireConfig
from .errors import ConfigError, TransportError
from .grid import Cell, Grid, Row

logger = logging.getLogger(__name__)


def _wire_cell(cell: Cell) -> Cell:
    """Cells the API cannot take natively are sent as compact JSON text."""
    if dataclasses.is_dataclass(cell) and not isinstance(cell, type):
        return json.dumps(dataclasses.asdict(cell), separators=(",", ":"))
    if isinstance(cell, (list, tuple, dict)):
        return json.dumps(cell, separators=(",", ":"), default=str)
    return cell


def _wire_rows(rows: Sequence[Row]) -> List[List[Cell]]:
    return [[_wire_cell(cell) for cell in row] for row in rows]


@dataclass
class SheetsClient:
    """GridStore backed by one Google spreadsheet."""

    config: QuireConfig
    oauth: OAuthClient
    transport: Optional[httpx.AsyncBaseTransport] = None

    # ------------------------------------------------------------------
    # Basic health
    # ------------------------------------------------------------------

    async def ping(self) -> bool:
        """Lightweight health check: a spreadsheet id is configured."""
        return bool(self.config.spreadsheet_id)

    # ------------------------------------------------------------------
    # HTTP plumbing
    # ------------------------------------------------------------------

    def _spreadsheet_url(self) -> str:
        if not self.config.spreadsheet_id:
            raise ConfigError(
                "QUIRE_SPREADSHEET_ID is not set. "
                "Please configure it before calling the Sheets API."
            )
        base_url = self.config.api_base_url.rstrip("/")
        return f"{base_url}/spreadsheets/{quote(self.config.spreadsheet_id, safe='')}"

    def _values_url(self, range_spec: str, suffix: str = "") -> str:
        return f"{self._spreadsheet_url()}/values/{quote(range_spec, safe='')}{suffix}"

    async def _send(
        self,
        method: str,
        url: str,
        action: str,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        token = await self.oauth.get_access_token()
        headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
        }

        async with httpx.AsyncClient(
            timeout=float(self.config.timeout_seconds),
            verify=self.config.verify_tls,
            transport=self.transport,
        ) as http_client:
            try:
                response = await http_client.request(
                    method, url, headers=headers, params=params, json=body
                )
            except RequestError as exc:
                logger.warning("Sheets API request to %s failed: %s", action, exc)
                raise TransportError(
                    f"Error calling Sheets API to {action} at '{url}': {exc}"
                ) from exc

            try:
                response.raise_for_status()
            except HTTPStatusError as exc:
                status = response.status_code
                body_preview = response.text[:500]
                logger.warning("Sheets API refused to %s (HTTP %s)", action, status)
                raise TransportError(
                    f"Failed to {action} via '{url}' (HTTP {status}). "
                    f"Response snippet: {body_preview}"
                ) from exc

        return response

    # ------------------------------------------------------------------
    # Values API
    # ------------------------------------------------------------------

    async def read(self, range_spec: str) -> Grid:
        response = await self._send(
            "GET",
            self._values_url(range_spec),
            f"read range {range_spec}",
            params={
                "majorDimension": "ROWS",
                "valueRenderOption": self.config.value_render_option,
            },
        )

        data = response.json()
        values = data.get("values") if isinstance(data, dict) else None
        if not isinstance(values, list):
            return []
        return [list(row) if isinstance(row, list) else [] for row in values]

    async def write(self, range_spec: str, rows: Sequence[Row]) -> None:
        await self._send(
            "PUT",
            self._values_url(range_spec),
            f"write to range {range_spec}",
            params={"valueInputOption": "RAW"},
            body={"range": range_spec, "majorDimension": "ROWS", "values": _wire_rows(rows)},
        )

    async def append(self, range_spec: str, rows: Sequence[Row]) -> None:
        await self._send(
            "POST",
            self._values_url(range_spec, ":append"),
            f"append to range {range_spec}",
            params={"valueInputOption": "RAW", "insertDataOption": "INSERT_ROWS"},
            body={"range": range_spec, "majorDimension": "ROWS", "values": _wire_rows(rows)},
        )

    async def clear(self, range_spec: str) -> None:
        await self._send(
            "POST",
            self._values_url(range_spec, ":clear"),
            f"clear range {range_spec}",
            body={},
        )

    # ------------------------------------------------------------------
    # Structural updates
    # ------------------------------------------------------------------

    async def get_sheet_id(self, table: str) -> int:
        """Resolve a sheet title to its numeric sheetId."""
        response = await self._send(
            "GET",
            self._spreadsheet_url(),
            f"look up sheet '{table}'",
            params={"fields": "sheets.properties(sheetId,title)"},
        )

        data = response.json()
        sheets = data.get("sheets") if isinstance(data, dict) else None
        for sheet in sheets or []:
            props = sheet.get("properties") if isinstance(sheet, dict) else None
            if isinstance(props, dict) and props.get("title") == table:
                return int(props.get("sheetId", 0))

        raise TransportError(
            f"Sheet '{table}' was not found in spreadsheet '{self.config.spreadsheet_id}'."
        )

    async def delete_rows(self, table: str, indices: Sequence[int]) -> None:
        """Delete 0-based sheet rows, one request per index, in the given order."""
        if not indices:
            return

        sheet_id = await self.get_sheet_id(table)
        requests = [
            {
                "deleteDimension": {
                    "range": {
                        "sheetId": sheet_id,
                        "dimension": "ROWS",
                        "startIndex": int(index),
                        "endIndex": int(index) + 1,
                    }
                }
            }
            for index in indices
        ]

        await self._send(
            "POST",
            f"{self._spreadsheet_url()}:batchUpdate",
            f"delete {len(requests)} rows from '{table}'",
            body={"requests": requests},
        )
