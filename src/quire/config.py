# Quire Sheets
# File: config.py
# Version: v1

"""Configuration loading for Quire."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

from .errors import ConfigError

DEFAULT_TOKEN_URL = "https://oauth2.googleapis.com/token"
DEFAULT_API_BASE_URL = "https://sheets.googleapis.com/v4"
SHEETS_SCOPE = "https://www.googleapis.com/auth/spreadsheets"


def _parse_bool_env(name: str, default: bool = False) -> bool:
    """Parse a boolean-like environment variable.

    Accepts 1/0, true/false, yes/no, on/off (case-insensitive).
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "on"}


def _parse_int_env(
    name: str,
    default: int,
    min_value: int | None = None,
    max_value: int | None = None,
) -> int:
    """Parse an int environment variable with clamping and safe fallback."""
    raw = os.getenv(name)
    if raw is None or not str(raw).strip():
        value = int(default)
    else:
        try:
            value = int(str(raw).strip())
        except ValueError:
            value = int(default)

    if min_value is not None and value < min_value:
        value = min_value
    if max_value is not None and value > max_value:
        value = max_value

    return value


def load_credentials_file(path: str) -> Dict[str, Any]:
    """Read a Google credentials JSON file.

    Two formats are understood: ``"type": "service_account"`` keys (client_email,
    private_key, private_key_id, token_uri) and authorized-user files
    (client_id, client_secret, refresh_token, token_uri) as written by
    ``gcloud auth application-default login``.
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"credentials file not readable: {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"credentials file is not valid JSON: {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"credentials file must contain a JSON object: {path}")
    return data


@dataclass
class QuireConfig:
    """Everything needed to reach one spreadsheet."""

    spreadsheet_id: str | None
    access_token: str | None = None
    token_url: str = DEFAULT_TOKEN_URL
    client_id: str | None = None
    client_secret: str | None = None
    refresh_token: str | None = None

    # Service account (JWT bearer grant)
    service_account_email: str | None = None
    private_key: str | None = None
    private_key_id: str | None = None
    scope: str = SHEETS_SCOPE

    api_base_url: str = DEFAULT_API_BASE_URL
    value_render_option: str = "FORMATTED_VALUE"
    timeout_seconds: int = 30
    verify_tls: bool = True
    mock_mode: bool = False

    # Hard cap for the query tool
    max_rows_query: int = 500

    @property
    def uses_service_account(self) -> bool:
        return bool(self.service_account_email and self.private_key)

    @property
    def has_credentials(self) -> bool:
        if self.access_token or self.uses_service_account:
            return True
        return bool(self.client_id and self.client_secret and self.refresh_token)

    @classmethod
    def from_env(cls) -> "QuireConfig":
        """Create configuration from environment variables."""
        client_id = os.getenv("QUIRE_CLIENT_ID")
        client_secret = os.getenv("QUIRE_CLIENT_SECRET")
        refresh_token = os.getenv("QUIRE_REFRESH_TOKEN")
        token_url = os.getenv("QUIRE_OAUTH_TOKEN_URL")
        service_account: Dict[str, Any] = {}

        # Explicit env vars win over the credentials file.
        credentials_file = os.getenv("QUIRE_CREDENTIALS_FILE")
        if credentials_file:
            creds = load_credentials_file(credentials_file)
            if creds.get("type") == "service_account":
                if not creds.get("client_email") or not creds.get("private_key"):
                    raise ConfigError(
                        f"service account file lacks client_email or private_key: {credentials_file}"
                    )
                service_account = creds
            client_id = client_id or creds.get("client_id")
            client_secret = client_secret or creds.get("client_secret")
            refresh_token = refresh_token or creds.get("refresh_token")
            token_url = token_url or creds.get("token_uri")

        timeout_seconds = _parse_int_env(
            "QUIRE_TIMEOUT_SECONDS", default=30, min_value=1, max_value=600
        )
        max_rows_query = _parse_int_env(
            "QUIRE_MAX_ROWS_QUERY", default=500, min_value=1, max_value=100000
        )

        return cls(
            spreadsheet_id=os.getenv("QUIRE_SPREADSHEET_ID"),
            access_token=os.getenv("QUIRE_ACCESS_TOKEN"),
            token_url=token_url or DEFAULT_TOKEN_URL,
            client_id=client_id,
            client_secret=client_secret,
            refresh_token=refresh_token,
            service_account_email=service_account.get("client_email"),
            private_key=service_account.get("private_key"),
            private_key_id=service_account.get("private_key_id"),
            api_base_url=os.getenv("QUIRE_API_BASE_URL") or DEFAULT_API_BASE_URL,
            value_render_option=os.getenv("QUIRE_VALUE_RENDER_OPTION") or "FORMATTED_VALUE",
            timeout_seconds=timeout_seconds,
            verify_tls=_parse_bool_env("QUIRE_VERIFY_TLS", default=True),
            mock_mode=_parse_bool_env("QUIRE_MOCK_MODE", default=False),
            max_rows_query=max_rows_query,
        )
