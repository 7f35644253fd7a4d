# Quire Sheets
# File: auth.py
# Version: v2

"""OAuth2 access tokens for the Google Sheets API."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx
import jwt

from .config import QuireConfig
from .errors import ConfigError, TransportError

# Refresh this many seconds before the token actually expires.
_EXPIRY_MARGIN_SECONDS = 60

JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"
_ASSERTION_LIFETIME_SECONDS = 3600


@dataclass
class OAuthClient:
    """Access-token source for SheetsClient.

    A configured ``access_token`` is used as-is. A service account signs an
    RS256 assertion and exchanges it with the JWT bearer grant. Otherwise
    the refresh-token grant is used. Exchanged tokens are cached in memory
    until shortly before they expire.
    """

    config: QuireConfig
    transport: Optional[httpx.AsyncBaseTransport] = None
    _cached_token: Optional[str] = None
    _expires_at: float = 0.0

    def _service_account_assertion(self) -> str:
        now = int(time.time())
        claims = {
            "iss": self.config.service_account_email,
            "scope": self.config.scope,
            "aud": self.config.token_url,
            "iat": now,
            "exp": now + _ASSERTION_LIFETIME_SECONDS,
        }
        headers = {"kid": self.config.private_key_id} if self.config.private_key_id else None

        try:
            return jwt.encode(claims, self.config.private_key, algorithm="RS256", headers=headers)
        except (jwt.PyJWTError, ValueError, TypeError) as exc:
            raise ConfigError(f"service account private key is not usable: {exc}") from exc

    def _grant_form(self) -> Dict[str, str]:
        if self.config.uses_service_account:
            return {
                "grant_type": JWT_BEARER_GRANT,
                "assertion": self._service_account_assertion(),
            }

        if (
            not self.config.client_id
            or not self.config.client_secret
            or not self.config.refresh_token
        ):
            raise ConfigError(
                "OAuth configuration is incomplete. "
                "Set QUIRE_ACCESS_TOKEN, QUIRE_CREDENTIALS_FILE, or QUIRE_CLIENT_ID, "
                "QUIRE_CLIENT_SECRET and QUIRE_REFRESH_TOKEN."
            )

        return {
            "grant_type": "refresh_token",
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
            "refresh_token": self.config.refresh_token,
        }

    async def get_access_token(self) -> str:
        """Return a valid access token."""
        if self.config.access_token:
            return self.config.access_token

        if self._cached_token and time.monotonic() < self._expires_at:
            return self._cached_token

        form = self._grant_form()

        async with httpx.AsyncClient(
            timeout=float(self.config.timeout_seconds),
            verify=self.config.verify_tls,
            transport=self.transport,
        ) as client:
            try:
                response = await client.post(
                    self.config.token_url,
                    data=form,
                    headers={"Accept": "application/json"},
                )
            except httpx.RequestError as exc:
                raise TransportError(
                    f"Error calling OAuth token endpoint '{self.config.token_url}': {exc}"
                ) from exc

        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            body_preview = exc.response.text[:500]
            raise TransportError(
                f"Failed to obtain access token from '{self.config.token_url}' "
                f"(HTTP {status}) using grant '{form['grant_type']}'. "
                f"Response snippet: {body_preview}"
            ) from exc

        data: dict[str, Any] = response.json()
        token = data.get("access_token")
        if not token:
            raise TransportError("OAuth token response did not contain 'access_token'")

        try:
            expires_in = int(data.get("expires_in", 3600))
        except (TypeError, ValueError):
            expires_in = 3600

        self._cached_token = token
        self._expires_at = time.monotonic() + max(expires_in - _EXPIRY_MARGIN_SECONDS, 0)
        return token
