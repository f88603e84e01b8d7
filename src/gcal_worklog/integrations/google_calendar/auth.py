"""
Access tokens for the Google Calendar API.

Two kinds of credential files are accepted:

* a service account key (``"type": "service_account"``), refreshed with
  google-auth;
* an OAuth client secret file (``installed`` or ``web`` section) together
  with a previously stored authorized-user token, refreshed through the
  OAuth token endpoint.

The interactive consent flow that produces the stored token is not part
of this module.
"""

from __future__ import annotations

import asyncio
import json
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any, Protocol

import aiohttp
from google.auth.transport.requests import Request
from google.oauth2 import service_account

from gcal_worklog.errors import ConfigurationError, TransportError
from gcal_worklog.utils.mixins import LoggerMixin

SCOPES = ["https://www.googleapis.com/auth/calendar"]
DEFAULT_TOKEN_URI = "https://oauth2.googleapis.com/token"

# refresh a little before the server-side expiry
EXPIRY_SKEW = timedelta(seconds=60)


class AccessTokenProvider(Protocol):
    """Anything able to hand out a bearer token for the Calendar API."""

    async def get_access_token(self) -> str: ...


class StaticTokenProvider:
    """Fixed bearer token, mostly useful for tests and short scripts."""

    def __init__(self, access_token: str) -> None:
        self.access_token = access_token

    async def get_access_token(self) -> str:
        return self.access_token


class OAuthTokenProvider(LoggerMixin):
    """Authorized-user token refreshed with the client id/secret pair"""

    def __init__(
        self,
        *,
        client_id: str,
        client_secret: str,
        refresh_token: str | None,
        access_token: str | None = None,
        expires_at: datetime | None = None,
        token_uri: str = DEFAULT_TOKEN_URI,
        timeout_seconds: float = 30.0,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_token = refresh_token
        self.access_token = access_token
        self.expires_at = expires_at
        self.token_uri = token_uri
        self.timeout_seconds = timeout_seconds
        self._lock = asyncio.Lock()

    def _is_fresh(self, now: datetime | None = None) -> bool:
        if not self.access_token:
            return False
        if self.expires_at is None:
            return True
        now = now or datetime.now(UTC)
        return now + EXPIRY_SKEW < self.expires_at

    async def get_access_token(self) -> str:
        async with self._lock:
            if not self._is_fresh():
                await self._refresh()
            assert self.access_token is not None
            return self.access_token

    async def _refresh(self) -> None:
        if not self.refresh_token:
            raise ConfigurationError(
                "Stored token has expired and contains no refresh_token; "
                "authorize again to create a new token file"
            )

        data = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "refresh_token": self.refresh_token,
            "grant_type": "refresh_token",
        }
        timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(self.token_uri, data=data) as response:
                    if response.status != 200:
                        body = await response.text()
                        raise TransportError(
                            f"Token refresh failed: HTTP {response.status}",
                            status=response.status,
                            url=self.token_uri,
                            payload=body,
                        )
                    token_data = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise TransportError(
                f"Token refresh failed: {exc}", url=self.token_uri
            ) from exc

        self.access_token = token_data.get("access_token")
        if token_data.get("refresh_token"):
            self.refresh_token = token_data["refresh_token"]
        if token_data.get("expires_in"):
            self.expires_at = datetime.now(UTC) + timedelta(
                seconds=int(token_data["expires_in"])
            )
        self.logger.info("Access token refreshed", expires_at=self.expires_at)


class ServiceAccountTokenProvider(LoggerMixin):
    """Service account credentials refreshed with google-auth in a worker thread"""

    def __init__(self, credentials: service_account.Credentials) -> None:
        self.credentials = credentials
        self._lock = asyncio.Lock()

    async def get_access_token(self) -> str:
        async with self._lock:
            if not self.credentials.valid:
                try:
                    await asyncio.to_thread(self.credentials.refresh, Request())
                except Exception as exc:
                    raise TransportError(
                        f"Service account token refresh failed: {exc}"
                    ) from exc
                self.logger.info(
                    "Service account token refreshed",
                    account=self.credentials.service_account_email,
                )
            return str(self.credentials.token)


def _read_json(path: Path, what: str) -> dict[str, Any]:
    try:
        payload = json.loads(path.expanduser().read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ConfigurationError(f"No {what} found at {path}") from exc
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"Could not read {what} at {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise ConfigurationError(f"{what.capitalize()} at {path} is not a JSON object")
    return payload


def _parse_expiry(token: dict[str, Any]) -> datetime | None:
    # google-auth writes "expiry" (ISO 8601), googleapis for Node "expiry_date" (ms)
    if token.get("expiry"):
        raw = str(token["expiry"]).replace("Z", "+00:00")
        try:
            expiry = datetime.fromisoformat(raw)
        except ValueError:
            return None
        return expiry if expiry.tzinfo else expiry.replace(tzinfo=UTC)
    if token.get("expiry_date"):
        try:
            return datetime.fromtimestamp(int(token["expiry_date"]) / 1000, tz=UTC)
        except (TypeError, ValueError):
            return None
    return None


def load_token_provider(
    credentials_path: Path,
    token_path: Path | None = None,
    *,
    timeout_seconds: float = 30.0,
) -> AccessTokenProvider:
    """Build a token provider from the credential files.

    Raises:
        ConfigurationError: a file is missing, unreadable or of an unknown kind.
    """
    credentials = _read_json(credentials_path, "credentials file")

    if credentials.get("type") == "service_account":
        try:
            account = service_account.Credentials.from_service_account_info(
                credentials, scopes=SCOPES
            )
        except ValueError as exc:
            raise ConfigurationError(
                f"Invalid service account key at {credentials_path}: {exc}"
            ) from exc
        return ServiceAccountTokenProvider(account)

    client = credentials.get("installed") or credentials.get("web")
    if not isinstance(client, dict):
        raise ConfigurationError(
            f"{credentials_path} is neither a service account key nor an OAuth client secret file"
        )
    if token_path is None:
        raise ConfigurationError(
            "token_path is required when using OAuth client credentials"
        )

    token = _read_json(token_path, "token file")
    try:
        return OAuthTokenProvider(
            client_id=token.get("client_id") or client["client_id"],
            client_secret=token.get("client_secret") or client["client_secret"],
            refresh_token=token.get("refresh_token"),
            access_token=token.get("token") or token.get("access_token"),
            expires_at=_parse_expiry(token),
            token_uri=token.get("token_uri") or client.get("token_uri") or DEFAULT_TOKEN_URI,
            timeout_seconds=timeout_seconds,
        )
    except KeyError as exc:
        raise ConfigurationError(
            f"OAuth client secret file {credentials_path} lacks {exc.args[0]}"
        ) from exc
