"""HTTP helpers for Google Calendar integration."""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any
from urllib.parse import quote

import aiohttp
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from gcal_worklog.errors import TransportError
from gcal_worklog.integrations.google_calendar.auth import AccessTokenProvider
from gcal_worklog.integrations.google_calendar.schemas import (
    CalendarEventRecord,
    CalendarListEntry,
)
from gcal_worklog.utils.mixins import LoggerMixin

DEFAULT_BASE_URL = "https://www.googleapis.com/calendar/v3"
PAGE_SIZE = 250


def _is_transient(exc: BaseException) -> bool:
    return isinstance(exc, TransportError) and exc.is_transient


class GoogleCalendarService(LoggerMixin):
    """Wrapper around Google Calendar REST API."""

    def __init__(
        self,
        token_provider: AccessTokenProvider,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = 30.0,
        max_attempts: int = 3,
        retry_wait: wait_base | None = None,
    ) -> None:
        self.token_provider = token_provider
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.max_attempts = max_attempts
        self.retry_wait = retry_wait or wait_exponential(multiplier=1, min=1, max=10)
        self._session: aiohttp.ClientSession | None = None

    async def get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout_seconds),
                headers={"User-Agent": "gcal-worklog/0.3"},
            )
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> GoogleCalendarService:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # === Calendars ===

    async def list_calendars(self) -> list[CalendarListEntry]:
        url = f"{self.base_url}/users/me/calendarList"
        items = await self._collect_pages(url, {"maxResults": str(PAGE_SIZE)})
        records: list[CalendarListEntry] = []
        for item in items:
            records.append(CalendarListEntry.model_validate(item))
        return records

    async def create_calendar(self, title: str) -> CalendarListEntry:
        url = f"{self.base_url}/calendars"
        payload = await self._request_json("POST", url, json={"summary": title})
        return CalendarListEntry.model_validate(payload)

    # === Events ===

    async def list_events(
        self,
        calendar_id: str,
        *,
        time_min: datetime,
        time_max: datetime,
        time_zone: str | None = None,
    ) -> list[CalendarEventRecord]:
        """Events overlapping ``[time_min, time_max]`` in ascending start order"""
        url = f"{self.base_url}/calendars/{quote(calendar_id, safe='')}/events"
        query = {
            "timeMin": time_min.isoformat(),
            "timeMax": time_max.isoformat(),
            "singleEvents": "true",
            "orderBy": "startTime",
            "maxResults": str(PAGE_SIZE),
        }
        if time_zone:
            query["timeZone"] = time_zone
        items = await self._collect_pages(url, query)
        return [CalendarEventRecord.from_api(item) for item in items]

    async def insert_event(
        self, calendar_id: str, body: dict[str, Any]
    ) -> CalendarEventRecord:
        url = f"{self.base_url}/calendars/{quote(calendar_id, safe='')}/events"
        payload = await self._request_json("POST", url, json=body)
        return CalendarEventRecord.from_api(payload)

    async def patch_event(
        self, calendar_id: str, event_id: str, body: dict[str, Any]
    ) -> CalendarEventRecord:
        url = (
            f"{self.base_url}/calendars/{quote(calendar_id, safe='')}"
            f"/events/{quote(event_id, safe='')}"
        )
        payload = await self._request_json("PATCH", url, json=body)
        return CalendarEventRecord.from_api(payload)

    # === Transport ===

    async def _collect_pages(
        self, url: str, params: dict[str, str]
    ) -> list[dict[str, Any]]:
        items: list[dict[str, Any]] = []
        query = dict(params)
        while True:
            payload = await self._request_json("GET", url, params=query)
            items.extend(
                item for item in payload.get("items", []) if isinstance(item, dict)
            )
            page_token = payload.get("nextPageToken")
            if not page_token:
                return items
            query["pageToken"] = page_token

    def _log_retry(self, retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        self.logger.warning(
            "Google Calendar API request failed, retrying",
            attempt=retry_state.attempt_number,
            error=str(exc),
        )

    async def _request_json(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=self.retry_wait,
            retry=retry_if_exception(_is_transient),
            before_sleep=self._log_retry,
            reraise=True,
        ):
            with attempt:
                return await self._send(method, url, params=params, json=json)
        raise AssertionError("unreachable")  # pragma: no cover

    async def _send(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, str] | None,
        json: dict[str, Any] | None,
    ) -> dict[str, Any]:
        access_token = await self.token_provider.get_access_token()
        session = await self.get_session()
        headers = {"Authorization": f"Bearer {access_token}"}
        try:
            async with session.request(
                method, url, params=params, json=json, headers=headers
            ) as resp:
                if resp.status >= 300:
                    body = await resp.text()
                    self.logger.debug(
                        "Google Calendar API request failed",
                        method=method,
                        url=url,
                        status=resp.status,
                    )
                    raise TransportError(
                        f"{method} {url} failed: HTTP {resp.status}",
                        status=resp.status,
                        url=url,
                        payload=body,
                    )
                try:
                    payload = await resp.json()
                except aiohttp.ContentTypeError as exc:
                    raise TransportError(
                        f"{method} {url} returned a non-JSON response",
                        status=resp.status,
                        url=url,
                    ) from exc
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise TransportError(f"{method} {url} failed: {exc}", url=url) from exc

        if not isinstance(payload, dict):
            raise TransportError(
                f"{method} {url} returned unexpected payload", status=resp.status, url=url
            )
        return payload
