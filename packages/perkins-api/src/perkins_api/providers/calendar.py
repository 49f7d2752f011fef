"""Google Calendar delivery events over the v3 REST API.

Requests are authorized with a service account; the OAuth token is
refreshed through google-auth whenever it has expired.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx
from google.auth import exceptions as google_auth_exceptions
from google.auth.credentials import Credentials
from google.auth.transport.requests import Request as AuthRequest
from google.oauth2 import service_account

from perkins_checkout.errors import ConfigurationError, NetworkError, SchedulingError

logger = logging.getLogger(__name__)

DELIVERY_WINDOW = ("09:00:00", "18:00:00")
UTC_OFFSET = "-03:00"

# Calendar colour ids per order status
STATUS_COLORS = {
    "pending": "5",
    "shipped": "9",
    "delivered": "10",
    "cancelled": "11",
}
DEFAULT_COLOR = "8"

CALENDAR_SCOPE = "https://www.googleapis.com/auth/calendar"
TOKEN_URI = "https://oauth2.googleapis.com/token"


def clean_private_key(raw: str) -> str:
    """Undo the quoting and escaped newlines a key picks up when pasted into an env var."""
    key = raw.strip()
    if len(key) >= 2 and key.startswith('"') and key.endswith('"'):
        key = key[1:-1]
    return key.replace("\\n", "\n")


def service_account_credentials(client_email: str, private_key: str) -> Credentials:
    """
    Build calendar-scoped service account credentials.

    Raises:
        ValueError: If the private key is not a valid PEM key
    """
    info = {
        "type": "service_account",
        "client_email": client_email,
        "private_key": clean_private_key(private_key),
        "token_uri": TOKEN_URI,
    }
    return service_account.Credentials.from_service_account_info(info, scopes=[CALENDAR_SCOPE])


def build_description(
    order_id: str,
    customer_name: str,
    address: str,
    total: str,
    items: List[Dict[str, Any]],
) -> str:
    products = "\n".join(f"- {i.get('quantity', 1)}x {i.get('name', '')}" for i in items)
    return (
        f"Order: {order_id}\n"
        f"Customer: {customer_name}\n"
        f"Address: {address}\n"
        f"Total: {total}\n\n"
        f"Products:\n{products}"
    )


class GoogleCalendarClient:
    """Inserts delivery events and recolours them as orders progress."""

    def __init__(
        self,
        calendar_id: Optional[str],
        credentials: Optional[Credentials],
        api_base: str = "https://www.googleapis.com/calendar/v3",
        timezone: str = "America/Argentina/Buenos_Aires",
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.calendar_id = calendar_id
        self.credentials = credentials
        self._auth_request: Optional[AuthRequest] = None
        self.timezone = timezone
        self._client = client or httpx.AsyncClient(base_url=api_base.rstrip("/"), timeout=timeout)

    @property
    def is_configured(self) -> bool:
        return bool(self.calendar_id and self.credentials)

    async def _headers(self) -> Dict[str, str]:
        if not self.credentials.valid:
            if self._auth_request is None:
                self._auth_request = AuthRequest()
            try:
                # google-auth refreshes synchronously
                await asyncio.to_thread(self.credentials.refresh, self._auth_request)
            except google_auth_exceptions.TransportError as e:
                raise NetworkError(f"Calendar token refresh failed: {e}") from e
            except google_auth_exceptions.RefreshError as e:
                logger.error(f"Service account token refresh rejected: {e}")
                raise SchedulingError(f"Calendar authentication failed: {e}", status_code=401) from e
        return {"Authorization": f"Bearer {self.credentials.token}"}

    def _events_path(self) -> str:
        return f"/calendars/{self.calendar_id}/events"

    async def insert_delivery(
        self,
        order_id: str,
        customer_name: str,
        address: str,
        delivery_date: str,
        items: List[Dict[str, Any]],
        total: str,
    ) -> Dict[str, Any]:
        """Create an all-day-window delivery event; returns the created event."""
        if not self.is_configured:
            raise ConfigurationError("Google Calendar credentials not configured")

        start, end = DELIVERY_WINDOW
        event = {
            "summary": f"Delivery: {customer_name}",
            "location": address,
            "description": build_description(order_id, customer_name, address, total, items),
            "start": {"dateTime": f"{delivery_date}T{start}{UTC_OFFSET}", "timeZone": self.timezone},
            "end": {"dateTime": f"{delivery_date}T{end}{UTC_OFFSET}", "timeZone": self.timezone},
            "colorId": STATUS_COLORS["pending"],
            "reminders": {
                "useDefault": False,
                "overrides": [
                    {"method": "popup", "minutes": 0},
                    {"method": "popup", "minutes": 30},
                ],
            },
        }

        headers = await self._headers()
        try:
            response = await self._client.post(self._events_path(), json=event, headers=headers)
        except httpx.HTTPError as e:
            raise NetworkError(f"Calendar request failed: {e}") from e

        if response.status_code == 404:
            logger.error(f"Calendar {self.calendar_id} not found; check GOOGLE_CALENDAR_ID")
        elif response.status_code == 403:
            logger.error(f"Permission denied on calendar {self.calendar_id}; share it with the service account")
        if response.status_code >= 400:
            raise SchedulingError(
                f"Calendar rejected event: {response.text[:200]}",
                status_code=response.status_code,
            )

        data = response.json()
        logger.info(f"Delivery event created: {data.get('htmlLink')}")
        return data

    async def set_status_color(self, event_id: str, status: str) -> None:
        if not self.is_configured:
            raise ConfigurationError("Google Calendar credentials not configured")
        color = STATUS_COLORS.get(status, DEFAULT_COLOR)
        headers = await self._headers()
        try:
            response = await self._client.patch(
                f"{self._events_path()}/{event_id}",
                json={"colorId": color},
                headers=headers,
            )
        except httpx.HTTPError as e:
            raise NetworkError(f"Calendar request failed: {e}") from e
        if response.status_code >= 400:
            raise SchedulingError(
                f"Calendar rejected colour update: {response.text[:200]}",
                status_code=response.status_code,
            )

    async def close(self):
        await self._client.aclose()
