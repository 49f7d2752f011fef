"""Dependency container for the Perkins API.

Builds the provider connectors and repositories once per application and
hands them to routers through ``app.dependency_overrides``.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from google.auth.credentials import Credentials

from perkins_api.config import ApiSettings, load_settings
from perkins_api.providers import GoogleCalendarClient, MercadoPagoConnector, service_account_credentials
from perkins_api.repositories import OrderRepository, ProductOverrideRepository

logger = logging.getLogger(__name__)


@dataclass
class ApiContainer:
    settings: ApiSettings
    mercadopago: MercadoPagoConnector
    calendar: GoogleCalendarClient
    orders: OrderRepository = field(default_factory=OrderRepository)
    overrides: ProductOverrideRepository = field(default_factory=ProductOverrideRepository)

    async def close(self) -> None:
        await self.mercadopago.close()
        await self.calendar.close()


def _calendar_credentials(settings: ApiSettings) -> Optional[Credentials]:
    missing = settings.missing_calendar_settings
    if missing:
        logger.warning(f"Calendar scheduling disabled, missing: {', '.join(missing)}")
        return None
    try:
        return service_account_credentials(settings.google_client_email, settings.google_private_key)
    except ValueError as e:
        logger.error(f"GOOGLE_PRIVATE_KEY is not a valid PEM key, include the BEGIN and END lines: {e}")
        return None


def build_container(settings: Optional[ApiSettings] = None) -> ApiContainer:
    settings = settings or load_settings()

    if not settings.mp_access_token:
        logger.warning("MP_ACCESS_TOKEN not set; payment preferences will be rejected")

    return ApiContainer(
        settings=settings,
        mercadopago=MercadoPagoConnector(
            access_token=settings.mp_access_token,
            api_base=settings.mp_api_base,
            statement_descriptor=settings.statement_descriptor,
            max_installments=settings.max_installments,
            timeout=settings.http_timeout_seconds,
        ),
        calendar=GoogleCalendarClient(
            calendar_id=settings.google_calendar_id,
            credentials=_calendar_credentials(settings),
            api_base=settings.google_calendar_api_base,
            timezone=settings.delivery_timezone,
            timeout=settings.http_timeout_seconds,
        ),
        orders=OrderRepository(max_rows=settings.order_retention),
    )
