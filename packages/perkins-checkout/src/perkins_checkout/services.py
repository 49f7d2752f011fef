"""Wiring of checkout services from settings."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from perkins_checkout.assistant import AssistantSessionRegistry
from perkins_checkout.cart import CartStore
from perkins_checkout.config import CheckoutSettings, get_settings
from perkins_checkout.connectors.http import CheckoutApiClient
from perkins_checkout.currency import DolarApiRateProvider, ExchangeRateService
from perkins_checkout.orchestrator import OrderSubmissionCoordinator
from perkins_checkout.pricing import PricingEngine
from perkins_checkout.session import CheckoutSession


@dataclass
class CheckoutServices:
    settings: CheckoutSettings
    pricing: PricingEngine
    rates: ExchangeRateService
    rate_provider: DolarApiRateProvider
    api_client: CheckoutApiClient
    coordinator: OrderSubmissionCoordinator
    assistants: AssistantSessionRegistry

    async def start_session(self) -> CheckoutSession:
        """Open a checkout session and fetch the exchange rate once."""
        session = CheckoutSession(
            cart=CartStore(max_units=self.settings.max_units_per_product),
            rates=self.rates,
        )
        await session.start()
        return session

    async def close(self) -> None:
        await self.api_client.close()
        await self.rate_provider.close()


def create_checkout_services(settings: Optional[CheckoutSettings] = None) -> CheckoutServices:
    settings = settings or get_settings()
    pricing = PricingEngine(caba_shipping_fee=settings.caba_shipping_fee)
    api_client = CheckoutApiClient(
        base_url=settings.api_base_url,
        timeout=settings.http_timeout_seconds,
    )
    rate_provider = DolarApiRateProvider(url=settings.exchange_rate_url, timeout=settings.http_timeout_seconds)
    rates = ExchangeRateService(
        rate_provider,
        default_rate=settings.default_exchange_rate,
    )
    return CheckoutServices(
        settings=settings,
        pricing=pricing,
        rates=rates,
        rate_provider=rate_provider,
        api_client=api_client,
        coordinator=OrderSubmissionCoordinator(api_client, api_client, pricing=pricing),
        assistants=AssistantSessionRegistry.from_api_key(
            settings.openai_api_key, model=settings.assistant_model
        ),
    )
