"""Checkout configuration."""
from __future__ import annotations

from decimal import Decimal
from functools import lru_cache
from typing import Optional

from pydantic import ConfigDict
from pydantic_settings import BaseSettings

from perkins_checkout.models import DEFAULT_EXCHANGE_RATE, MAX_UNITS_PER_PRODUCT


class CheckoutSettings(BaseSettings):
    """Client-side checkout settings with environment variable support."""

    model_config = ConfigDict(
        env_prefix="PERKINS_",
        env_file=".env",
        extra="ignore",
    )

    # Collaborator endpoints
    api_base_url: str = "http://localhost:3000"
    exchange_rate_url: str = "https://dolarapi.com/v1/dolares/blue"
    http_timeout_seconds: float = 30.0

    # Pricing
    default_exchange_rate: Decimal = DEFAULT_EXCHANGE_RATE
    caba_shipping_fee: Decimal = Decimal("5000")  # Local currency, fixed
    max_units_per_product: int = MAX_UNITS_PER_PRODUCT

    # Assistant
    openai_api_key: Optional[str] = None
    assistant_model: str = "gpt-4o-mini"


@lru_cache
def get_settings() -> CheckoutSettings:
    return CheckoutSettings()
