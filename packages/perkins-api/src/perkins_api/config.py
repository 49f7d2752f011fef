"""Configuration for the Perkins storefront API."""
from __future__ import annotations

from functools import lru_cache
from typing import List, Optional

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class ApiSettings(BaseSettings):
    """Server settings. Provider credentials use their conventional env names."""

    model_config = ConfigDict(
        env_file=".env",
        extra="ignore",
    )

    environment: str = "dev"
    log_level: str = "INFO"
    api_host: str = "0.0.0.0"
    api_port: int = 3000
    allowed_origins: str = "*"

    # MercadoPago
    mp_access_token: Optional[str] = None
    mp_api_base: str = "https://api.mercadopago.com"
    statement_descriptor: str = "MR PERKINS"
    max_installments: int = 6

    # Google Calendar
    google_calendar_id: Optional[str] = None
    google_client_email: Optional[str] = None
    google_private_key: Optional[str] = None
    google_calendar_api_base: str = "https://www.googleapis.com/calendar/v3"
    delivery_timezone: str = "America/Argentina/Buenos_Aires"

    http_timeout_seconds: float = 30.0

    # Orders kept in memory before the oldest are evicted
    order_retention: int = 1000

    @property
    def allowed_origins_list(self) -> List[str]:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    @property
    def missing_calendar_settings(self) -> List[str]:
        missing = []
        if not self.google_client_email:
            missing.append("GOOGLE_CLIENT_EMAIL")
        if not self.google_private_key:
            missing.append("GOOGLE_PRIVATE_KEY")
        if not self.google_calendar_id:
            missing.append("GOOGLE_CALENDAR_ID")
        return missing


@lru_cache
def load_settings() -> ApiSettings:
    return ApiSettings()
