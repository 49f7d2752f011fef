"""
Exchange rate sourcing for checkout sessions.

The rate is fetched once when a session starts. Any failure keeps the last
known (or default) rate; there are no retries.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from decimal import Decimal, InvalidOperation
from typing import Optional

import httpx

from perkins_checkout.errors import InvalidRateError, NetworkError
from perkins_checkout.models import DEFAULT_EXCHANGE_RATE, ExchangeRate, utc_now
from perkins_checkout.policy import SubmissionStep, is_tolerated

logger = logging.getLogger(__name__)

DOLAR_BLUE_URL = "https://dolarapi.com/v1/dolares/blue"


class ExchangeRateProvider(ABC):
    """Abstract interface for exchange rate providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name."""
        pass

    @abstractmethod
    async def get_rate(self) -> ExchangeRate:
        """Fetch the current local-per-cost-basis rate."""
        pass


class StaticExchangeRateProvider(ExchangeRateProvider):
    """Fixed rate, for development and testing."""

    def __init__(self, rate: Decimal = DEFAULT_EXCHANGE_RATE):
        self._rate = Decimal(str(rate))

    @property
    def name(self) -> str:
        return "static"

    async def get_rate(self) -> ExchangeRate:
        return ExchangeRate(rate=self._rate, source=self.name)


class DolarApiRateProvider(ExchangeRateProvider):
    """Reads the ``venta`` quote from a dolarapi-style endpoint."""

    def __init__(
        self,
        url: str = DOLAR_BLUE_URL,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.url = url
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @property
    def name(self) -> str:
        return "dolarapi"

    async def get_rate(self) -> ExchangeRate:
        try:
            response = await self._client.get(self.url)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise NetworkError(f"Exchange rate fetch failed: {e}") from e

        venta = data.get("venta") if isinstance(data, dict) else None
        try:
            rate = Decimal(str(venta))
        except (InvalidOperation, TypeError):
            raise InvalidRateError(f"Exchange rate payload has no usable venta: {data!r}")
        if not rate.is_finite() or rate <= 0:
            raise InvalidRateError(f"Exchange rate must be positive, got {venta}")

        return ExchangeRate(rate=rate, source=self.name, fetched_at=utc_now())

    async def close(self) -> None:
        await self._client.aclose()


class ExchangeRateService:
    """
    Holds the process-wide exchange rate.

    ``refresh`` is called at session start; on any failure the current
    value is retained and the failure is only logged.
    """

    def __init__(
        self,
        provider: ExchangeRateProvider,
        default_rate: Decimal = DEFAULT_EXCHANGE_RATE,
    ):
        self._provider = provider
        self._current = ExchangeRate(rate=Decimal(str(default_rate)))

    @property
    def current(self) -> ExchangeRate:
        return self._current

    async def refresh(self) -> ExchangeRate:
        try:
            self._current = await self._provider.get_rate()
            logger.info(f"Exchange rate updated from {self._provider.name}: {self._current.rate}")
        except (NetworkError, InvalidRateError) as e:
            if not is_tolerated(SubmissionStep.EXCHANGE_RATE):
                raise
            logger.warning(f"Keeping exchange rate {self._current.rate}: {e}")
        return self._current
