"""Tests for exchange rate providers and the session-start refresh."""
from __future__ import annotations

from decimal import Decimal
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from perkins_checkout.currency import DolarApiRateProvider, ExchangeRateService, StaticExchangeRateProvider
from perkins_checkout.errors import InvalidRateError, NetworkError
from perkins_checkout.models import ExchangeRate
from perkins_checkout.policy import FailurePolicy, SubmissionStep


def _provider(handler) -> DolarApiRateProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return DolarApiRateProvider(url="https://rates.test/blue", client=client)


class TestDolarApiRateProvider:
    """Tests for the venta quote provider."""

    @pytest.mark.asyncio
    async def test_reads_venta(self):
        provider = _provider(lambda request: httpx.Response(200, json={"compra": 1180, "venta": 1225.5}))
        rate = await provider.get_rate()
        assert rate.rate == Decimal("1225.5")
        assert rate.source == "dolarapi"

    @pytest.mark.asyncio
    async def test_http_error_is_network_error(self):
        provider = _provider(lambda request: httpx.Response(503))
        with pytest.raises(NetworkError):
            await provider.get_rate()

    @pytest.mark.asyncio
    async def test_transport_error_is_network_error(self):
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        with pytest.raises(NetworkError):
            await _provider(handler).get_rate()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [{"venta": 0}, {"venta": -5}, {"venta": "abc"}, {}])
    async def test_unusable_venta(self, payload):
        provider = _provider(lambda request: httpx.Response(200, json=payload))
        with pytest.raises(InvalidRateError):
            await provider.get_rate()


class TestExchangeRateService:
    """Tests for refresh failure handling."""

    @pytest.mark.asyncio
    async def test_refresh_updates_rate(self):
        service = ExchangeRateService(StaticExchangeRateProvider(Decimal("1300")))
        rate = await service.refresh()
        assert rate.rate == Decimal("1300")
        assert service.current.rate == Decimal("1300")

    @pytest.mark.asyncio
    async def test_failure_keeps_default(self):
        provider = AsyncMock()
        provider.name = "mock"
        provider.get_rate.side_effect = NetworkError("down")
        service = ExchangeRateService(provider, default_rate=Decimal("1200"))

        rate = await service.refresh()

        assert rate.rate == Decimal("1200")
        provider.get_rate.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failure_keeps_last_known(self):
        provider = AsyncMock()
        provider.name = "mock"
        provider.get_rate.side_effect = [ExchangeRate(rate=Decimal("1400")), InvalidRateError("zero")]
        service = ExchangeRateService(provider)

        await service.refresh()
        rate = await service.refresh()

        assert rate.rate == Decimal("1400")

    @pytest.mark.asyncio
    async def test_hard_policy_propagates(self):
        provider = AsyncMock()
        provider.name = "mock"
        provider.get_rate.side_effect = NetworkError("down")
        service = ExchangeRateService(provider)

        with patch.dict(
            "perkins_checkout.policy.FAILURE_POLICY",
            {SubmissionStep.EXCHANGE_RATE: FailurePolicy.HARD},
        ):
            with pytest.raises(NetworkError):
                await service.refresh()
