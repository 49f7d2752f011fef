"""Shared fixtures for perkins_checkout tests."""
from __future__ import annotations

import sys
from decimal import Decimal
from pathlib import Path

import pytest

# Add source to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent))

from checkout_factories import fill_shipping, make_product
from perkins_checkout.models import ExchangeRate, Product
from perkins_checkout.session import CheckoutSession


@pytest.fixture
def product() -> Product:
    return make_product()


@pytest.fixture
def session_at_payment(product):
    """Session with one product in the cart, valid shipping, in the Payment step."""

    def _build(**shipping) -> CheckoutSession:
        session = CheckoutSession(exchange_rate=ExchangeRate(rate=Decimal("1200")))
        session.cart.add(product)
        assert session.machine.advance().accepted
        fill_shipping(session, **shipping)
        assert session.machine.advance().accepted
        return session

    return _build
