"""Builders shared by the checkout tests."""
from __future__ import annotations

from datetime import date
from decimal import Decimal

from perkins_checkout.models import PaymentMethod, Product, Region
from perkins_checkout.session import CheckoutSession

TUESDAY = date(2024, 1, 2)
WEDNESDAY = date(2024, 1, 3)


def make_product(**overrides) -> Product:
    fields = dict(
        id="ajwad",
        brand="Lattafa",
        name="Ajwad",
        price=Decimal("18"),
        scent_tags=("amber", "vanilla"),
        stock=10,
    )
    fields.update(overrides)
    return Product(**fields)


def fill_shipping(session: CheckoutSession, **overrides) -> None:
    values = dict(
        region=Region.CABA,
        full_name="Ana Perez",
        phone="1155550000",
        street_address="Av. Corrientes 1234",
        locality="Balvanera",
        province="Buenos Aires",
        delivery_date=TUESDAY,
        payment_method=PaymentMethod.MERCADOPAGO,
    )
    values.update(overrides)
    for name, value in values.items():
        setattr(session.shipping, name, value)
