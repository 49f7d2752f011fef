"""
Localized pricing and shipping fees.

All catalog prices are cost-basis amounts. Conversion to local currency
always rounds up to whole units so the buyer is never undercharged.
"""
from __future__ import annotations

import logging
from datetime import date
from decimal import ROUND_CEILING, Decimal
from typing import Optional, Union

from perkins_checkout.errors import InvalidRateError
from perkins_checkout.models import (
    DEFAULT_RETAIL_MARGIN,
    DEFAULT_WHOLESALE_MARGIN,
    PricingMode,
    Product,
    Region,
    ShippingFee,
)

logger = logging.getLogger(__name__)

Number = Union[Decimal, int, float, str]

WEDNESDAY = 2  # date.weekday()
DEFAULT_CABA_SHIPPING_FEE = Decimal("5000")


def _to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def to_local(amount: Number, rate: Number) -> Decimal:
    """Convert a cost-basis amount to local currency, rounding up."""
    rate_dec = _to_decimal(rate)
    if rate_dec <= 0:
        raise InvalidRateError(f"Exchange rate must be positive, got {rate}")
    return (_to_decimal(amount) * rate_dec).quantize(Decimal("1"), rounding=ROUND_CEILING)


def is_free_shipping_day(when: Optional[date]) -> bool:
    """Wednesdays carry free CABA shipping. A missing date never qualifies."""
    return when is not None and when.weekday() == WEDNESDAY


def format_price(local_amount: Number) -> str:
    """Format a local amount the es-AR way, e.g. ``$ 21.600``."""
    whole = int(_to_decimal(local_amount).quantize(Decimal("1"), rounding=ROUND_CEILING))
    return "$ " + f"{whole:,}".replace(",", ".")


class PricingEngine:
    """
    Currency conversion and shipping-fee computation.

    Outputs are advisory for display. The settlement total is computed by
    the submission coordinator from line prices plus the fee returned here.
    """

    def __init__(self, caba_shipping_fee: Number = DEFAULT_CABA_SHIPPING_FEE):
        self.caba_shipping_fee = _to_decimal(caba_shipping_fee)

    def to_local(self, amount: Number, rate: Number) -> Decimal:
        return to_local(amount, rate)

    def shipping_fee(
        self,
        region: Region,
        when: Optional[date],
        rate: Number,
    ) -> ShippingFee:
        """
        Compute the shipping fee for a region and delivery date.

        Interior shipments are paid to the carrier on delivery and add nothing
        here. CABA is free on Wednesdays and a fixed local fee otherwise; the
        cost-basis equivalent divides that fee by the current rate.
        """
        if Region(region) is Region.INTERIOR or is_free_shipping_day(when):
            return ShippingFee(local=Decimal("0"), cost_basis=Decimal("0"))

        rate_dec = _to_decimal(rate)
        if rate_dec <= 0:
            raise InvalidRateError(f"Exchange rate must be positive, got {rate}")
        return ShippingFee(
            local=self.caba_shipping_fee,
            cost_basis=self.caba_shipping_fee / rate_dec,
        )

    def retail_price(self, product: Product, mode: PricingMode = PricingMode.RETAIL) -> Decimal:
        """Cost-basis price with the retail or wholesale margin applied."""
        if mode is PricingMode.WHOLESALE:
            margin = product.margin_wholesale or DEFAULT_WHOLESALE_MARGIN
        else:
            margin = product.margin_retail or DEFAULT_RETAIL_MARGIN
        return product.price * (1 + margin / Decimal("100"))

    def format_local(self, amount: Number, rate: Number) -> str:
        return format_price(self.to_local(amount, rate))
