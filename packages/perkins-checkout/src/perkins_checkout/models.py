"""Checkout pipeline data models."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional, Tuple


DEFAULT_EXCHANGE_RATE = Decimal("1200")
DEFAULT_RETAIL_MARGIN = Decimal("50")
DEFAULT_WHOLESALE_MARGIN = Decimal("15")
MAX_UNITS_PER_PRODUCT = 4


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Region(str, Enum):
    """Delivery zone."""
    CABA = "caba"  # Metro area, paid courier
    INTERIOR = "interior"  # Third-party carrier, paid on delivery

    @property
    def label(self) -> str:
        return "CABA" if self is Region.CABA else "Interior"


class PaymentMethod(str, Enum):
    """Settlement path chosen at the payment step."""
    MERCADOPAGO = "mercadopago"
    CASH = "cash"


class PricingMode(str, Enum):
    RETAIL = "retail"
    WHOLESALE = "wholesale"


class OrderStatus(str, Enum):
    """Fulfillment status, advanced only by the admin collaborator."""
    PENDING = "pending"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class ConfirmationStatus(str, Enum):
    """Local record state relative to the authoritative store."""
    PENDING_CONFIRMATION = "pending_confirmation"
    CONFIRMED = "confirmed"
    FAILED = "failed"
    ABANDONED = "abandoned"


@dataclass(frozen=True)
class Product:
    """Catalog reference data. Prices are cost-basis (USD-equivalent)."""
    id: str
    brand: str
    name: str
    price: Decimal
    scent_tags: Tuple[str, ...] = ()
    margin_retail: Optional[Decimal] = None
    stock: int = 0
    # Fields carried over from the catalog collaborator
    volume_ml: int = 100
    gender: str = "Unisex"
    margin_wholesale: Optional[Decimal] = None
    deleted: bool = False

    def with_overrides(self, overrides: Dict[str, Any]) -> "Product":
        """
        Return a copy with per-field overrides applied; unknown keys are ignored.

        Raises:
            ValueError: if a value cannot be converted to the field's type
        """
        known = {k: v for k, v in overrides.items() if k in self.__dataclass_fields__ and k != "id"}
        converted = {}
        for key, value in known.items():
            try:
                converted[key] = _convert_override(key, value)
            except (TypeError, ValueError, ArithmeticError):
                raise ValueError(f"Invalid override for {self.id}.{key}: {value!r}") from None
        return replace(self, **converted)


def _convert_override(key: str, value: Any) -> Any:
    if key in ("margin_retail", "margin_wholesale") and value is None:
        return None
    if value is None:
        raise ValueError("null")
    if key in ("price", "margin_retail", "margin_wholesale"):
        if isinstance(value, bool):
            raise TypeError(key)
        amount = Decimal(str(value))
        if not amount.is_finite() or amount < 0:
            raise ValueError(key)
        return amount
    if key in ("stock", "volume_ml"):
        if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
            raise TypeError(key)
        number = int(value)
        if number < 0:
            raise ValueError(key)
        return number
    if key == "deleted":
        if not isinstance(value, bool):
            raise TypeError(key)
        return value
    if key == "scent_tags":
        if isinstance(value, str) or not all(isinstance(tag, str) for tag in value):
            raise TypeError(key)
        return tuple(value)
    if not isinstance(value, str):
        raise TypeError(key)
    return value


@dataclass
class CartLine:
    """A product in the cart with its quantity (1..4)."""
    product: Product
    quantity: int = 1

    @property
    def product_id(self) -> str:
        return self.product.id

    @property
    def unit_price(self) -> Decimal:
        return self.product.price

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass
class ShippingConfig:
    """Shipping and payment selection collected during checkout."""
    region: Region = Region.CABA
    full_name: str = ""
    phone: str = ""
    email: Optional[str] = None
    province: str = ""
    locality: str = ""
    street_address: str = ""
    delivery_date: Optional[date] = None
    payment_method: PaymentMethod = PaymentMethod.MERCADOPAGO

    def composed_address(self) -> str:
        parts = [self.street_address, self.locality, self.province]
        return ", ".join(p.strip() for p in parts if p and p.strip())

    def tagged_delivery_date(self) -> str:
        when = self.delivery_date.isoformat() if self.delivery_date else ""
        return f"{when} ({self.region.label})"


@dataclass(frozen=True)
class OrderLine:
    """Snapshot of a cart line at submission time."""
    product_id: str
    name: str
    unit_price: Decimal
    quantity: int

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class Order:
    """Immutable order snapshot built at submission."""
    id: str
    lines: Tuple[OrderLine, ...]
    total: Decimal
    customer_name: str
    address: str
    delivery_date: str
    status: OrderStatus = OrderStatus.PENDING
    created_at: datetime = field(default_factory=utc_now)
    phone: str = ""
    region: Region = Region.CABA
    payment_method: PaymentMethod = PaymentMethod.MERCADOPAGO
    shipping_fee: Decimal = Decimal("0")


@dataclass(frozen=True)
class ShippingFee:
    """Shipping fee in local currency plus its cost-basis equivalent."""
    local: Decimal
    cost_basis: Decimal

    @property
    def is_free(self) -> bool:
        return self.local == 0


@dataclass(frozen=True)
class ExchangeRate:
    """Local-currency units per cost-basis unit."""
    rate: Decimal
    source: str = "default"
    fetched_at: datetime = field(default_factory=utc_now)

    @classmethod
    def default(cls) -> "ExchangeRate":
        return cls(rate=DEFAULT_EXCHANGE_RATE)
