"""In-progress cart with per-product quantity caps."""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Callable, Dict, List, Optional

from perkins_checkout.errors import InsufficientStock, OutOfStock, QuantityLimitExceeded
from perkins_checkout.models import MAX_UNITS_PER_PRODUCT, CartLine, Product
from perkins_checkout.pricing import Number, to_local

logger = logging.getLogger(__name__)

CartListener = Callable[[CartLine], None]


class CartStore:
    """
    Ordered set of cart lines keyed by product id.

    Mutated only through add/decrease/remove/clear. Rejected mutations raise
    a ``CartError`` subclass and leave the cart untouched.
    """

    def __init__(self, max_units: int = MAX_UNITS_PER_PRODUCT):
        self.max_units = max_units
        self._lines: Dict[str, CartLine] = {}
        self._listeners: List[CartListener] = []

    def subscribe(self, listener: CartListener) -> None:
        """Register a callback fired with the line after each successful add."""
        self._listeners.append(listener)

    def _emit_item_added(self, line: CartLine) -> None:
        for listener in self._listeners:
            listener(line)

    @property
    def lines(self) -> List[CartLine]:
        return list(self._lines.values())

    @property
    def is_empty(self) -> bool:
        return not self._lines

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self._lines.values())

    def get(self, product_id: str) -> Optional[CartLine]:
        return self._lines.get(product_id)

    def add(self, product: Product) -> CartLine:
        existing = self._lines.get(product.id)
        current_qty = existing.quantity if existing else 0

        if product.stock <= 0:
            raise OutOfStock(f"{product.name} is out of stock", product.id)
        if current_qty >= self.max_units:
            raise QuantityLimitExceeded(
                f"At most {self.max_units} units per fragrance", product.id
            )
        if current_qty + 1 > product.stock:
            raise InsufficientStock(
                f"Only {product.stock} units of {product.name} available", product.id
            )

        if existing:
            existing.quantity += 1
            line = existing
        else:
            line = CartLine(product=product, quantity=1)
            self._lines[product.id] = line

        logger.debug(f"Cart add {product.id}: quantity={line.quantity}")
        self._emit_item_added(line)
        return line

    def decrease(self, product_id: str) -> Optional[CartLine]:
        """Drop one unit; the line is removed when it reaches zero."""
        line = self._lines.get(product_id)
        if line is None:
            return None
        if line.quantity > 1:
            line.quantity -= 1
            return line
        del self._lines[product_id]
        return None

    def remove(self, product_id: str) -> bool:
        return self._lines.pop(product_id, None) is not None

    def clear(self) -> None:
        self._lines.clear()

    def subtotal(self) -> Decimal:
        """Cost-basis sum of line prices."""
        return sum((line.subtotal for line in self._lines.values()), Decimal("0"))

    def total(self, rate: Number) -> Decimal:
        """Display total in local currency, each line rounded up."""
        return sum(
            (to_local(line.subtotal, rate) for line in self._lines.values()),
            Decimal("0"),
        )
