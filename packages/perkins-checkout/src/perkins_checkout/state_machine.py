"""
Checkout step gating: Cart -> Shipping -> Payment.

Guards never raise for user-correctable problems. They return a
``TransitionResult`` carrying field-level errors and leave the step
unchanged, so the presentation layer decides how to show them.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from perkins_checkout.cart import CartStore
from perkins_checkout.errors import FieldError, InvalidTransition, ValidationError
from perkins_checkout.models import PaymentMethod, Region, ShippingConfig

logger = logging.getLogger(__name__)


class CheckoutStep(str, Enum):
    CART = "cart"
    SHIPPING = "shipping"
    PAYMENT = "payment"


class CheckoutEvent(str, Enum):
    ADVANCE = "advance"
    BACK = "back"
    CONFIRM = "confirm"


REQUIRED_SHIPPING_FIELDS: Dict[str, str] = {
    "full_name": "Please enter your full name.",
    "phone": "Please enter a contact phone.",
    "street_address": "Please enter a street address.",
    "province": "Please select a province.",
    "locality": "Please enter a locality.",
    "delivery_date": "Please choose a delivery date.",
}

# (from, event) -> to. CONFIRM success/failure targets are resolved by the
# submission coordinator through ``complete_submission``.
TRANSITIONS: Dict[Tuple[CheckoutStep, CheckoutEvent], CheckoutStep] = {
    (CheckoutStep.CART, CheckoutEvent.ADVANCE): CheckoutStep.SHIPPING,
    (CheckoutStep.SHIPPING, CheckoutEvent.ADVANCE): CheckoutStep.PAYMENT,
    (CheckoutStep.SHIPPING, CheckoutEvent.BACK): CheckoutStep.CART,
    (CheckoutStep.PAYMENT, CheckoutEvent.CONFIRM): CheckoutStep.CART,
}


@dataclass
class TransitionResult:
    """Outcome of a guarded transition."""
    accepted: bool
    step: CheckoutStep
    errors: List[FieldError] = field(default_factory=list)

    def message_for(self, field_name: str) -> Optional[str]:
        for error in self.errors:
            if error.field == field_name:
                return error.message
        return None


def validate_shipping(config: ShippingConfig) -> List[FieldError]:
    """Return field errors for the Shipping -> Payment guard."""
    errors = []
    for name, message in REQUIRED_SHIPPING_FIELDS.items():
        value = getattr(config, name)
        if value is None or (isinstance(value, str) and not value.strip()):
            errors.append(FieldError(name, message))
    if config.payment_method is PaymentMethod.CASH and config.region is not Region.CABA:
        errors.append(FieldError("payment_method", "Cash payment is only available in CABA."))
    return errors


def _coerce_date(value) -> Optional[date]:
    """Accept a date, an ISO ``YYYY-MM-DD`` string, or blank for unset."""
    if value is None or isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        return date.fromisoformat(text) if text else None
    raise TypeError(f"Unsupported date value: {value!r}")


class CheckoutStateMachine:
    """Gates progression through the checkout steps for one session."""

    def __init__(self, cart: CartStore, shipping: Optional[ShippingConfig] = None):
        self.cart = cart
        self.shipping = shipping or ShippingConfig()
        self._step = CheckoutStep.CART
        self._guards: Dict[CheckoutStep, Callable[[], List[FieldError]]] = {
            CheckoutStep.CART: self._guard_cart,
            CheckoutStep.SHIPPING: self._guard_shipping,
        }

    @property
    def step(self) -> CheckoutStep:
        return self._step

    def _target(self, event: CheckoutEvent) -> CheckoutStep:
        target = TRANSITIONS.get((self._step, event))
        if target is None:
            raise InvalidTransition(f"Cannot {event.value} from {self._step.value}")
        return target

    def _guard_cart(self) -> List[FieldError]:
        if self.cart.is_empty:
            return [FieldError("cart", "Your cart is empty.")]
        return []

    def _guard_shipping(self) -> List[FieldError]:
        return validate_shipping(self.shipping)

    def advance(self) -> TransitionResult:
        target = self._target(CheckoutEvent.ADVANCE)
        errors = self._guards[self._step]()
        if errors:
            logger.debug(f"Advance from {self._step.value} rejected: {[e.field for e in errors]}")
            return TransitionResult(accepted=False, step=self._step, errors=errors)
        self._step = target
        return TransitionResult(accepted=True, step=self._step)

    def back(self) -> TransitionResult:
        self._step = self._target(CheckoutEvent.BACK)
        return TransitionResult(accepted=True, step=self._step)

    def begin_confirm(self) -> None:
        """Check that confirm is legal from the current step."""
        self._target(CheckoutEvent.CONFIRM)

    def complete_submission(self, success: bool) -> CheckoutStep:
        """Resolve a confirm: success returns to Cart, failure stays on Payment."""
        target = self._target(CheckoutEvent.CONFIRM)
        if success:
            self._step = target
        return self._step

    def update_shipping(self, **fields) -> ShippingConfig:
        """Mutate shipping data; only allowed in Shipping or Payment."""
        if self._step is CheckoutStep.CART:
            raise InvalidTransition("Shipping data can only change during checkout")
        errors = []
        coerced = {}
        for name, value in fields.items():
            if name not in ShippingConfig.__dataclass_fields__:
                errors.append(FieldError(name, "Unknown shipping field."))
                continue
            try:
                if name == "region":
                    value = Region(value)
                elif name == "payment_method":
                    value = PaymentMethod(value)
                elif name == "delivery_date":
                    value = _coerce_date(value)
            except (TypeError, ValueError):
                errors.append(FieldError(name, f"Invalid value: {value!r}"))
                continue
            coerced[name] = value
        if errors:
            raise ValidationError("Invalid shipping data", errors)

        for name, value in coerced.items():
            setattr(self.shipping, name, value)
        return self.shipping
