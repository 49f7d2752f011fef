"""
Order submission orchestration.

This module handles the Payment -> confirm event:
- Building the immutable order snapshot
- Recording it locally before any external acknowledgment
- Branching on payment method
- Applying the per-step failure policy to each external write
- Holding the per-session processing flag across the whole attempt
"""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, Tuple

from perkins_checkout.connectors.base import (
    DeliveryRequest,
    DeliveryScheduler,
    PaymentPreferenceGateway,
    PreferenceItem,
    PreferenceRequest,
)
from perkins_checkout.errors import (
    CheckoutError,
    ConfigurationError,
    ExternalServiceError,
    FieldError,
    NetworkError,
)
from perkins_checkout.models import Order, OrderLine, OrderStatus, PaymentMethod, ShippingFee, utc_now
from perkins_checkout.policy import SubmissionStep, is_tolerated
from perkins_checkout.pricing import PricingEngine, format_price
from perkins_checkout.session import CheckoutSession
from perkins_checkout.state_machine import CheckoutStep, validate_shipping

logger = logging.getLogger(__name__)

# Failures a submission step may raise; anything else is a bug and propagates.
EXTERNAL_FAILURES = (ExternalServiceError, NetworkError, ConfigurationError)

PAYMENT_ERROR_NOTICE = "We could not start the payment. Please try again."


class SubmissionOutcome(str, Enum):
    REDIRECT = "redirect"  # Hand off to the hosted payment page
    COMPLETED = "completed"  # Order placed, checkout finished
    FAILED = "failed"  # Stay on Payment, nothing submitted externally


@dataclass
class SubmissionResult:
    """What the presentation layer needs after a confirm."""
    outcome: SubmissionOutcome
    step: CheckoutStep
    order: Optional[Order] = None
    redirect_url: Optional[str] = None
    notice: str = ""
    errors: List[FieldError] = field(default_factory=list)
    tolerated_failures: List[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.outcome is not SubmissionOutcome.FAILED


class OrderIdGenerator:
    """Time-derived ids, strictly increasing within the process."""

    def __init__(self, prefix: str = "ORD", clock: Callable[[], float] = time.time):
        self.prefix = prefix
        self._clock = clock
        self._last = 0
        self._lock = threading.Lock()

    def __call__(self) -> str:
        with self._lock:
            millis = int(self._clock() * 1000)
            if millis <= self._last:
                millis = self._last + 1
            self._last = millis
        return f"{self.prefix}-{millis}"


class OrderSubmissionCoordinator:
    """
    Orchestrates confirm: snapshot -> local record -> payment branch.

    mercadopago: the preference call is authoritative and any failure
    aborts the attempt. cash: delivery scheduling is best effort and the
    checkout completes whether or not it succeeds.
    """

    def __init__(
        self,
        payments: PaymentPreferenceGateway,
        scheduler: DeliveryScheduler,
        pricing: Optional[PricingEngine] = None,
        id_generator: Optional[Callable[[], str]] = None,
    ):
        self.payments = payments
        self.scheduler = scheduler
        self.pricing = pricing or PricingEngine()
        self.next_order_id = id_generator or OrderIdGenerator()

    def quote_shipping(self, session: CheckoutSession) -> ShippingFee:
        shipping = session.shipping
        return self.pricing.shipping_fee(
            shipping.region, shipping.delivery_date, session.exchange_rate.rate
        )

    def build_order(self, session: CheckoutSession) -> Order:
        """Snapshot the cart and shipping data into an immutable order."""
        shipping = session.shipping
        fee = self.quote_shipping(session)
        lines = tuple(
            OrderLine(
                product_id=line.product_id,
                name=line.product.name,
                unit_price=line.unit_price,
                quantity=line.quantity,
            )
            for line in session.cart.lines
        )
        subtotal = sum((line.subtotal for line in lines), Decimal("0"))
        return Order(
            id=self.next_order_id(),
            lines=lines,
            total=subtotal + fee.cost_basis,
            customer_name=shipping.full_name.strip(),
            address=shipping.composed_address(),
            delivery_date=shipping.tagged_delivery_date(),
            status=OrderStatus.PENDING,
            created_at=utc_now(),
            phone=shipping.phone.strip(),
            region=shipping.region,
            payment_method=shipping.payment_method,
            shipping_fee=fee.local,
        )

    async def confirm(self, session: CheckoutSession) -> SubmissionResult:
        """
        Handle the confirm event for a session in the Payment step.

        Raises:
            InvalidTransition: If the session is not in the Payment step
            SubmissionInProgress: If a previous confirm is still in flight
        """
        session.machine.begin_confirm()

        errors = validate_shipping(session.shipping)
        if session.cart.is_empty:
            errors.append(FieldError("cart", "Your cart is empty."))
        if errors:
            return SubmissionResult(
                outcome=SubmissionOutcome.FAILED,
                step=session.step,
                notice="Please complete all shipping details.",
                errors=errors,
            )

        session.acquire_processing()
        try:
            order = self.build_order(session)
            session.history.record(order)

            if order.payment_method is PaymentMethod.MERCADOPAGO:
                return await self._submit_mercadopago(session, order)
            return await self._submit_cash(session, order)
        finally:
            session.release_processing()

    async def _attempt(
        self,
        step: SubmissionStep,
        call: Callable[[], Awaitable[Any]],
    ) -> Tuple[Any, Optional[CheckoutError]]:
        try:
            return await call(), None
        except EXTERNAL_FAILURES as e:
            if is_tolerated(step):
                logger.warning(f"{step.value} failed, continuing: {e}")
            else:
                logger.error(f"{step.value} failed, aborting submission: {e}")
            return None, e

    async def _submit_mercadopago(self, session: CheckoutSession, order: Order) -> SubmissionResult:
        rate = session.exchange_rate.rate
        fee = self.quote_shipping(session)
        request = PreferenceRequest(
            items=[
                PreferenceItem(
                    title=line.name,
                    quantity=line.quantity,
                    unit_price=self.pricing.to_local(line.unit_price, rate),
                )
                for line in order.lines
            ],
            shipping_cost=fee.local,
            external_reference=order.id,
        )

        step = SubmissionStep.PAYMENT_PREFERENCE
        response, error = await self._attempt(step, lambda: self.payments.create_preference(request))

        if error is not None and not is_tolerated(step):
            session.history.mark_failed(order.id, str(error))
            session.machine.complete_submission(success=False)
            return SubmissionResult(
                outcome=SubmissionOutcome.FAILED,
                step=session.step,
                order=order,
                notice=PAYMENT_ERROR_NOTICE,
            )

        session.history.confirm(order.id, response.preference_id if response else None)
        session.cart.clear()
        session.machine.complete_submission(success=True)
        logger.info(f"Order {order.id} handed off to payment gateway")
        return SubmissionResult(
            outcome=SubmissionOutcome.REDIRECT,
            step=session.step,
            order=order,
            redirect_url=response.init_point if response else None,
        )

    async def _submit_cash(self, session: CheckoutSession, order: Order) -> SubmissionResult:
        rate = session.exchange_rate.rate
        request = DeliveryRequest(
            order_id=order.id,
            customer_name=order.customer_name,
            address=order.address,
            delivery_date=session.shipping.delivery_date.isoformat(),
            items=[
                {"productId": line.product_id, "name": line.name, "quantity": line.quantity}
                for line in order.lines
            ],
            total=format_price(self.pricing.to_local(order.total, rate)),
        )

        step = SubmissionStep.DELIVERY_SCHEDULING
        response, error = await self._attempt(step, lambda: self.scheduler.schedule_delivery(request))

        tolerated = []
        if error is not None:
            if not is_tolerated(step):
                session.history.mark_failed(order.id, str(error))
                session.machine.complete_submission(success=False)
                return SubmissionResult(
                    outcome=SubmissionOutcome.FAILED,
                    step=session.step,
                    order=order,
                    notice="We could not schedule your delivery. Please try again.",
                )
            session.history.note_unacknowledged(order.id, str(error))
            tolerated.append(f"{step.value}: {error}")
        else:
            session.history.confirm(order.id, response.scheduling_id)

        session.cart.clear()
        session.machine.complete_submission(success=True)
        delivery = session.shipping.delivery_date.strftime("%d/%m/%Y")
        logger.info(f"Order {order.id} completed for cash payment on {delivery}")
        return SubmissionResult(
            outcome=SubmissionOutcome.COMPLETED,
            step=session.step,
            order=order,
            notice=f"Order {order.id} confirmed. We will deliver on {delivery}; pay in cash on arrival.",
            tolerated_failures=tolerated,
        )
