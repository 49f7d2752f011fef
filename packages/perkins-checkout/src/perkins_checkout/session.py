"""
Checkout session and the local order history.

A ``CheckoutSession`` owns everything one shopper mutates during checkout:
the cart, the shipping config, the step machine and the processing flag.
Only one session is active per cart, so nothing here is shared.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from perkins_checkout.cart import CartStore
from perkins_checkout.currency import ExchangeRateService
from perkins_checkout.errors import SubmissionInProgress
from perkins_checkout.models import ConfirmationStatus, ExchangeRate, Order, ShippingConfig, utc_now
from perkins_checkout.state_machine import CheckoutStateMachine, CheckoutStep

logger = logging.getLogger(__name__)


class OrderNotFound(KeyError):
    pass


@dataclass
class OrderRecord:
    """Local record of a submitted order and its acknowledgment state."""
    order: Order
    confirmation: ConfirmationStatus = ConfirmationStatus.PENDING_CONFIRMATION
    external_reference: Optional[str] = None
    last_error: Optional[str] = None
    recorded_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    @property
    def order_id(self) -> str:
        return self.order.id


class OrderHistory:
    """
    Newest-first order history for a session.

    Records are written before any external acknowledgment and start as
    ``pending_confirmation``. They move to ``confirmed`` only on a positive
    acknowledgment; everything else waits in ``pending_reconciliation``.
    """

    def __init__(self):
        self._records: Dict[str, OrderRecord] = {}
        self._order: List[str] = []

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, order_id: str) -> bool:
        return order_id in self._records

    def record(self, order: Order) -> OrderRecord:
        rec = OrderRecord(order=order)
        self._records[order.id] = rec
        self._order.insert(0, order.id)
        logger.info(f"Order {order.id} recorded locally as pending confirmation")
        return rec

    def get(self, order_id: str) -> OrderRecord:
        try:
            return self._records[order_id]
        except KeyError:
            raise OrderNotFound(order_id)

    def all(self) -> List[OrderRecord]:
        return [self._records[oid] for oid in self._order]

    def _set(self, order_id: str, status: ConfirmationStatus, **changes) -> OrderRecord:
        rec = self.get(order_id)
        rec.confirmation = status
        for key, value in changes.items():
            setattr(rec, key, value)
        rec.updated_at = utc_now()
        return rec

    def confirm(self, order_id: str, external_reference: Optional[str] = None) -> OrderRecord:
        return self._set(order_id, ConfirmationStatus.CONFIRMED, external_reference=external_reference)

    def mark_failed(self, order_id: str, error: str) -> OrderRecord:
        return self._set(order_id, ConfirmationStatus.FAILED, last_error=error)

    def note_unacknowledged(self, order_id: str, error: str) -> OrderRecord:
        """Keep the record pending after a tolerated failure."""
        return self._set(order_id, ConfirmationStatus.PENDING_CONFIRMATION, last_error=error)

    def pending_reconciliation(self) -> List[OrderRecord]:
        unresolved = (ConfirmationStatus.PENDING_CONFIRMATION, ConfirmationStatus.FAILED)
        return [rec for rec in self.all() if rec.confirmation in unresolved]

    def reconcile(
        self,
        order_id: str,
        acknowledged: bool,
        external_reference: Optional[str] = None,
    ) -> OrderRecord:
        """Resolve an unconfirmed record once the authoritative state is known."""
        if acknowledged:
            return self.confirm(order_id, external_reference)
        return self._set(order_id, ConfirmationStatus.ABANDONED)


class CheckoutSession:
    """Single active checkout for one cart."""

    def __init__(
        self,
        cart: Optional[CartStore] = None,
        rates: Optional[ExchangeRateService] = None,
        exchange_rate: Optional[ExchangeRate] = None,
        history: Optional[OrderHistory] = None,
    ):
        self.session_id = str(uuid.uuid4())
        self.cart = cart or CartStore()
        self.machine = CheckoutStateMachine(self.cart, ShippingConfig())
        self.history = history or OrderHistory()
        self._rates = rates
        self._exchange_rate = exchange_rate or (rates.current if rates else ExchangeRate.default())
        self._processing = False

    async def start(self) -> ExchangeRate:
        """Refresh the exchange rate once; the value is fixed for the session afterwards."""
        if self._rates is not None:
            self._exchange_rate = await self._rates.refresh()
        return self._exchange_rate

    @property
    def exchange_rate(self) -> ExchangeRate:
        return self._exchange_rate

    @property
    def shipping(self) -> ShippingConfig:
        return self.machine.shipping

    @property
    def step(self) -> CheckoutStep:
        return self.machine.step

    @property
    def is_processing(self) -> bool:
        return self._processing

    def acquire_processing(self) -> None:
        if self._processing:
            raise SubmissionInProgress("An order submission is already in progress")
        self._processing = True

    def release_processing(self) -> None:
        self._processing = False
