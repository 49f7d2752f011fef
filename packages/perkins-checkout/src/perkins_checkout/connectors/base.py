"""Ports for the external writes made at order submission."""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class PreferenceItem:
    """Line item priced in settlement (local) currency."""
    title: str
    quantity: int
    unit_price: Decimal

    def to_payload(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "quantity": self.quantity,
            "unit_price": int(self.unit_price),
        }


@dataclass(frozen=True)
class PreferenceRequest:
    items: List[PreferenceItem]
    shipping_cost: Decimal
    external_reference: str

    def to_payload(self) -> Dict[str, Any]:
        return {
            "items": [item.to_payload() for item in self.items],
            "shippingCost": int(self.shipping_cost),
            "external_reference": self.external_reference,
        }


@dataclass(frozen=True)
class PreferenceResponse:
    init_point: str
    preference_id: Optional[str] = None


@dataclass(frozen=True)
class DeliveryRequest:
    order_id: str
    customer_name: str
    address: str
    delivery_date: str
    items: List[Dict[str, Any]] = field(default_factory=list)
    total: str = ""

    def to_payload(self) -> Dict[str, Any]:
        return {
            "orderId": self.order_id,
            "customerName": self.customer_name,
            "address": self.address,
            "deliveryDate": self.delivery_date,
            "items": list(self.items),
            "total": self.total,
        }


@dataclass(frozen=True)
class DeliveryResponse:
    success: bool
    scheduling_id: Optional[str] = None


class PaymentPreferenceGateway(ABC):
    """Creates a hosted-payment preference and returns its redirect URL."""

    @abstractmethod
    async def create_preference(self, request: PreferenceRequest) -> PreferenceResponse:
        """
        Create a payment preference.

        Raises:
            PaymentPreferenceError: On a non-success response or missing redirect URL
            NetworkError: On transport failure
        """
        pass


class DeliveryScheduler(ABC):
    """Best-effort delivery scheduling."""

    @abstractmethod
    async def schedule_delivery(self, request: DeliveryRequest) -> DeliveryResponse:
        """
        Schedule a delivery for a submitted order.

        Raises:
            SchedulingError: On a non-success response
            NetworkError: On transport failure
        """
        pass
