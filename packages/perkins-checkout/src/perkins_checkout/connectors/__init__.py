"""Collaborator connectors."""
from perkins_checkout.connectors.base import (
    DeliveryRequest,
    DeliveryResponse,
    DeliveryScheduler,
    PaymentPreferenceGateway,
    PreferenceItem,
    PreferenceRequest,
    PreferenceResponse,
)
from perkins_checkout.connectors.http import CheckoutApiClient, apply_overrides

__all__ = [
    "CheckoutApiClient",
    "DeliveryRequest",
    "DeliveryResponse",
    "DeliveryScheduler",
    "PaymentPreferenceGateway",
    "PreferenceItem",
    "PreferenceRequest",
    "PreferenceResponse",
    "apply_overrides",
]
