"""HTTP client for the storefront's collaborator API."""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

import httpx

from perkins_checkout.connectors.base import (
    DeliveryRequest,
    DeliveryResponse,
    DeliveryScheduler,
    PaymentPreferenceGateway,
    PreferenceRequest,
    PreferenceResponse,
)
from perkins_checkout.errors import NetworkError, PaymentPreferenceError, SchedulingError
from perkins_checkout.models import Product

logger = logging.getLogger(__name__)


class CheckoutApiClient(PaymentPreferenceGateway, DeliveryScheduler):
    """Talks to ``/api/*`` endpoints. Every call is attempted exactly once."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
        )

    async def _post(self, path: str, payload: Dict[str, Any]) -> httpx.Response:
        try:
            return await self._client.post(path, json=payload)
        except httpx.HTTPError as e:
            raise NetworkError(f"POST {path} failed: {e}") from e

    @staticmethod
    def _json(response: httpx.Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}

    @staticmethod
    def _error_message(data: Dict[str, Any], default: str) -> str:
        message = data.get("error") or data.get("detail")
        return message if isinstance(message, str) else default

    async def create_preference(self, request: PreferenceRequest) -> PreferenceResponse:
        response = await self._post("/api/create_preference", request.to_payload())
        data = self._json(response)
        if response.status_code >= 400:
            raise PaymentPreferenceError(
                self._error_message(data, "Payment preference creation failed"),
                status_code=response.status_code,
            )
        init_point = data.get("init_point")
        if not init_point:
            raise PaymentPreferenceError(
                "Payment preference response has no redirect URL",
                status_code=response.status_code,
            )
        return PreferenceResponse(init_point=init_point, preference_id=data.get("id"))

    async def schedule_delivery(self, request: DeliveryRequest) -> DeliveryResponse:
        response = await self._post("/api/schedule_delivery", request.to_payload())
        data = self._json(response)
        if response.status_code >= 400 or not data.get("success"):
            raise SchedulingError(
                self._error_message(data, "Delivery scheduling failed"),
                status_code=response.status_code,
            )
        return DeliveryResponse(success=True, scheduling_id=data.get("schedulingId"))

    async def fetch_product_overrides(self) -> Dict[str, Dict[str, Any]]:
        """Per-product field overrides maintained by the back office."""
        try:
            response = await self._client.get("/api/products")
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise NetworkError(f"GET /api/products failed: {e}") from e
        return self._json(response)

    async def close(self) -> None:
        await self._client.aclose()


def apply_overrides(
    products: Iterable[Product],
    overrides: Dict[str, Dict[str, Any]],
) -> List[Product]:
    """Merge overrides into catalog products and drop logically deleted ones."""
    merged = []
    for product in products:
        updates = overrides.get(product.id)
        if updates:
            try:
                product = product.with_overrides(updates)
            except ValueError as e:
                logger.warning(f"Ignoring overrides for {product.id}: {e}")
        if not product.deleted:
            merged.append(product)
    return merged
