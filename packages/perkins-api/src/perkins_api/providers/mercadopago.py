"""MercadoPago checkout preference connector."""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

import httpx

from perkins_checkout.errors import ConfigurationError, NetworkError, PaymentPreferenceError

logger = logging.getLogger(__name__)

SHIPPING_ITEM_TITLE = "Shipping"


class MercadoPagoConnector:
    """Creates hosted checkout preferences priced in ARS."""

    def __init__(
        self,
        access_token: Optional[str],
        api_base: str = "https://api.mercadopago.com",
        statement_descriptor: str = "MR PERKINS",
        max_installments: int = 6,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.access_token = access_token
        self.api_base = api_base.rstrip("/")
        self.statement_descriptor = statement_descriptor
        self.max_installments = max_installments
        self._client = client or httpx.AsyncClient(base_url=self.api_base, timeout=timeout)

    @property
    def is_configured(self) -> bool:
        return bool(self.access_token)

    def build_preference(
        self,
        items: List[Dict[str, Any]],
        shipping_cost: Decimal,
        external_reference: str,
        back_url: str,
    ) -> Dict[str, Any]:
        mp_items = [
            {
                "title": item["title"],
                "unit_price": float(item["unit_price"]),
                "quantity": int(item["quantity"]),
                "currency_id": "ARS",
            }
            for item in items
        ]
        if shipping_cost > 0:
            mp_items.append({
                "title": SHIPPING_ITEM_TITLE,
                "unit_price": float(shipping_cost),
                "quantity": 1,
                "currency_id": "ARS",
            })

        return {
            "items": mp_items,
            "back_urls": {
                "success": back_url,
                "failure": back_url,
                "pending": back_url,
            },
            "auto_return": "approved",
            "external_reference": external_reference,
            "statement_descriptor": self.statement_descriptor,
            "payment_methods": {
                "excluded_payment_types": [{"id": "ticket"}],
                "installments": self.max_installments,
            },
        }

    async def create_preference(
        self,
        items: List[Dict[str, Any]],
        shipping_cost: Decimal,
        external_reference: str,
        back_url: str,
    ) -> Dict[str, Any]:
        """
        Create a checkout preference.

        Returns:
            ``{"id": ..., "init_point": ...}``

        Raises:
            ConfigurationError: If no access token is configured
            PaymentPreferenceError: If MercadoPago rejects the request
            NetworkError: On transport failure
        """
        if not self.is_configured:
            raise ConfigurationError("MercadoPago access token not configured")

        payload = self.build_preference(items, shipping_cost, external_reference, back_url)
        logger.info(f"Creating payment preference for order {external_reference}")
        try:
            response = await self._client.post(
                "/checkout/preferences",
                json=payload,
                headers={"Authorization": f"Bearer {self.access_token}"},
            )
        except httpx.HTTPError as e:
            raise NetworkError(f"MercadoPago request failed: {e}") from e

        if response.status_code >= 400:
            raise PaymentPreferenceError(
                f"MercadoPago rejected preference: {response.text[:200]}",
                status_code=response.status_code,
            )
        data = response.json()
        return {"id": data.get("id"), "init_point": data.get("init_point")}

    async def close(self):
        await self._client.aclose()
