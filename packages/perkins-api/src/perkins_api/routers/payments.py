"""Payment preference endpoint."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, ConfigDict, Field

from perkins_checkout.errors import ConfigurationError, NetworkError, PaymentPreferenceError

from perkins_api.providers import MercadoPagoConnector

logger = logging.getLogger(__name__)

router = APIRouter(tags=["payments"])


class PreferenceItemBody(BaseModel):
    title: str
    quantity: int = Field(gt=0)
    unit_price: Decimal = Field(ge=0)


class CreatePreferenceRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    items: List[PreferenceItemBody] = Field(min_length=1)
    shipping_cost: Decimal = Field(default=Decimal("0"), ge=0, alias="shippingCost")
    external_reference: str


class CreatePreferenceResponse(BaseModel):
    id: Optional[str] = None
    init_point: str


@dataclass
class PaymentDependencies:
    mercadopago: MercadoPagoConnector


def get_deps() -> PaymentDependencies:
    raise NotImplementedError("Dependency override required")


def _back_url(request: Request) -> str:
    origin = request.headers.get("origin")
    if origin:
        return origin.rstrip("/") + "/"
    return str(request.base_url)


@router.post("/create_preference", response_model=CreatePreferenceResponse)
async def create_preference(
    body: CreatePreferenceRequest,
    request: Request,
    deps: PaymentDependencies = Depends(get_deps),
):
    """Create a hosted checkout preference and return its redirect URL."""
    try:
        result = await deps.mercadopago.create_preference(
            items=[item.model_dump() for item in body.items],
            shipping_cost=body.shipping_cost,
            external_reference=body.external_reference,
            back_url=_back_url(request),
        )
    except ConfigurationError as e:
        logger.error(f"Payment preference unavailable: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server configuration error",
        )
    except (PaymentPreferenceError, NetworkError) as e:
        logger.error(f"Payment preference for {body.external_reference} failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to create payment preference",
        )

    if not result.get("init_point"):
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Payment provider returned no redirect URL",
        )
    return CreatePreferenceResponse(id=result.get("id"), init_point=result["init_point"])
