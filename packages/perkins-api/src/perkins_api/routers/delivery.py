"""Delivery scheduling endpoint."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field

from perkins_checkout.errors import ConfigurationError, NetworkError, SchedulingError

from perkins_api.config import ApiSettings
from perkins_api.providers import GoogleCalendarClient
from perkins_api.repositories import OrderRepository

logger = logging.getLogger(__name__)

router = APIRouter(tags=["delivery"])


class ScheduleDeliveryRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    order_id: str = Field(alias="orderId", min_length=1)
    customer_name: str = Field(alias="customerName", min_length=1)
    address: str = Field(min_length=1)
    delivery_date: date = Field(alias="deliveryDate")
    items: List[Dict[str, Any]] = Field(default_factory=list)
    total: str = ""


@dataclass
class DeliveryDependencies:
    settings: ApiSettings
    calendar: GoogleCalendarClient
    orders: OrderRepository


def get_deps() -> DeliveryDependencies:
    raise NotImplementedError("Dependency override required")


@router.post("/schedule_delivery")
async def schedule_delivery(
    body: ScheduleDeliveryRequest,
    deps: DeliveryDependencies = Depends(get_deps),
):
    """Put the delivery on the shared calendar and record the order."""
    try:
        event = await deps.calendar.insert_delivery(
            order_id=body.order_id,
            customer_name=body.customer_name,
            address=body.address,
            delivery_date=body.delivery_date.isoformat(),
            items=body.items,
            total=body.total,
        )
    except ConfigurationError:
        missing = deps.settings.missing_calendar_settings
        if missing:
            logger.error(f"Delivery scheduling unavailable, missing settings: {', '.join(missing)}")
        else:
            logger.error("Delivery scheduling unavailable, calendar credentials were rejected at startup")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server configuration error",
        )
    except (SchedulingError, NetworkError) as e:
        logger.error(f"Scheduling order {body.order_id} failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to schedule delivery",
        )

    scheduling_id = event.get("id")
    await deps.orders.save(
        order_id=body.order_id,
        customer_name=body.customer_name,
        address=body.address,
        delivery_date=body.delivery_date.isoformat(),
        items=body.items,
        total=body.total,
        scheduling_id=scheduling_id,
    )
    logger.info(f"Order {body.order_id} scheduled for {body.delivery_date.isoformat()}")
    return {
        "success": True,
        "schedulingId": scheduling_id,
        "eventLink": event.get("htmlLink"),
    }
