"""Order listing and status updates."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field, model_validator

from perkins_checkout.errors import ConfigurationError, NetworkError, SchedulingError

from perkins_api.providers import GoogleCalendarClient
from perkins_api.repositories import IllegalStatusChange, OrderRepository
from perkins_api.repositories.orders import RECENT_LIMIT

logger = logging.getLogger(__name__)

router = APIRouter(tags=["orders"])


class UpdateOrderStatusRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    order_id: Optional[str] = Field(default=None, alias="orderId")
    scheduling_id: Optional[str] = Field(default=None, alias="schedulingId")
    status: Literal["pending", "shipped", "delivered", "cancelled"]

    @model_validator(mode="after")
    def require_identifier(self):
        if not (self.order_id or self.scheduling_id):
            raise ValueError("orderId or schedulingId is required")
        return self


@dataclass
class OrderDependencies:
    orders: OrderRepository
    calendar: GoogleCalendarClient


def get_deps() -> OrderDependencies:
    raise NotImplementedError("Dependency override required")


@router.get("/orders")
async def list_orders(deps: OrderDependencies = Depends(get_deps)):
    return await deps.orders.list_recent(RECENT_LIMIT)


@router.post("/update_order_status")
async def update_order_status(
    body: UpdateOrderStatusRequest,
    deps: OrderDependencies = Depends(get_deps),
):
    """
    Move an order forward (pending -> shipped -> delivered) or cancel it.

    The calendar event colour follows the status; a failed colour update is
    logged and does not undo the status change.
    """
    order = await deps.orders.find(order_id=body.order_id, scheduling_id=body.scheduling_id)
    if not order:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")

    try:
        order = await deps.orders.update_status(order["order_id"], body.status)
    except IllegalStatusChange as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    if order.get("scheduling_id") and deps.calendar.is_configured:
        try:
            await deps.calendar.set_status_color(order["scheduling_id"], body.status)
        except (ConfigurationError, SchedulingError, NetworkError) as e:
            logger.warning(f"Could not recolour event for order {order['order_id']}: {e}")

    return {"success": True, "order": order}
