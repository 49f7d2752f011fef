"""Order repository for scheduled deliveries.

Rows are kept in memory, newest first, up to ``max_rows``; the oldest rows
are evicted past that bound. The in-memory mode is not multi-instance safe.
"""

from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

ORDER_STATUSES = ("pending", "shipped", "delivered", "cancelled")
TERMINAL_STATUSES = frozenset({"delivered", "cancelled"})
_FORWARD = {"pending": "shipped", "shipped": "delivered"}

RECENT_LIMIT = 100
DEFAULT_MAX_ROWS = 1000


class IllegalStatusChange(ValueError):
    """Raised when a status update would move an order backwards."""

    def __init__(self, current: str, requested: str):
        super().__init__(f"Cannot move order from {current} to {requested}")
        self.current = current
        self.requested = requested


def can_transition(current: str, requested: str) -> bool:
    if current == requested:
        return True
    if current in TERMINAL_STATUSES:
        return False
    if requested == "cancelled":
        return True
    return _FORWARD.get(current) == requested


class OrderRepository:
    """In-memory store of delivery orders keyed by order id."""

    def __init__(self, max_rows: int = DEFAULT_MAX_ROWS):
        if max_rows < 1:
            raise ValueError("max_rows must be positive")
        self.max_rows = max_rows
        self._orders: dict[str, dict[str, Any]] = {}
        self._by_scheduling_id: dict[str, str] = {}

    def _drop(self, order_id: str) -> None:
        old = self._orders.pop(order_id, None)
        if old and self._by_scheduling_id.get(old["scheduling_id"]) == order_id:
            del self._by_scheduling_id[old["scheduling_id"]]

    async def save(
        self,
        order_id: str,
        customer_name: str,
        address: str,
        delivery_date: str,
        items: List[Dict[str, Any]],
        total: str,
        scheduling_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        row: dict[str, Any] = {
            "order_id": order_id,
            "scheduling_id": scheduling_id,
            "customer_name": customer_name,
            "address": address,
            "delivery_date": delivery_date,
            "items": list(items),
            "total": total,
            "status": "pending",
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        self._drop(order_id)
        self._orders[order_id] = row
        if scheduling_id:
            self._by_scheduling_id[scheduling_id] = order_id
        while len(self._orders) > self.max_rows:
            self._drop(next(iter(self._orders)))
        return row

    async def get(self, order_id: str) -> Optional[Dict[str, Any]]:
        return self._orders.get(order_id)

    async def get_by_scheduling_id(self, scheduling_id: str) -> Optional[Dict[str, Any]]:
        order_id = self._by_scheduling_id.get(scheduling_id)
        if order_id is None:
            return None
        return self._orders.get(order_id)

    async def find(
        self, order_id: Optional[str] = None, scheduling_id: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        if order_id:
            return await self.get(order_id)
        if scheduling_id:
            return await self.get_by_scheduling_id(scheduling_id)
        return None

    async def list_recent(self, limit: int = RECENT_LIMIT) -> List[Dict[str, Any]]:
        # dicts keep insertion order; newest saves are last
        rows = list(self._orders.values())[::-1]
        return rows[:limit]

    async def update_status(self, order_id: str, status: str) -> Dict[str, Any]:
        """Advance an order's status.

        Raises:
            KeyError: Unknown order
            ValueError: Unknown status
            IllegalStatusChange: The move is not a forward step or cancellation
        """
        if status not in ORDER_STATUSES:
            raise ValueError(f"Unknown status: {status}")
        row = self._orders[order_id]
        if not can_transition(row["status"], status):
            raise IllegalStatusChange(row["status"], status)
        row["status"] = status
        row["updated_at"] = datetime.now(timezone.utc).isoformat()
        return row

    def __len__(self) -> int:
        return len(self._orders)
