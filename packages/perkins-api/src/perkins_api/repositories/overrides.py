"""Product override store.

Overrides are per-field patches on top of the static catalog, keyed by
product id. Later writes to the same field win.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Fields that may be cleared with an explicit null
NULLABLE_FIELDS = frozenset({"margin_retail", "margin_wholesale"})


class ProductOverrides(BaseModel):
    """The editable product fields, each optional. Unknown keys are rejected."""

    model_config = ConfigDict(extra="forbid")

    brand: Optional[str] = Field(default=None, min_length=1)
    name: Optional[str] = Field(default=None, min_length=1)
    price: Optional[Decimal] = Field(default=None, ge=0)
    stock: Optional[int] = Field(default=None, ge=0)
    margin_retail: Optional[Decimal] = Field(default=None, ge=0)
    margin_wholesale: Optional[Decimal] = Field(default=None, ge=0)
    volume_ml: Optional[int] = Field(default=None, gt=0)
    gender: Optional[str] = None
    scent_tags: Optional[List[str]] = None
    deleted: Optional[bool] = None

    @model_validator(mode="after")
    def reject_null_values(self):
        nulls = sorted(
            name for name in self.model_fields_set
            if getattr(self, name) is None and name not in NULLABLE_FIELDS
        )
        if nulls:
            raise ValueError(f"Fields cannot be null: {', '.join(nulls)}")
        return self

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)


Updates = Union[ProductOverrides, Dict[str, Any]]


def _validated(updates: Updates) -> ProductOverrides:
    if isinstance(updates, ProductOverrides):
        return updates
    return ProductOverrides.model_validate(updates)


class ProductOverrideRepository:
    def __init__(self):
        self._overrides: dict[str, dict[str, Any]] = {}

    async def all(self) -> Dict[str, Dict[str, Any]]:
        return {pid: dict(fields) for pid, fields in self._overrides.items()}

    async def get(self, product_id: str) -> Dict[str, Any]:
        return dict(self._overrides.get(product_id, {}))

    async def merge(self, product_id: str, updates: Updates) -> Dict[str, Any]:
        changes = _validated(updates).changes()
        current = self._overrides.setdefault(product_id, {})
        current.update(changes)
        return dict(current)

    async def merge_many(self, updates: Iterable[tuple[str, Updates]]) -> int:
        """Apply several merges; every entry is validated before any is written."""
        batch = [(product_id, _validated(fields).changes()) for product_id, fields in updates]
        for product_id, changes in batch:
            self._overrides.setdefault(product_id, {}).update(changes)
        return len(batch)
