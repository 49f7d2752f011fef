"""Product override endpoints."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from perkins_api.repositories import ProductOverrideRepository, ProductOverrides

router = APIRouter(tags=["products"])


class ProductUpdate(BaseModel):
    id: str = Field(min_length=1)
    updates: ProductOverrides


class BulkUpdateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    updates_array: List[ProductUpdate] = Field(alias="updatesArray")


@dataclass
class ProductDependencies:
    overrides: ProductOverrideRepository


def get_deps() -> ProductDependencies:
    raise NotImplementedError("Dependency override required")


@router.get("/products")
async def list_overrides(deps: ProductDependencies = Depends(get_deps)):
    return await deps.overrides.all()


@router.post("/products")
async def update_product(
    body: ProductUpdate,
    deps: ProductDependencies = Depends(get_deps),
):
    merged = await deps.overrides.merge(body.id, body.updates)
    return {"success": True, "id": body.id, "overrides": merged}


@router.post("/bulk-update")
async def bulk_update(
    body: BulkUpdateRequest,
    deps: ProductDependencies = Depends(get_deps),
):
    count = await deps.overrides.merge_many((u.id, u.updates) for u in body.updates_array)
    return {"success": True, "updated": count}
