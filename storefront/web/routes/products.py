"""Product catalogue routes. All data access goes through the tenant-scoped client."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import Depends, Query

from storefront.exceptions import NotFoundError
from storefront.models.api import ProductCreate, ProductResponse, ProductUpdate
from storefront.storage.client import DataClient
from storefront.types import UserRole
from storefront.web.dependencies import get_scoped_client
from storefront.web.metadata import GuardedRouter, roles

logger = structlog.get_logger(__name__)

router = GuardedRouter(prefix="/products", tags=["products"], roles=[UserRole.CUSTOMER])


def _to_response(product: Any) -> ProductResponse:
    return ProductResponse.model_validate(product.model_dump())


@router.get("")
async def list_products(
    category: str | None = None,
    skip: int = Query(default=0, ge=0),
    take: int = Query(default=50, ge=1, le=200),
    db: DataClient = Depends(get_scoped_client),
) -> list[ProductResponse]:
    where: dict[str, Any] = {"is_active": True}
    if category:
        where["category"] = category
    products = await db.product.find_many(
        where=where, order_by={"name": "asc"}, skip=skip, take=take
    )
    return [_to_response(p) for p in products]


@router.get("/stats")
@roles(UserRole.STAFF)
async def product_stats(db: DataClient = Depends(get_scoped_client)) -> dict[str, Any]:
    totals = await db.product.aggregate(count=True, sum=["stock"], avg=["price_cents"])
    by_category = await db.product.group_by(by=["category"], count=True, sum=["stock"])
    return {"totals": totals, "by_category": by_category}


@router.get("/{product_id}")
async def get_product(
    product_id: int, db: DataClient = Depends(get_scoped_client)
) -> ProductResponse:
    product = await db.product.find_unique(where={"id": product_id})
    if product is None:
        raise NotFoundError(f"Product with ID {product_id} not found")
    return _to_response(product)


@router.post("", status_code=201)
@roles(UserRole.STAFF)
async def create_product(
    body: ProductCreate, db: DataClient = Depends(get_scoped_client)
) -> ProductResponse:
    product = await db.product.create(data=body.model_dump())
    logger.info("product_created", product_id=product.id, sku=product.sku)
    return _to_response(product)


@router.put("/{product_id}")
@roles(UserRole.STAFF)
async def update_product(
    product_id: int,
    body: ProductUpdate,
    db: DataClient = Depends(get_scoped_client),
) -> ProductResponse:
    product = await db.product.update(
        where={"id": product_id}, data=body.model_dump(exclude_unset=True)
    )
    return _to_response(product)


@router.delete("/{product_id}", status_code=204)
@roles(UserRole.ADMIN)
async def delete_product(product_id: int, db: DataClient = Depends(get_scoped_client)) -> None:
    await db.product.delete(where={"id": product_id})
    logger.info("product_deleted", product_id=product_id)
