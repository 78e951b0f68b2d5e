"""User routes demonstrating each access level."""

from __future__ import annotations

from typing import Any

from fastapi import Depends

from storefront.models.domain import Principal
from storefront.types import UserRole
from storefront.web.dependencies import get_current_user
from storefront.web.metadata import GuardedRouter, public, roles

router = GuardedRouter(prefix="/users", tags=["users"])


@router.get("")
@public()
async def public_users() -> dict[str, str]:
    return {"message": "This endpoint is public and available to everyone"}


@router.get("/profile")
async def profile(user: Principal = Depends(get_current_user)) -> dict[str, Any]:
    return {
        "message": "This endpoint requires authentication",
        "user": user.model_dump(mode="json"),
    }


@router.get("/admin")
@roles(UserRole.ADMIN)
async def admin_data(user: Principal = Depends(get_current_user)) -> dict[str, Any]:
    return {
        "message": "This endpoint requires ADMIN role",
        "user": {"id": user.id, "email": user.email, "role": user.role},
    }


@router.get("/super-admin")
@roles(UserRole.SUPER_ADMIN)
async def super_admin_data(user: Principal = Depends(get_current_user)) -> dict[str, Any]:
    return {
        "message": "This endpoint requires SUPER_ADMIN role",
        "user": {"id": user.id, "email": user.email, "role": user.role},
    }


@router.get("/staff")
@roles(UserRole.STAFF)
async def staff_data(user: Principal = Depends(get_current_user)) -> dict[str, Any]:
    return {
        "message": "This endpoint requires STAFF role",
        "user": {
            "id": user.id,
            "email": user.email,
            "role": user.role,
            "tenant_id": user.tenant_id,
        },
    }
