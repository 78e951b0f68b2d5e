"""Administrative tenant CRUD (platform super admins only)."""

from __future__ import annotations

import structlog
from fastapi import Depends

from storefront.models.api import (
    CreateTenantRequest,
    TenantResponse,
    UpdateTenantRequest,
    UpdateTenantStatusRequest,
)
from storefront.models.domain import TenantRecord
from storefront.tenancy.directory import TenantDirectory
from storefront.types import UserRole
from storefront.web.dependencies import get_tenant_directory
from storefront.web.metadata import GuardedRouter

logger = structlog.get_logger(__name__)

router = GuardedRouter(
    prefix="/admin/tenants",
    tags=["admin"],
    bypass_tenant=True,
    roles=[UserRole.SUPER_ADMIN],
)


def _to_response(record: TenantRecord) -> TenantResponse:
    return TenantResponse.model_validate(record.model_dump())


@router.get("")
async def list_tenants(
    directory: TenantDirectory = Depends(get_tenant_directory),
) -> list[TenantResponse]:
    return [_to_response(t) for t in await directory.find_all()]


@router.get("/{tenant_id}")
async def get_tenant(
    tenant_id: str,
    directory: TenantDirectory = Depends(get_tenant_directory),
) -> TenantResponse:
    return _to_response(await directory.find_by_id(tenant_id))


@router.post("", status_code=201)
async def create_tenant(
    body: CreateTenantRequest,
    directory: TenantDirectory = Depends(get_tenant_directory),
) -> TenantResponse:
    return _to_response(await directory.create(body))


@router.put("/{tenant_id}")
async def update_tenant(
    tenant_id: str,
    body: UpdateTenantRequest,
    directory: TenantDirectory = Depends(get_tenant_directory),
) -> TenantResponse:
    return _to_response(await directory.update(tenant_id, body))


@router.put("/{tenant_id}/status")
async def update_tenant_status(
    tenant_id: str,
    body: UpdateTenantStatusRequest,
    directory: TenantDirectory = Depends(get_tenant_directory),
) -> TenantResponse:
    return _to_response(await directory.update_status(tenant_id, body.status))


@router.delete("/{tenant_id}")
async def delete_tenant(
    tenant_id: str,
    directory: TenantDirectory = Depends(get_tenant_directory),
) -> TenantResponse:
    return _to_response(await directory.delete(tenant_id))
