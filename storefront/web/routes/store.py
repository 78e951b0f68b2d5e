"""Public storefront profile of the resolved tenant."""

from __future__ import annotations

from fastapi import Depends

from storefront.models.api import StoreProfileResponse
from storefront.models.domain import TenantRecord
from storefront.web.dependencies import get_current_tenant
from storefront.web.metadata import GuardedRouter

router = GuardedRouter(prefix="/store", tags=["store"], public=True)


@router.get("")
async def store_profile(tenant: TenantRecord = Depends(get_current_tenant)) -> StoreProfileResponse:
    return StoreProfileResponse(
        name=tenant.name,
        slug=tenant.slug,
        primary_domain=tenant.primary_domain,
        settings=tenant.settings,
    )
