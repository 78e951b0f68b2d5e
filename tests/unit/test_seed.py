from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from storefront.storage.client import DataClient
from storefront.storage.seed import seed_demo_data
from storefront.tenancy.directory import TenantDirectory

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine


@pytest.mark.unit
class TestSeedDemoData:
    async def test_seed_creates_tenants_users_and_products(self, async_engine: AsyncEngine) -> None:
        await seed_demo_data(async_engine)

        directory = TenantDirectory(async_engine)
        demo = await directory.find_by_domain("localhost")
        assert demo is not None
        assert demo.slug == "demo-store"
        test_store = await directory.find_by_slug("test-store")

        client = DataClient(async_engine)
        assert await client.for_tenant(demo.id).product.count() == 3
        assert await client.for_tenant(test_store.id).product.count() == 3
        assert await client.user.count(where={"tenant_id": demo.id}) == 3
        root = await client.user.find_first(where={"email": "superadmin@storefront.com"})
        assert root.role == "SUPER_ADMIN"
        assert root.tenant_id is None

    async def test_seed_is_idempotent(self, async_engine: AsyncEngine) -> None:
        await seed_demo_data(async_engine)
        await seed_demo_data(async_engine)

        client = DataClient(async_engine)
        assert len(await TenantDirectory(async_engine).find_all()) == 2
        assert await client.product.count() == 6
        assert await client.user.count() == 7
