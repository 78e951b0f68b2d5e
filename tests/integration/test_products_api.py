"""Product routes: every read and write stays inside the request's tenant."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from httpx import AsyncClient

    from storefront.storage.client import DataClient


@pytest.fixture()
async def catalogue(seeded, data_client: DataClient) -> None:
    await data_client.for_tenant(seeded.acme.id).product.create_many(
        data=[
            {"sku": "TEE", "name": "T-Shirt", "category": "apparel", "stock": 5},
            {"sku": "MUG", "name": "Mug", "category": "home", "stock": 2},
        ]
    )
    await data_client.for_tenant(seeded.globex.id).product.create(
        data={"sku": "GLX", "name": "Globex Gadget", "category": "home", "price_cents": 9999}
    )


@pytest.mark.integration
@pytest.mark.usefixtures("catalogue")
class TestProductRoutes:
    async def test_requires_authentication(self, acme_client: AsyncClient) -> None:
        resp = await acme_client.get("/products")
        assert resp.status_code == 401

    async def test_list_only_own_tenant(
        self, acme_client: AsyncClient, globex_client: AsyncClient, login
    ) -> None:
        acme_headers = await login(acme_client, "customer@acme.com")
        resp = await acme_client.get("/products", headers=acme_headers)
        assert resp.status_code == 200
        assert [p["sku"] for p in resp.json()] == ["MUG", "TEE"]

        globex_headers = await login(globex_client, "customer@globex.com")
        resp = await globex_client.get("/products", headers=globex_headers)
        assert [p["sku"] for p in resp.json()] == ["GLX"]

    async def test_category_filter(self, acme_client: AsyncClient, login) -> None:
        headers = await login(acme_client, "customer@acme.com")
        resp = await acme_client.get("/products", params={"category": "home"}, headers=headers)
        assert [p["sku"] for p in resp.json()] == ["MUG"]

    async def test_other_tenant_product_is_not_found(
        self, acme_client: AsyncClient, data_client: DataClient, login
    ) -> None:
        gadget = await data_client.product.find_first(where={"sku": "GLX"})
        headers = await login(acme_client, "admin@acme.com")

        resp = await acme_client.get(f"/products/{gadget.id}", headers=headers)
        assert resp.status_code == 404
        resp = await acme_client.put(
            f"/products/{gadget.id}", json={"name": "Mine now"}, headers=headers
        )
        assert resp.status_code == 404
        resp = await acme_client.delete(f"/products/{gadget.id}", headers=headers)
        assert resp.status_code == 404

        unchanged = await data_client.product.find_unique(where={"id": gadget.id})
        assert unchanged.name == "Globex Gadget"

    async def test_create_is_stamped_with_request_tenant(
        self, acme_client: AsyncClient, data_client: DataClient, login, seeded
    ) -> None:
        headers = await login(acme_client, "staff@acme.com")
        resp = await acme_client.post(
            "/products",
            json={"sku": "CAP", "name": "Cap", "category": "apparel", "price_cents": 1599},
            headers=headers,
        )
        assert resp.status_code == 201
        row = await data_client.product.find_unique(where={"id": resp.json()["id"]})
        assert row.tenant_id == seeded.acme.id

    async def test_same_sku_in_two_tenants(self, globex_client: AsyncClient, login) -> None:
        headers = await login(globex_client, "root@storefront.com")
        resp = await globex_client.post(
            "/products", json={"sku": "TEE", "name": "Globex Tee"}, headers=headers
        )
        assert resp.status_code == 201

    async def test_duplicate_sku_conflicts(self, acme_client: AsyncClient, login) -> None:
        headers = await login(acme_client, "staff@acme.com")
        resp = await acme_client.post(
            "/products", json={"sku": "TEE", "name": "Another Tee"}, headers=headers
        )
        assert resp.status_code == 409

    async def test_customer_cannot_create(self, acme_client: AsyncClient, login) -> None:
        headers = await login(acme_client, "customer@acme.com")
        resp = await acme_client.post(
            "/products", json={"sku": "X", "name": "X"}, headers=headers
        )
        assert resp.status_code == 403

    async def test_update_and_delete(self, acme_client: AsyncClient, login) -> None:
        headers = await login(acme_client, "admin@acme.com")
        products = (await acme_client.get("/products", headers=headers)).json()
        mug = next(p for p in products if p["sku"] == "MUG")

        resp = await acme_client.put(
            f"/products/{mug['id']}", json={"stock": 10}, headers=headers
        )
        assert resp.status_code == 200
        assert resp.json()["stock"] == 10

        resp = await acme_client.delete(f"/products/{mug['id']}", headers=headers)
        assert resp.status_code == 204
        resp = await acme_client.get(f"/products/{mug['id']}", headers=headers)
        assert resp.status_code == 404

    async def test_staff_cannot_delete(self, acme_client: AsyncClient, login) -> None:
        headers = await login(acme_client, "staff@acme.com")
        products = (await acme_client.get("/products", headers=headers)).json()
        resp = await acme_client.delete(f"/products/{products[0]['id']}", headers=headers)
        assert resp.status_code == 403

    async def test_stats_are_scoped(self, acme_client: AsyncClient, login) -> None:
        headers = await login(acme_client, "staff@acme.com")
        resp = await acme_client.get("/products/stats", headers=headers)
        assert resp.status_code == 200
        data = resp.json()
        assert data["totals"]["count"] == 2
        assert data["totals"]["sum"]["stock"] == 7
        assert {g["category"] for g in data["by_category"]} == {"apparel", "home"}

    async def test_customer_cannot_read_stats(self, acme_client: AsyncClient, login) -> None:
        headers = await login(acme_client, "customer@acme.com")
        resp = await acme_client.get("/products/stats", headers=headers)
        assert resp.status_code == 403
