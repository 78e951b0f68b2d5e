"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlmodel import SQLModel

import storefront.models.database  # noqa: F401  (registers tables on the metadata)
from storefront.config.settings import Settings
from storefront.models.api import CreateTenantRequest, DomainIn
from storefront.models.domain import TenantRecord
from storefront.storage.client import DataClient
from storefront.storage.repositories.users import UserRepository
from storefront.tenancy.directory import TenantDirectory
from storefront.types import UserRole
from storefront.web.app import create_app

PASSWORD = "correct-horse"  # nosec B105


@dataclass
class SeededData:
    acme: TenantRecord
    globex: TenantRecord
    user_ids: dict[str, str]


@pytest.fixture()
async def async_engine() -> AsyncIterator[AsyncEngine]:
    """In-memory SQLite engine with all tables created."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def password() -> str:
    return PASSWORD


@pytest.fixture()
def test_settings() -> Settings:
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        jwt_secret="test-secret",
        log_level="WARNING",
        debug=True,
    )


@pytest.fixture()
def directory(async_engine: AsyncEngine) -> TenantDirectory:
    return TenantDirectory(async_engine)


@pytest.fixture()
def data_client(async_engine: AsyncEngine) -> DataClient:
    return DataClient(async_engine)


@pytest.fixture()
async def seeded(directory: TenantDirectory, data_client: DataClient) -> SeededData:
    """Two active tenants, one user per role in acme, a customer in globex
    and a platform super admin.
    """
    acme = await directory.create(
        CreateTenantRequest(
            name="Acme",
            slug="acme",
            domains=[
                DomainIn(domain="acme.test", is_primary=True),
                DomainIn(domain="www.acme.test"),
            ],
        )
    )
    globex = await directory.create(
        CreateTenantRequest(
            name="Globex",
            slug="globex",
            domains=[DomainIn(domain="globex.test", is_primary=True)],
        )
    )

    users = UserRepository(data_client)
    user_ids: dict[str, str] = {}
    for role in (UserRole.ADMIN, UserRole.STAFF, UserRole.CUSTOMER):
        user = await users.create(
            email=f"{role.lower()}@acme.com", password=PASSWORD, role=role, tenant_id=acme.id
        )
        user_ids[f"acme_{role.lower()}"] = user.id
    globex_customer = await users.create(
        email="customer@globex.com", password=PASSWORD, role=UserRole.CUSTOMER, tenant_id=globex.id
    )
    user_ids["globex_customer"] = globex_customer.id
    root = await users.create(
        email="root@storefront.com", password=PASSWORD, role=UserRole.SUPER_ADMIN
    )
    user_ids["super_admin"] = root.id

    return SeededData(acme=acme, globex=globex, user_ids=user_ids)


@pytest.fixture()
def app(async_engine: AsyncEngine, test_settings: Settings):
    """A fresh app bound to the in-memory engine."""
    return create_app(engine=async_engine, settings=test_settings)


@pytest.fixture()
async def acme_client(app, seeded: SeededData) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://acme.test") as client:
        yield client


@pytest.fixture()
async def globex_client(app, seeded: SeededData) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://globex.test") as client:
        yield client


@pytest.fixture()
def login() -> Callable[[AsyncClient, str], Awaitable[dict[str, str]]]:
    """Log in through the API and return an Authorization header."""

    async def _login(client: AsyncClient, email: str) -> dict[str, str]:
        resp = await client.post("/auth/login", json={"email": email, "password": PASSWORD})
        assert resp.status_code == 201, resp.text
        return {"Authorization": f"Bearer {resp.json()['access_token']}"}

    return _login
