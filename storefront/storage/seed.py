"""Demo data: two storefront tenants, a user per role and a few products."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from storefront.exceptions import NotFoundError
from storefront.models.api import CreateTenantRequest, DomainIn, TenantSettings
from storefront.storage.client import DataClient
from storefront.storage.repositories.users import UserRepository
from storefront.tenancy.directory import TenantDirectory
from storefront.types import UserRole

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

logger = structlog.get_logger(__name__)

DEMO_PASSWORD = "admin123"  # nosec B105

_TENANTS = [
    CreateTenantRequest(
        name="Demo Store",
        slug="demo-store",
        domains=[
            DomainIn(domain="localhost", is_primary=True),
            DomainIn(domain="demo-store.local"),
        ],
        settings=TenantSettings.model_validate(
            {
                "theme": {"primary_color": "#3B82F6", "secondary_color": "#10B981"},
                "features": {"enable_reviews": True, "enable_wishlist": True},
                "contact": {"email": "info@demo-store.com", "phone": "+1 (555) 123-4567"},
            }
        ),
    ),
    CreateTenantRequest(
        name="Test Store",
        slug="test-store",
        domains=[DomainIn(domain="test-store.local", is_primary=True)],
        settings=TenantSettings.model_validate(
            {
                "theme": {"primary_color": "#9333EA", "font_family": "Roboto, sans-serif"},
                "features": {"enable_wishlist": False, "enable_comparisons": True},
                "contact": {"email": "info@test-store.com"},
            }
        ),
    ),
]

_PRODUCTS = [
    {"sku": "TSHIRT-1", "name": "T-Shirt", "category": "apparel", "price_cents": 1999, "stock": 50},
    {"sku": "MUG-1", "name": "Mug", "category": "home", "price_cents": 1299, "stock": 20},
    {"sku": "CAP-1", "name": "Cap", "category": "apparel", "price_cents": 1599, "stock": 35},
]


async def seed_demo_data(engine: AsyncEngine) -> None:
    """Idempotently load demo data (tenants are skipped if their slug exists)."""
    directory = TenantDirectory(engine)
    client = DataClient(engine)
    users = UserRepository(client)

    for request in _TENANTS:
        try:
            await directory.find_by_slug(request.slug)
            logger.info("seed_tenant_exists", slug=request.slug)
            continue
        except NotFoundError:
            tenant = await directory.create(request)

        for role in (UserRole.ADMIN, UserRole.STAFF, UserRole.CUSTOMER):
            await users.create(
                email=f"{role.lower()}@{request.slug}.com",
                password=DEMO_PASSWORD,
                role=role,
                tenant_id=tenant.id,
                first_name=role.title(),
                last_name="User",
                is_email_verified=True,
            )

        await client.for_tenant(tenant.id).product.create_many(data=_PRODUCTS)
        logger.info("seed_tenant_created", slug=request.slug, tenant_id=tenant.id)

    if not await users.list_by_email("superadmin@storefront.com"):
        await users.create(
            email="superadmin@storefront.com",
            password=DEMO_PASSWORD,
            role=UserRole.SUPER_ADMIN,
            first_name="Super",
            last_name="Admin",
            is_email_verified=True,
        )
        logger.info("seed_super_admin_created")
