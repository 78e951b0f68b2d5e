"""SQLModel database table models."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from storefront.types import OrderStatus, TenantStatus, UserRole


def _utc_now() -> datetime:
    """Return current UTC time as naive datetime for TIMESTAMP WITHOUT TIME ZONE columns."""
    return datetime.now(UTC).replace(tzinfo=None)


def _new_uuid() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Tenant boundary models (never rewritten by the tenant scope hook)
# ---------------------------------------------------------------------------


class Tenant(SQLModel, table=True):
    __tablename__ = "tenants"

    id: str = Field(default_factory=_new_uuid, primary_key=True)
    slug: str = Field(unique=True, index=True)
    name: str
    status: str = Field(default=TenantStatus.ACTIVE)  # ACTIVE | SUSPENDED | INACTIVE
    plan: str | None = None
    settings_json: str = Field(default="{}")
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)
    deleted_at: datetime | None = None


class Domain(SQLModel, table=True):
    __tablename__ = "domains"

    id: str = Field(default_factory=_new_uuid, primary_key=True)
    tenant_id: str = Field(foreign_key="tenants.id", index=True)
    domain: str = Field(unique=True, index=True)
    is_primary: bool = Field(default=False)
    is_custom: bool = Field(default=False)
    created_at: datetime = Field(default_factory=_utc_now)


class User(SQLModel, table=True):
    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("tenant_id", "email", name="uq_users_tenant_email"),)

    id: str = Field(default_factory=_new_uuid, primary_key=True)
    tenant_id: str | None = Field(default=None, foreign_key="tenants.id", index=True)
    email: str = Field(index=True)
    password_hash: str
    role: str = Field(default=UserRole.CUSTOMER)
    first_name: str = ""
    last_name: str = ""
    is_email_verified: bool = Field(default=False)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)


# ---------------------------------------------------------------------------
# Tenant-owned models (every query is scoped by tenant_id)
# ---------------------------------------------------------------------------


class Product(SQLModel, table=True):
    __tablename__ = "products"
    __table_args__ = (UniqueConstraint("tenant_id", "sku", name="uq_products_tenant_sku"),)

    id: int | None = Field(default=None, primary_key=True)
    tenant_id: str = Field(foreign_key="tenants.id", index=True)
    sku: str
    name: str = Field(index=True)
    description: str = ""
    category: str | None = Field(default=None, index=True)
    price_cents: int = Field(default=0)
    stock: int = Field(default=0)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)


class Order(SQLModel, table=True):
    __tablename__ = "orders"

    id: int | None = Field(default=None, primary_key=True)
    tenant_id: str = Field(foreign_key="tenants.id", index=True)
    user_id: str = Field(foreign_key="users.id", index=True)
    status: str = Field(default=OrderStatus.PENDING)
    total_cents: int = Field(default=0)
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)


# Name -> table registry used by the data client.
MODELS: dict[str, type[SQLModel]] = {
    "Tenant": Tenant,
    "Domain": Domain,
    "User": User,
    "Product": Product,
    "Order": Order,
}
