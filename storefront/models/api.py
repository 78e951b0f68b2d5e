"""API request/response schemas for FastAPI endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from storefront.types import TenantStatus, UserRole

SLUG_PATTERN = r"^[a-z0-9][a-z0-9-]*$"


# ---------------------------------------------------------------------------
# Tenants
# ---------------------------------------------------------------------------


class ThemeSettings(BaseModel):
    primary_color: str = "#3B82F6"
    secondary_color: str = "#10B981"
    accent_color: str = "#F59E0B"
    font_family: str = "Inter, sans-serif"


class FeatureSettings(BaseModel):
    enable_reviews: bool = True
    enable_wishlist: bool = True
    enable_comparisons: bool = False


class ContactSettings(BaseModel):
    email: EmailStr | None = None
    phone: str | None = None
    address: str | None = None


class TenantSettings(BaseModel):
    """Storefront configuration document; unknown keys are kept as-is."""

    model_config = ConfigDict(extra="allow")

    theme: ThemeSettings = ThemeSettings()
    features: FeatureSettings = FeatureSettings()
    contact: ContactSettings = ContactSettings()


class DomainIn(BaseModel):
    domain: str = Field(min_length=1, max_length=253)
    is_primary: bool = False
    is_custom: bool = False

    @field_validator("domain")
    @classmethod
    def _normalize(cls, value: str) -> str:
        return value.strip().lower()


def _check_single_primary(domains: list[DomainIn] | None) -> list[DomainIn] | None:
    if domains and sum(1 for d in domains if d.is_primary) > 1:
        msg = "At most one domain may be primary"
        raise ValueError(msg)
    return domains


class CreateTenantRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    slug: str = Field(min_length=1, max_length=100, pattern=SLUG_PATTERN)
    status: TenantStatus = TenantStatus.ACTIVE
    domains: list[DomainIn] = []
    plan: str | None = None
    settings: TenantSettings | None = None

    @field_validator("domains")
    @classmethod
    def check_single_primary(cls, value: list[DomainIn] | None) -> list[DomainIn] | None:
        return _check_single_primary(value)


class UpdateTenantRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    slug: str | None = Field(default=None, min_length=1, max_length=100, pattern=SLUG_PATTERN)
    status: TenantStatus | None = None
    domains: list[DomainIn] | None = None
    plan: str | None = None
    settings: TenantSettings | None = None

    @field_validator("domains")
    @classmethod
    def check_single_primary(cls, value: list[DomainIn] | None) -> list[DomainIn] | None:
        return _check_single_primary(value)


class UpdateTenantStatusRequest(BaseModel):
    status: TenantStatus


class DomainResponse(BaseModel):
    id: str
    domain: str
    is_primary: bool
    is_custom: bool


class TenantResponse(BaseModel):
    id: str
    slug: str
    name: str
    status: TenantStatus
    plan: str | None
    settings: dict[str, Any]
    domains: list[DomainResponse]
    created_at: datetime
    updated_at: datetime


class StoreProfileResponse(BaseModel):
    name: str
    slug: str
    primary_domain: str | None
    settings: dict[str, Any]


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class UserResponse(BaseModel):
    id: str
    email: str
    role: UserRole
    tenant_id: str | None = None
    first_name: str = ""
    last_name: str = ""


class LoginResponse(BaseModel):
    access_token: str
    user: UserResponse


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------


class ProductCreate(BaseModel):
    sku: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=200)
    description: str = ""
    category: str | None = None
    price_cents: int = Field(default=0, ge=0)
    stock: int = Field(default=0, ge=0)


class ProductUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    category: str | None = None
    price_cents: int | None = Field(default=None, ge=0)
    stock: int | None = Field(default=None, ge=0)
    is_active: bool | None = None


class ProductResponse(BaseModel):
    id: int
    sku: str
    name: str
    description: str
    category: str | None
    price_cents: int
    stock: int
    is_active: bool
    created_at: datetime
