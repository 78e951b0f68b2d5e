"""Inter-module data contracts (not persisted directly)."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict

from storefront.types import TenantStatus, UserRole


class DomainRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    domain: str
    is_primary: bool = False
    is_custom: bool = False


class TenantRecord(BaseModel):
    """Snapshot of a tenant and its domains, as returned by the directory."""

    model_config = ConfigDict(frozen=True)

    id: str
    slug: str
    name: str
    status: TenantStatus
    plan: str | None = None
    settings: dict[str, Any] = {}
    domains: list[DomainRecord] = []
    created_at: datetime
    updated_at: datetime

    @property
    def is_active(self) -> bool:
        return self.status == TenantStatus.ACTIVE

    @property
    def primary_domain(self) -> str | None:
        for domain in self.domains:
            if domain.is_primary:
                return domain.domain
        return None


class Principal(BaseModel):
    """Authenticated user attached to a request."""

    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    role: UserRole
    tenant_id: str | None = None
    first_name: str = ""
    last_name: str = ""
