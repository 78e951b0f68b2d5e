"""Access decisions evaluated before a handler runs.

These are framework-free: the FastAPI dependencies in
``storefront.web.guards`` collect the inputs and call them in order
(authentication, then tenant, then role).
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from storefront.auth.roles import has_required_role
from storefront.exceptions import ForbiddenError, UnauthorizedError
from storefront.models.domain import Principal, TenantRecord
from storefront.types import TenantStatus, UserRole


@dataclass(frozen=True, slots=True)
class RouteMetadata:
    """Declarative access metadata of a route."""

    public: bool = False
    bypass_tenant: bool = False
    roles: frozenset[UserRole] = field(default_factory=frozenset)

    @classmethod
    def build(
        cls,
        *,
        public: bool = False,
        bypass_tenant: bool = False,
        roles: Iterable[UserRole | str] = (),
    ) -> RouteMetadata:
        return cls(
            public=public,
            bypass_tenant=bypass_tenant,
            roles=frozenset(UserRole(r) for r in roles),
        )


def is_admin_path(path: str, admin_prefix: str) -> bool:
    """Literal prefix match on the raw path (no decoding or normalisation)."""
    return path.startswith(admin_prefix)


def check_tenant_access(
    meta: RouteMetadata,
    path: str,
    tenant: TenantRecord | None,
    principal: Principal | None = None,
    admin_prefix: str = "/admin",
) -> None:
    """Raise unless the request may proceed with the tenant attached to it."""
    if meta.public or meta.bypass_tenant or is_admin_path(path, admin_prefix):
        return

    if tenant is None:
        raise UnauthorizedError("Tenant not found. This resource requires a valid tenant.")

    if tenant.status != TenantStatus.ACTIVE:
        raise UnauthorizedError(f"Tenant is not active. Status: {tenant.status}")

    if (
        principal is not None
        and principal.role != UserRole.SUPER_ADMIN
        and principal.tenant_id != tenant.id
    ):
        raise ForbiddenError("User does not belong to this tenant")


def check_role_access(meta: RouteMetadata, principal: Principal | None) -> None:
    """Raise ForbiddenError unless the principal satisfies the route's roles."""
    if not meta.roles:
        return
    if principal is None:
        raise ForbiddenError("Authenticated user required for this resource")
    if not has_required_role(principal.role, meta.roles):
        raise ForbiddenError("Insufficient role for this resource")
