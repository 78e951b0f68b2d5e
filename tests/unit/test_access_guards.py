"""Tests for tenant/role access decisions and route metadata resolution."""

from __future__ import annotations

import pytest

from storefront.auth.guards import (
    RouteMetadata,
    check_role_access,
    check_tenant_access,
    is_admin_path,
)
from storefront.exceptions import ForbiddenError, UnauthorizedError
from storefront.models.database import _utc_now
from storefront.models.domain import Principal, TenantRecord
from storefront.types import TenantStatus, UserRole
from storefront.web.metadata import GuardedRouter, bypass_tenant, public, resolve_metadata, roles


def _tenant(status: TenantStatus = TenantStatus.ACTIVE, tenant_id: str = "t1") -> TenantRecord:
    now = _utc_now()
    return TenantRecord(
        id=tenant_id, slug=tenant_id, name=tenant_id, status=status, created_at=now, updated_at=now
    )


def _principal(role: UserRole, tenant_id: str | None = "t1") -> Principal:
    return Principal(id="u1", email="u1@acme.com", role=role, tenant_id=tenant_id)


@pytest.mark.unit
class TestCheckTenantAccess:
    def test_missing_tenant_is_unauthorized(self) -> None:
        with pytest.raises(UnauthorizedError, match="requires a valid tenant"):
            check_tenant_access(RouteMetadata(), "/products", None)

    def test_admin_path_skips_check(self) -> None:
        check_tenant_access(RouteMetadata(), "/admin/x", None)

    def test_custom_admin_prefix(self) -> None:
        check_tenant_access(RouteMetadata(), "/backoffice/x", None, admin_prefix="/backoffice")
        with pytest.raises(UnauthorizedError):
            check_tenant_access(RouteMetadata(), "/admin/x", None, admin_prefix="/backoffice")

    @pytest.mark.parametrize(
        "meta", [RouteMetadata(public=True), RouteMetadata(bypass_tenant=True)]
    )
    def test_public_and_bypass_skip_check(self, meta: RouteMetadata) -> None:
        check_tenant_access(meta, "/products", None)

    @pytest.mark.parametrize("status", [TenantStatus.SUSPENDED, TenantStatus.INACTIVE])
    def test_inactive_tenant_is_unauthorized(self, status: TenantStatus) -> None:
        with pytest.raises(UnauthorizedError, match=f"Status: {status}"):
            check_tenant_access(RouteMetadata(), "/products", _tenant(status))

    def test_active_tenant_passes(self) -> None:
        check_tenant_access(RouteMetadata(), "/products", _tenant(), _principal(UserRole.CUSTOMER))

    def test_principal_of_other_tenant_is_forbidden(self) -> None:
        with pytest.raises(ForbiddenError):
            check_tenant_access(
                RouteMetadata(), "/products", _tenant(), _principal(UserRole.ADMIN, "t2")
            )

    def test_super_admin_may_act_on_any_tenant(self) -> None:
        check_tenant_access(
            RouteMetadata(), "/products", _tenant(), _principal(UserRole.SUPER_ADMIN, None)
        )

    def test_forbidden_is_not_unauthorized(self) -> None:
        assert not issubclass(ForbiddenError, UnauthorizedError)
        assert ForbiddenError.status_code == 403
        assert UnauthorizedError.status_code == 401

    def test_admin_prefix_is_literal(self) -> None:
        assert is_admin_path("/admin/tenants", "/admin")
        assert not is_admin_path("/%61dmin/tenants", "/admin")
        assert not is_admin_path("/store/admin", "/admin")


@pytest.mark.unit
class TestCheckRoleAccess:
    def test_no_roles_allows_anyone(self) -> None:
        check_role_access(RouteMetadata(), None)

    def test_roles_without_principal_forbidden(self) -> None:
        with pytest.raises(ForbiddenError):
            check_role_access(RouteMetadata.build(roles=[UserRole.CUSTOMER]), None)

    def test_higher_role_passes(self) -> None:
        check_role_access(RouteMetadata.build(roles=["STAFF"]), _principal(UserRole.ADMIN))

    def test_lower_role_forbidden(self) -> None:
        with pytest.raises(ForbiddenError):
            check_role_access(RouteMetadata.build(roles=["ADMIN"]), _principal(UserRole.STAFF))


@pytest.mark.unit
class TestRouteMetadata:
    def test_undecorated_endpoint(self) -> None:
        async def handler() -> None: ...

        assert resolve_metadata(handler) == RouteMetadata()
        assert resolve_metadata(None) == RouteMetadata()

    def test_handler_decorators_stack(self) -> None:
        @public()
        @bypass_tenant()
        @roles(UserRole.STAFF)
        async def handler() -> None: ...

        meta = resolve_metadata(handler)
        assert meta.public and meta.bypass_tenant
        assert meta.roles == {UserRole.STAFF}

    def test_handler_overrides_group(self) -> None:
        router = GuardedRouter(prefix="/things", roles=[UserRole.CUSTOMER], bypass_tenant=True)

        @router.get("")
        async def listing() -> None: ...

        @router.delete("/{thing_id}")
        @roles(UserRole.ADMIN)
        async def remove(thing_id: int) -> None: ...

        assert resolve_metadata(listing).roles == {UserRole.CUSTOMER}
        assert resolve_metadata(remove).roles == {UserRole.ADMIN}
        # keys the handler does not declare still come from the group
        assert resolve_metadata(remove).bypass_tenant is True

    def test_group_public(self) -> None:
        router = GuardedRouter(prefix="/open", public=True)

        @router.get("")
        async def handler() -> None: ...

        assert resolve_metadata(handler).public is True
