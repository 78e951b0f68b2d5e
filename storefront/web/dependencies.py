"""FastAPI dependency injection for shared services and request state."""

from __future__ import annotations

from fastapi import Depends, Request

from storefront.auth.service import AuthService
from storefront.exceptions import UnauthorizedError
from storefront.models.domain import Principal, TenantRecord
from storefront.storage.client import DataClient
from storefront.storage.repositories.users import UserRepository
from storefront.tenancy.context import tenant_context
from storefront.tenancy.directory import TenantDirectory


def get_data_client(request: Request) -> DataClient:
    """The unscoped client. Only tenant-boundary models should go through it."""
    return request.app.state.data_client


def get_tenant_directory(request: Request) -> TenantDirectory:
    return request.app.state.directory


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_user_repo(request: Request) -> UserRepository:
    return request.app.state.user_repo


def get_current_tenant(request: Request) -> TenantRecord:
    """The tenant resolved from the request hostname."""
    tenant = getattr(request.state, "tenant", None)
    if tenant is None:
        raise UnauthorizedError("Tenant not found. This resource requires a valid tenant.")
    return tenant


def get_current_tenant_id(tenant: TenantRecord = Depends(get_current_tenant)) -> str:
    return tenant.id


def get_current_user(request: Request) -> Principal:
    """The principal attached by the authentication guard."""
    user = getattr(request.state, "user", None)
    if user is None:
        raise UnauthorizedError("Authentication required")
    return user


async def get_scoped_client(
    _tenant: TenantRecord = Depends(get_current_tenant),
    client: DataClient = Depends(get_data_client),
) -> DataClient:
    """A data client bound to the request's ambient tenant."""
    return client.for_current_tenant(tenant_context)
