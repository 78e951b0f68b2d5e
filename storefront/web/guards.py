"""Route guards wired as FastAPI dependencies.

``check_roles`` is installed app-wide. It depends on ``check_tenant``, which
depends on ``authenticate``, so the checks always run in that order and stop
at the first failure.
"""

from __future__ import annotations

import structlog
from fastapi import Depends, Request

from storefront.auth.guards import RouteMetadata, check_role_access, check_tenant_access
from storefront.exceptions import UnauthorizedError
from storefront.models.domain import Principal, TenantRecord
from storefront.web.dependencies import get_auth_service
from storefront.web.metadata import resolve_metadata

logger = structlog.get_logger(__name__)

_BEARER = "Bearer "


def route_metadata(request: Request) -> RouteMetadata:
    return resolve_metadata(request.scope.get("endpoint"))


async def authenticate(
    request: Request,
    meta: RouteMetadata = Depends(route_metadata),
) -> Principal | None:
    """Verify the Bearer token and attach the principal to the request."""
    if meta.public:
        return None

    auth_header = request.headers.get("authorization", "")
    if not auth_header.startswith(_BEARER):
        raise UnauthorizedError("Missing Bearer token")

    principal = await get_auth_service(request).authenticate_token(auth_header[len(_BEARER) :])
    request.state.user = principal
    structlog.contextvars.bind_contextvars(user_id=principal.id)
    return principal


async def check_tenant(
    request: Request,
    meta: RouteMetadata = Depends(route_metadata),
    principal: Principal | None = Depends(authenticate),
) -> TenantRecord | None:
    tenant: TenantRecord | None = getattr(request.state, "tenant", None)
    try:
        check_tenant_access(
            meta,
            request.url.path,
            tenant,
            principal,
            admin_prefix=request.app.state.settings.admin_path_prefix,
        )
    except UnauthorizedError:
        logger.info("tenant_check_failed", path=request.url.path)
        raise
    return tenant


async def check_roles(
    meta: RouteMetadata = Depends(route_metadata),
    principal: Principal | None = Depends(authenticate),
    _tenant: TenantRecord | None = Depends(check_tenant),
) -> Principal | None:
    check_role_access(meta, principal)
    return principal
