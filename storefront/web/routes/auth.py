"""Authentication routes: password login issuing a bearer token."""

from __future__ import annotations

import structlog
from fastapi import Depends, Request

from storefront.auth.service import AuthService
from storefront.models.api import LoginRequest, LoginResponse
from storefront.web.dependencies import get_auth_service
from storefront.web.metadata import GuardedRouter

logger = structlog.get_logger(__name__)

router = GuardedRouter(prefix="/auth", tags=["auth"], public=True)


@router.post("/login", status_code=201)
async def login(
    request: Request,
    body: LoginRequest,
    auth: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    """Exchange email and password for an access token.

    Accounts of the tenant resolved from the hostname are matched first.
    """
    tenant = getattr(request.state, "tenant", None)
    user = await auth.validate_user_credentials(
        body.email, body.password, tenant_id=tenant.id if tenant else None
    )
    return auth.login(user)
