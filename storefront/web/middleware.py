"""Starlette middleware: request ID injection and tenant resolution."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import JSONResponse

from storefront.auth.guards import is_admin_path
from storefront.tenancy.context import TenantContextStore, tenant_context

if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.responses import Response

    from storefront.tenancy.directory import TenantDirectory

logger = structlog.get_logger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Adds a unique X-Request-ID header to every response."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("x-request-id", str(uuid.uuid4()))
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers["x-request-id"] = request_id
        return response


class TenantResolutionMiddleware(BaseHTTPMiddleware):
    """Resolves the request hostname to a tenant before routing.

    - paths under ``admin_prefix`` and the exact ``exempt_paths`` (health
      probes) skip resolution entirely
    - an unknown hostname gets a 404 and the rest of the pipeline is not run
    - a known hostname puts the tenant on ``request.state.tenant`` and runs
      the rest of the pipeline inside a tenant context scope

    Lookup failures other than a miss propagate to the app's error handler.
    The admin prefix is matched literally on the request path; encoded or
    non-normalised variants of the prefix are not recognised.
    """

    def __init__(
        self,
        app: Any,
        directory: TenantDirectory,
        admin_prefix: str = "/admin",
        exempt_paths: tuple[str, ...] = (),
        store: TenantContextStore = tenant_context,
    ) -> None:
        super().__init__(app)
        self._directory = directory
        self._admin_prefix = admin_prefix
        self._exempt_paths = frozenset(exempt_paths)
        self._store = store

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        if is_admin_path(path, self._admin_prefix) or path in self._exempt_paths:
            return await call_next(request)

        hostname = (request.url.hostname or "").lower()
        tenant = await self._directory.find_by_domain(hostname)

        if tenant is None:
            logger.info("tenant_not_resolved", hostname=hostname, path=path)
            return JSONResponse(
                {"status_code": 404, "message": f"Tenant not found for domain: {hostname}"},
                status_code=404,
            )

        request.state.tenant = tenant
        with self._store.scope(tenant.id):
            return await call_next(request)
