"""FastAPI application factory."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storefront.auth.service import AuthService
from storefront.auth.tokens import TokenService
from storefront.config.logging import setup_logging
from storefront.config.settings import Settings, get_settings
from storefront.exceptions import StorefrontError, UnauthorizedError
from storefront.storage.client import DataClient
from storefront.storage.database import get_engine, init_db
from storefront.storage.repositories.users import UserRepository
from storefront.tenancy.directory import TenantDirectory
from storefront.web.guards import check_roles
from storefront.web.metadata import bypass_tenant, public
from storefront.web.middleware import RequestIDMiddleware, TenantResolutionMiddleware
from storefront.web.routes.auth import router as auth_router
from storefront.web.routes.products import router as products_router
from storefront.web.routes.store import router as store_router
from storefront.web.routes.tenants import router as tenants_router
from storefront.web.routes.users import router as users_router

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

logger = structlog.get_logger(__name__)

HEALTH_PATH = "/health"


def create_app(engine: AsyncEngine | None = None, settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()
    setup_logging(log_level=settings.log_level, json_output=not settings.debug)
    engine = engine or get_engine()

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        if settings.create_schema:
            await init_db(engine)
        yield
        await engine.dispose()

    # Every route runs authenticate -> check_tenant -> check_roles
    app = FastAPI(
        title="Storefront",
        description="Multi-tenant storefront backend",
        version="0.1.0",
        dependencies=[Depends(check_roles)],
        lifespan=lifespan,
    )

    data_client = DataClient(engine)
    directory = TenantDirectory(engine)
    user_repo = UserRepository(data_client)
    tokens = TokenService(
        settings.jwt_secret,
        expires_in=settings.jwt_expires_in,
        algorithm=settings.jwt_algorithm,
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.data_client = data_client
    app.state.directory = directory
    app.state.user_repo = user_repo
    app.state.auth_service = AuthService(user_repo, tokens)

    @app.exception_handler(StorefrontError)
    async def storefront_error_handler(request: Request, exc: StorefrontError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(
                "request_failed",
                path=request.url.path,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            message = "Internal server error"
        else:
            message = str(exc)
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, UnauthorizedError) else None
        return JSONResponse(
            status_code=exc.status_code,
            content={"status_code": exc.status_code, "message": message},
            headers=headers,
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("unhandled_error", path=request.url.path, error_type=type(exc).__name__)
        return JSONResponse(
            status_code=500,
            content={"status_code": 500, "message": "Internal server error"},
        )

    # Middleware (last added runs first)
    app.add_middleware(
        TenantResolutionMiddleware,
        directory=directory,
        admin_prefix=settings.admin_path_prefix,
        exempt_paths=(HEALTH_PATH,),
    )
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
    )

    @app.get(HEALTH_PATH)
    @public()
    @bypass_tenant()
    async def health_check() -> dict[str, object]:
        from storefront.web.health import check_health

        return await check_health(engine)

    app.include_router(auth_router)
    app.include_router(store_router)
    app.include_router(users_router)
    app.include_router(products_router)
    app.include_router(tenants_router)

    logger.info("app_created")
    return app
