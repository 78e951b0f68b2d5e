"""Declarative access metadata for routes.

Handler level: ``@public()``, ``@bypass_tenant()``, ``@roles(...)`` store the
declaration on the endpoint function. Group level: a ``GuardedRouter``
records its defaults for every endpoint registered on it. Lookup merges both
per key, handler declarations taking precedence.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any, TypeVar

from fastapi import APIRouter

from storefront.auth.guards import RouteMetadata
from storefront.types import UserRole

F = TypeVar("F", bound=Callable[..., Any])

_HANDLER_ATTR = "__route_access__"

# endpoint function -> access defaults of the router it was registered on
_group_access: dict[Callable[..., Any], dict[str, Any]] = {}


def _declare(fn: F, key: str, value: Any) -> F:
    declared = dict(getattr(fn, _HANDLER_ATTR, {}))
    declared[key] = value
    setattr(fn, _HANDLER_ATTR, declared)
    return fn


def public() -> Callable[[F], F]:
    """Exempt a route from authentication and tenant checks."""

    def decorator(fn: F) -> F:
        return _declare(fn, "public", True)

    return decorator


def bypass_tenant() -> Callable[[F], F]:
    """Skip the tenant check (authentication and roles still apply)."""

    def decorator(fn: F) -> F:
        return _declare(fn, "bypass_tenant", True)

    return decorator


def roles(*required: UserRole | str) -> Callable[[F], F]:
    """Require the principal to hold (or dominate) one of ``required``."""
    role_set = frozenset(UserRole(r) for r in required)

    def decorator(fn: F) -> F:
        return _declare(fn, "roles", role_set)

    return decorator


class GuardedRouter(APIRouter):
    """APIRouter carrying group-level access defaults."""

    def __init__(
        self,
        *,
        public: bool | None = None,
        bypass_tenant: bool | None = None,
        roles: Iterable[UserRole | str] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        access: dict[str, Any] = {}
        if public is not None:
            access["public"] = public
        if bypass_tenant is not None:
            access["bypass_tenant"] = bypass_tenant
        if roles is not None:
            access["roles"] = frozenset(UserRole(r) for r in roles)
        self.access = access

    def add_api_route(self, path: str, endpoint: Callable[..., Any], **kwargs: Any) -> None:
        if self.access:
            _group_access[endpoint] = self.access
        super().add_api_route(path, endpoint, **kwargs)


def resolve_metadata(endpoint: Callable[..., Any] | None) -> RouteMetadata:
    """Merge group and handler declarations for ``endpoint``."""
    if endpoint is None:
        return RouteMetadata()
    merged = {**_group_access.get(endpoint, {}), **getattr(endpoint, _HANDLER_ATTR, {})}
    return RouteMetadata(
        public=merged.get("public", False),
        bypass_tenant=merged.get("bypass_tenant", False),
        roles=merged.get("roles", frozenset()),
    )
