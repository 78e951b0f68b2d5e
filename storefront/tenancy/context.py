"""Ambient tenant id for the current request.

The value lives in a :class:`contextvars.ContextVar`. asyncio copies the
current context into every task it creates, so two requests interleaved on
the same event loop never see each other's tenant, and code reached through
``await`` sees the value of the scope it was called from. Scopes nest: an
inner scope shadows the outer one and ``ContextVar.reset`` restores the outer
value on exit, including exit by exception.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import ParamSpec, TypeVar

import structlog

from storefront.exceptions import InvalidArgumentError

P = ParamSpec("P")
T = TypeVar("T")

_current_tenant_id: ContextVar[str | None] = ContextVar("current_tenant_id", default=None)


def _require_tenant_id(tenant_id: str | None) -> str:
    if not tenant_id:
        msg = "Tenant ID is required to enter a tenant scope"
        raise InvalidArgumentError(msg)
    return tenant_id


class TenantContextStore:
    """Request-scoped tenant id store."""

    def get_current_tenant_id(self) -> str | None:
        """Return the ambient tenant id, or None when no scope is active."""
        return _current_tenant_id.get()

    @contextmanager
    def scope(self, tenant_id: str) -> Iterator[str]:
        """Make ``tenant_id`` ambient for the body of the ``with`` block."""
        tenant_id = _require_tenant_id(tenant_id)
        token = _current_tenant_id.set(tenant_id)
        log_tokens = structlog.contextvars.bind_contextvars(tenant_id=tenant_id)
        try:
            yield tenant_id
        finally:
            structlog.contextvars.reset_contextvars(**log_tokens)
            _current_tenant_id.reset(token)

    def run(self, tenant_id: str, body: Callable[P, T], *args: P.args, **kwargs: P.kwargs) -> T:
        """Call ``body`` synchronously with ``tenant_id`` as the ambient tenant."""
        with self.scope(tenant_id):
            return body(*args, **kwargs)

    async def run_async(
        self,
        tenant_id: str,
        body: Callable[P, Awaitable[T]],
        *args: P.args,
        **kwargs: P.kwargs,
    ) -> T:
        """Await ``body`` with ``tenant_id`` as the ambient tenant."""
        with self.scope(tenant_id):
            return await body(*args, **kwargs)

    def clear(self) -> None:
        """Drop the ambient tenant id. Intended for tests and diagnostics."""
        _current_tenant_id.set(None)
        structlog.contextvars.unbind_contextvars("tenant_id")


tenant_context = TenantContextStore()


def get_current_tenant_id() -> str | None:
    """Module-level shortcut for ``tenant_context.get_current_tenant_id()``."""
    return _current_tenant_id.get()
