"""Tenant scope hook for the data client.

Every operation on a tenant-owned model is rewritten so that it can only
see or touch rows of the bound tenant:

- reads, deletes and bulk updates get ``tenant_id`` ANDed into ``where``
- ``create`` / ``create_many`` payloads are stamped with ``tenant_id``
- ``update`` payloads have ``tenant_id`` stripped (moving a row to another
  tenant is never possible through a scoped client; the field is dropped,
  the rest of the update still applies)
- ``upsert`` gets the filter merged, ``create`` stamped and ``update`` stripped

If the caller passes a different ``tenant_id`` in a filter or payload, the
bound tenant id wins and a warning is logged.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog

from storefront.exceptions import InvalidArgumentError
from storefront.storage.client import Operation, QueryArgs

logger = structlog.get_logger(__name__)

TENANT_FIELD = "tenant_id"

# Tenant boundary models: queried across tenants (super admins have no tenant).
EXEMPT_MODELS = frozenset({"Tenant", "Domain", "User"})

_FILTERED = frozenset(
    {
        Operation.FIND_UNIQUE,
        Operation.FIND_FIRST,
        Operation.FIND_MANY,
        Operation.COUNT,
        Operation.AGGREGATE,
        Operation.GROUP_BY,
        Operation.DELETE,
        Operation.DELETE_MANY,
    }
)
_UPDATES = frozenset({Operation.UPDATE, Operation.UPDATE_MANY})


class TenantScopeHook:
    """Binds every tenant-owned operation to one tenant id."""

    def __init__(self, tenant_id: str | None) -> None:
        if not tenant_id:
            msg = "Tenant ID is required to create a tenant-scoped data client"
            raise InvalidArgumentError(msg)
        self.tenant_id = tenant_id

    def __repr__(self) -> str:
        return f"TenantScopeHook(tenant_id={self.tenant_id!r})"

    def _stamp(
        self, model: str, operation: Operation, payload: Mapping[str, Any] | None
    ) -> dict[str, Any]:
        payload = dict(payload or {})
        supplied = payload.get(TENANT_FIELD)
        if supplied is not None and supplied != self.tenant_id:
            logger.warning(
                "tenant_id_overridden",
                model=model,
                operation=str(operation),
                supplied=supplied,
                bound=self.tenant_id,
            )
        payload[TENANT_FIELD] = self.tenant_id
        return payload

    def _strip(self, model: str, payload: Mapping[str, Any] | None) -> dict[str, Any]:
        payload = dict(payload or {})
        if TENANT_FIELD in payload:
            payload.pop(TENANT_FIELD)
            logger.warning("tenant_id_update_stripped", model=model, bound=self.tenant_id)
        return payload

    def __call__(self, model: str, operation: Operation, args: QueryArgs) -> QueryArgs:
        if model in EXEMPT_MODELS:
            return args

        if operation in _FILTERED:
            args["where"] = self._stamp(model, operation, args.get("where"))
        elif operation == Operation.CREATE:
            args["data"] = self._stamp(model, operation, args.get("data"))
        elif operation == Operation.CREATE_MANY:
            args["data"] = [self._stamp(model, operation, item) for item in args.get("data") or []]
        elif operation in _UPDATES:
            args["where"] = self._stamp(model, operation, args.get("where"))
            args["data"] = self._strip(model, args.get("data"))
        elif operation == Operation.UPSERT:
            args["where"] = self._stamp(model, operation, args.get("where"))
            args["create"] = self._stamp(model, operation, args.get("create"))
            args["update"] = self._strip(model, args.get("update"))
        elif "where" in args:
            args["where"] = self._stamp(model, operation, args.get("where"))
        return args
