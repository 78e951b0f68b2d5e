"""Generic async data client over the SQLModel tables.

Call sites never build SQL themselves: they go through a per-model
``ModelDelegate`` (``client.product.find_many(where={...})``). Each call is
turned into an operation name plus an argument dict and passed through the
client's hook chain before it is executed, which is how tenant scoping is
applied without the call site repeating it.

Filters (``where``) are dicts. Plain ``field: value`` pairs are equality
tests; ``field: {op: value}`` uses one of the operators in ``_OPERATORS``;
``AND`` / ``OR`` / ``NOT`` take a filter or a list of filters. All top-level
keys are ANDed together.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Protocol

import structlog
from sqlalchemy import and_, func, not_, or_, true
from sqlalchemy import delete as sa_delete
from sqlalchemy import update as sa_update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession

from storefront.exceptions import ConflictError, InvalidArgumentError, NotFoundError, UpstreamError
from storefront.models.database import MODELS, _utc_now

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine
    from sqlalchemy.sql.elements import ColumnElement

    from storefront.tenancy.context import TenantContextStore

logger = structlog.get_logger(__name__)

QueryArgs = dict[str, Any]


class Operation(StrEnum):
    FIND_UNIQUE = "find_unique"
    FIND_FIRST = "find_first"
    FIND_MANY = "find_many"
    COUNT = "count"
    AGGREGATE = "aggregate"
    GROUP_BY = "group_by"
    CREATE = "create"
    CREATE_MANY = "create_many"
    UPDATE = "update"
    UPDATE_MANY = "update_many"
    UPSERT = "upsert"
    DELETE = "delete"
    DELETE_MANY = "delete_many"


class QueryHook(Protocol):
    """Rewrites the arguments of an operation before it runs."""

    def __call__(self, model: str, operation: Operation, args: QueryArgs) -> QueryArgs: ...


_OPERATORS: dict[str, Callable[[Any, Any], ColumnElement[bool]]] = {
    "equals": lambda c, v: c.is_(None) if v is None else c == v,
    "not": lambda c, v: c.is_not(None) if v is None else c != v,
    "in": lambda c, v: c.in_(list(v)),
    "not_in": lambda c, v: c.not_in(list(v)),
    "lt": lambda c, v: c < v,
    "lte": lambda c, v: c <= v,
    "gt": lambda c, v: c > v,
    "gte": lambda c, v: c >= v,
    "contains": lambda c, v: c.contains(v),
    "startswith": lambda c, v: c.startswith(v),
    "endswith": lambda c, v: c.endswith(v),
}

_AGGREGATES: dict[str, Callable[[Any], Any]] = {
    "sum": func.sum,
    "avg": func.avg,
    "min": func.min,
    "max": func.max,
}


def _field_names(table: type[SQLModel]) -> set[str]:
    return set(table.__table__.columns.keys())  # type: ignore[attr-defined]


def _column(table: type[SQLModel], name: str) -> Any:
    if name not in _field_names(table):
        msg = f"{table.__name__} has no field '{name}'"
        raise InvalidArgumentError(msg)
    return getattr(table, name)


def _as_list(value: Mapping[str, Any] | Sequence[Mapping[str, Any]]) -> list[Mapping[str, Any]]:
    if isinstance(value, Mapping):
        return [value]
    return list(value)


def compile_where(table: type[SQLModel], where: Mapping[str, Any] | None) -> ColumnElement[bool]:
    """Translate a filter dict into a SQLAlchemy boolean expression."""
    clauses: list[ColumnElement[bool]] = []
    for key, value in (where or {}).items():
        if key == "AND":
            clauses.append(and_(true(), *(compile_where(table, w) for w in _as_list(value))))
        elif key == "OR":
            clauses.append(or_(*(compile_where(table, w) for w in _as_list(value))))
        elif key == "NOT":
            clauses.append(not_(and_(true(), *(compile_where(table, w) for w in _as_list(value)))))
        else:
            column = _column(table, key)
            if isinstance(value, Mapping):
                for op, operand in value.items():
                    if op not in _OPERATORS:
                        msg = f"Unsupported filter operator '{op}' on {table.__name__}.{key}"
                        raise InvalidArgumentError(msg)
                    clauses.append(_OPERATORS[op](column, operand))
            elif value is None:
                clauses.append(column.is_(None))
            else:
                clauses.append(column == value)
    return and_(true(), *clauses)


def _order_clauses(table: type[SQLModel], order_by: Any) -> list[Any]:
    if not order_by:
        return []
    clauses = []
    for item in _as_list(order_by):
        for field, direction in item.items():
            column = _column(table, field)
            clauses.append(column.desc() if str(direction).lower() == "desc" else column.asc())
    return clauses


def _check_data(table: type[SQLModel], data: Mapping[str, Any]) -> dict[str, Any]:
    unknown = set(data) - _field_names(table)
    if unknown:
        msg = f"{table.__name__} has no field(s) {sorted(unknown)}"
        raise InvalidArgumentError(msg)
    return dict(data)


class ModelDelegate:
    """Operations on one model, routed through the owning client."""

    def __init__(self, client: DataClient, model: str) -> None:
        self._client = client
        self._model = model

    async def find_unique(self, *, where: QueryArgs) -> Any:
        return await self._client.execute(self._model, Operation.FIND_UNIQUE, {"where": where})

    async def find_first(
        self, *, where: QueryArgs | None = None, order_by: Any = None, skip: int | None = None
    ) -> Any:
        args = {"where": where or {}, "order_by": order_by, "skip": skip}
        return await self._client.execute(self._model, Operation.FIND_FIRST, args)

    async def find_many(
        self,
        *,
        where: QueryArgs | None = None,
        order_by: Any = None,
        skip: int | None = None,
        take: int | None = None,
    ) -> list[Any]:
        args = {"where": where or {}, "order_by": order_by, "skip": skip, "take": take}
        return await self._client.execute(self._model, Operation.FIND_MANY, args)

    async def count(self, *, where: QueryArgs | None = None) -> int:
        return await self._client.execute(self._model, Operation.COUNT, {"where": where or {}})

    async def aggregate(
        self,
        *,
        where: QueryArgs | None = None,
        count: bool = False,
        sum: Sequence[str] = (),  # noqa: A002
        avg: Sequence[str] = (),
        min: Sequence[str] = (),  # noqa: A002
        max: Sequence[str] = (),  # noqa: A002
    ) -> dict[str, Any]:
        args = {
            "where": where or {},
            "count": count,
            "sum": sum,
            "avg": avg,
            "min": min,
            "max": max,
        }
        return await self._client.execute(self._model, Operation.AGGREGATE, args)

    async def group_by(
        self,
        *,
        by: Sequence[str],
        where: QueryArgs | None = None,
        count: bool = False,
        sum: Sequence[str] = (),  # noqa: A002
        avg: Sequence[str] = (),
        min: Sequence[str] = (),  # noqa: A002
        max: Sequence[str] = (),  # noqa: A002
    ) -> list[dict[str, Any]]:
        args = {
            "by": list(by),
            "where": where or {},
            "count": count,
            "sum": sum,
            "avg": avg,
            "min": min,
            "max": max,
        }
        return await self._client.execute(self._model, Operation.GROUP_BY, args)

    async def create(self, *, data: QueryArgs) -> Any:
        return await self._client.execute(self._model, Operation.CREATE, {"data": data})

    async def create_many(self, *, data: Sequence[QueryArgs]) -> int:
        return await self._client.execute(self._model, Operation.CREATE_MANY, {"data": list(data)})

    async def update(self, *, where: QueryArgs, data: QueryArgs) -> Any:
        args = {"where": where, "data": data}
        return await self._client.execute(self._model, Operation.UPDATE, args)

    async def update_many(self, *, where: QueryArgs | None = None, data: QueryArgs) -> int:
        args = {"where": where or {}, "data": data}
        return await self._client.execute(self._model, Operation.UPDATE_MANY, args)

    async def upsert(self, *, where: QueryArgs, create: QueryArgs, update: QueryArgs) -> Any:
        args = {"where": where, "create": create, "update": update}
        return await self._client.execute(self._model, Operation.UPSERT, args)

    async def delete(self, *, where: QueryArgs) -> Any:
        return await self._client.execute(self._model, Operation.DELETE, {"where": where})

    async def delete_many(self, *, where: QueryArgs | None = None) -> int:
        args = {"where": where or {}}
        return await self._client.execute(self._model, Operation.DELETE_MANY, args)


class DataClient:
    """Async query/mutate client. ``extend`` returns a copy with an extra hook."""

    def __init__(self, engine: AsyncEngine, hooks: Sequence[QueryHook] = ()) -> None:
        self._engine = engine
        self._hooks = tuple(hooks)

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    def extend(self, hook: QueryHook) -> DataClient:
        return DataClient(self._engine, (*self._hooks, hook))

    def for_tenant(self, tenant_id: str | None) -> DataClient:
        """Return a client whose every tenant-owned operation is bound to ``tenant_id``."""
        from storefront.storage.scoping import TenantScopeHook

        return self.extend(TenantScopeHook(tenant_id))

    def for_current_tenant(self, store: TenantContextStore) -> DataClient:
        """Return a client bound to the ambient tenant of the current request."""
        return self.for_tenant(store.get_current_tenant_id())

    def model(self, name: str) -> ModelDelegate:
        if name not in MODELS:
            msg = f"Unknown model '{name}'"
            raise InvalidArgumentError(msg)
        return ModelDelegate(self, name)

    def __getattr__(self, name: str) -> ModelDelegate:
        for model_name in MODELS:
            if model_name.lower() == name:
                return ModelDelegate(self, model_name)
        raise AttributeError(name)

    async def execute(self, model: str, operation: Operation, args: QueryArgs) -> Any:
        """Run one operation after passing its arguments through every hook."""
        table = MODELS[model]
        for hook in self._hooks:
            args = hook(model, operation, dict(args))
        handler = getattr(self, f"_{operation.value}")
        try:
            return await handler(table, args)
        except IntegrityError as exc:
            raise ConflictError(f"{model} {operation.value} violates a unique constraint") from exc
        except SQLAlchemyError as exc:
            logger.error(
                "data_operation_failed", model=model, operation=str(operation), error=str(exc)
            )
            raise UpstreamError(f"{model} {operation.value} failed") from exc

    # -- reads ---------------------------------------------------------------

    async def _select_rows(
        self, table: type[SQLModel], args: QueryArgs, limit: int | None
    ) -> list[Any]:
        stmt = select(table).where(compile_where(table, args.get("where")))
        order = _order_clauses(table, args.get("order_by"))
        if order:
            stmt = stmt.order_by(*order)
        if args.get("skip"):
            stmt = stmt.offset(args["skip"])
        if limit is not None:
            stmt = stmt.limit(limit)
        async with AsyncSession(self._engine) as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def _find_unique(self, table: type[SQLModel], args: QueryArgs) -> Any:
        rows = await self._select_rows(table, args, limit=1)
        return rows[0] if rows else None

    async def _find_first(self, table: type[SQLModel], args: QueryArgs) -> Any:
        rows = await self._select_rows(table, args, limit=1)
        return rows[0] if rows else None

    async def _find_many(self, table: type[SQLModel], args: QueryArgs) -> list[Any]:
        return await self._select_rows(table, args, limit=args.get("take"))

    async def _count(self, table: type[SQLModel], args: QueryArgs) -> int:
        where = compile_where(table, args.get("where"))
        stmt = select(func.count()).select_from(table).where(where)
        async with AsyncSession(self._engine) as session:
            result = await session.execute(stmt)
            return int(result.scalar_one())

    def _aggregate_columns(self, table: type[SQLModel], args: QueryArgs) -> list[Any]:
        columns: list[Any] = []
        if args.get("count"):
            columns.append(func.count().label("count"))
        for name, fn in _AGGREGATES.items():
            for field in args.get(name) or ():
                columns.append(fn(_column(table, field)).label(f"{name}__{field}"))
        return columns

    @staticmethod
    def _fold_aggregates(row: Mapping[str, Any]) -> dict[str, Any]:
        folded: dict[str, Any] = {}
        for key, value in row.items():
            if "__" in key:
                name, field = key.split("__", 1)
                folded.setdefault(name, {})[field] = value
            else:
                folded[key] = value
        return folded

    async def _aggregate(self, table: type[SQLModel], args: QueryArgs) -> dict[str, Any]:
        columns = self._aggregate_columns(table, args)
        if not columns:
            msg = "aggregate requires at least one of count/sum/avg/min/max"
            raise InvalidArgumentError(msg)
        stmt = select(*columns).select_from(table).where(compile_where(table, args.get("where")))
        async with AsyncSession(self._engine) as session:
            result = await session.execute(stmt)
            return self._fold_aggregates(result.mappings().one())

    async def _group_by(self, table: type[SQLModel], args: QueryArgs) -> list[dict[str, Any]]:
        by = [_column(table, field) for field in args.get("by") or ()]
        if not by:
            msg = "group_by requires at least one field in 'by'"
            raise InvalidArgumentError(msg)
        stmt = (
            select(*by, *self._aggregate_columns(table, args))
            .select_from(table)
            .where(compile_where(table, args.get("where")))
            .group_by(*by)
            .order_by(*by)
        )
        async with AsyncSession(self._engine) as session:
            result = await session.execute(stmt)
            return [self._fold_aggregates(row) for row in result.mappings().all()]

    # -- writes --------------------------------------------------------------

    async def _create(self, table: type[SQLModel], args: QueryArgs) -> Any:
        async with AsyncSession(self._engine) as session:
            row = table(**_check_data(table, args["data"]))
            session.add(row)
            await session.commit()
            await session.refresh(row)
            return row

    async def _create_many(self, table: type[SQLModel], args: QueryArgs) -> int:
        rows = [table(**_check_data(table, item)) for item in args["data"]]
        async with AsyncSession(self._engine) as session:
            session.add_all(rows)
            await session.commit()
        return len(rows)

    async def _apply_update(self, session: AsyncSession, row: Any, data: Mapping[str, Any]) -> Any:
        for key, value in data.items():
            setattr(row, key, value)
        if "updated_at" in _field_names(type(row)) and "updated_at" not in data:
            row.updated_at = _utc_now()
        session.add(row)
        await session.commit()
        await session.refresh(row)
        return row

    async def _update(self, table: type[SQLModel], args: QueryArgs) -> Any:
        data = _check_data(table, args.get("data") or {})
        async with AsyncSession(self._engine) as session:
            stmt = select(table).where(compile_where(table, args.get("where"))).limit(1)
            row = (await session.execute(stmt)).scalars().first()
            if row is None:
                raise NotFoundError(f"{table.__name__} to update not found")
            return await self._apply_update(session, row, data)

    async def _update_many(self, table: type[SQLModel], args: QueryArgs) -> int:
        data = _check_data(table, args.get("data") or {})
        if not data:
            return 0
        if "updated_at" in _field_names(table) and "updated_at" not in data:
            data["updated_at"] = _utc_now()
        stmt = sa_update(table).where(compile_where(table, args.get("where"))).values(**data)
        async with AsyncSession(self._engine) as session:
            result = await session.execute(stmt)
            await session.commit()
            return int(result.rowcount or 0)

    async def _upsert(self, table: type[SQLModel], args: QueryArgs) -> Any:
        async with AsyncSession(self._engine) as session:
            stmt = select(table).where(compile_where(table, args.get("where"))).limit(1)
            row = (await session.execute(stmt)).scalars().first()
            if row is not None:
                data = _check_data(table, args.get("update") or {})
                return await self._apply_update(session, row, data)
            row = table(**_check_data(table, args.get("create") or {}))
            session.add(row)
            await session.commit()
            await session.refresh(row)
            return row

    async def _delete(self, table: type[SQLModel], args: QueryArgs) -> Any:
        async with AsyncSession(self._engine) as session:
            stmt = select(table).where(compile_where(table, args.get("where"))).limit(1)
            row = (await session.execute(stmt)).scalars().first()
            if row is None:
                raise NotFoundError(f"{table.__name__} to delete not found")
            snapshot = row.model_dump()
            await session.delete(row)
            await session.commit()
            return table(**snapshot)

    async def _delete_many(self, table: type[SQLModel], args: QueryArgs) -> int:
        stmt = sa_delete(table).where(compile_where(table, args.get("where")))
        async with AsyncSession(self._engine) as session:
            result = await session.execute(stmt)
            await session.commit()
            return int(result.rowcount or 0)
