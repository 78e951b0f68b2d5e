"""Tenant directory: the only component that reads and writes tenant metadata."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import col, delete, select
from sqlmodel.ext.asyncio.session import AsyncSession

from storefront.exceptions import ConflictError, NotFoundError, UpstreamError
from storefront.models.database import Domain, Tenant, _utc_now
from storefront.models.domain import DomainRecord, TenantRecord
from storefront.types import TenantStatus

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from storefront.models.api import CreateTenantRequest, DomainIn, UpdateTenantRequest

logger = structlog.get_logger(__name__)


def _to_record(tenant: Tenant, domains: list[Domain]) -> TenantRecord:
    """Convert a Tenant row and its domains to an immutable record."""
    ordered = sorted(domains, key=lambda d: (not d.is_primary, d.created_at))
    return TenantRecord(
        id=tenant.id,
        slug=tenant.slug,
        name=tenant.name,
        status=TenantStatus(tenant.status),
        plan=tenant.plan,
        settings=json.loads(tenant.settings_json or "{}"),
        domains=[
            DomainRecord(
                id=d.id,
                domain=d.domain,
                is_primary=d.is_primary,
                is_custom=d.is_custom,
            )
            for d in ordered
        ],
        created_at=tenant.created_at,
        updated_at=tenant.updated_at,
    )


def _domain_rows(tenant_id: str, domains: list[DomainIn]) -> list[Domain]:
    return [
        Domain(
            tenant_id=tenant_id,
            domain=d.domain,
            is_primary=d.is_primary,
            is_custom=d.is_custom,
        )
        for d in domains
    ]


class TenantDirectory:
    """Looks tenants up by hostname, id or slug and administers them.

    Every call opens its own session, so a status change is visible to the
    next lookup (no caching). Storage failures surface as UpstreamError so
    they are never confused with a lookup miss.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    async def _load_domains(self, session: AsyncSession, tenant_id: str) -> list[Domain]:
        result = await session.execute(select(Domain).where(col(Domain.tenant_id) == tenant_id))
        return list(result.scalars().all())

    async def _get_one(self, *conditions: Any) -> TenantRecord | None:
        try:
            async with AsyncSession(self._engine) as session:
                stmt = select(Tenant).where(*conditions, col(Tenant.deleted_at).is_(None))
                result = await session.execute(stmt)
                tenant = result.scalars().first()
                if tenant is None:
                    return None
                return _to_record(tenant, await self._load_domains(session, tenant.id))
        except SQLAlchemyError as exc:
            logger.error("tenant_lookup_failed", error=str(exc))
            raise UpstreamError("Tenant lookup failed") from exc

    async def find_all(self) -> list[TenantRecord]:
        try:
            async with AsyncSession(self._engine) as session:
                stmt = (
                    select(Tenant)
                    .where(col(Tenant.deleted_at).is_(None))
                    .order_by(col(Tenant.created_at))
                )
                result = await session.execute(stmt)
                tenants = result.scalars().all()
                return [_to_record(t, await self._load_domains(session, t.id)) for t in tenants]
        except SQLAlchemyError as exc:
            logger.error("tenant_list_failed", error=str(exc))
            raise UpstreamError("Tenant listing failed") from exc

    async def find_by_id(self, tenant_id: str) -> TenantRecord:
        record = await self._get_one(col(Tenant.id) == tenant_id)
        if record is None:
            raise NotFoundError(f"Tenant with ID {tenant_id} not found")
        return record

    async def find_by_slug(self, slug: str) -> TenantRecord:
        record = await self._get_one(col(Tenant.slug) == slug)
        if record is None:
            raise NotFoundError(f"Tenant with slug {slug} not found")
        return record

    async def find_by_domain(self, hostname: str) -> TenantRecord | None:
        """Resolve a hostname to its tenant. A miss returns None."""
        try:
            async with AsyncSession(self._engine) as session:
                stmt = select(Domain).where(col(Domain.domain) == hostname.lower())
                result = await session.execute(stmt)
                domain = result.scalars().first()
                if domain is None:
                    return None
                tenant = await session.get(Tenant, domain.tenant_id)
                if tenant is None or tenant.deleted_at is not None:
                    return None
                return _to_record(tenant, await self._load_domains(session, tenant.id))
        except SQLAlchemyError as exc:
            logger.error("tenant_domain_lookup_failed", hostname=hostname, error=str(exc))
            raise UpstreamError("Tenant lookup failed") from exc

    async def create(self, data: CreateTenantRequest) -> TenantRecord:
        settings = data.settings.model_dump(mode="json") if data.settings else {}
        try:
            async with AsyncSession(self._engine) as session:
                tenant = Tenant(
                    name=data.name,
                    slug=data.slug,
                    status=data.status,
                    plan=data.plan,
                    settings_json=json.dumps(settings),
                )
                session.add(tenant)
                await session.flush()  # populate tenant.id without committing
                session.add_all(_domain_rows(tenant.id, data.domains))
                await session.commit()
                await session.refresh(tenant)
                record = _to_record(tenant, await self._load_domains(session, tenant.id))
        except IntegrityError as exc:
            raise ConflictError(f"Tenant slug or domain already in use: {data.slug}") from exc
        except SQLAlchemyError as exc:
            logger.error("tenant_create_failed", slug=data.slug, error=str(exc))
            raise UpstreamError("Tenant creation failed") from exc

        logger.info("tenant_created", tenant_id=record.id, slug=record.slug)
        return record

    async def update(self, tenant_id: str, data: UpdateTenantRequest) -> TenantRecord:
        await self.find_by_id(tenant_id)

        fields = data.model_dump(exclude_unset=True, exclude={"domains", "settings"})
        try:
            async with AsyncSession(self._engine) as session:
                tenant = await session.get(Tenant, tenant_id)
                if tenant is None:
                    raise NotFoundError(f"Tenant with ID {tenant_id} not found")
                for key, value in fields.items():
                    if value is not None:
                        setattr(tenant, key, value)
                if data.settings is not None:
                    tenant.settings_json = json.dumps(data.settings.model_dump(mode="json"))
                tenant.updated_at = _utc_now()
                session.add(tenant)

                if data.domains is not None:
                    await session.execute(delete(Domain).where(col(Domain.tenant_id) == tenant_id))
                    session.add_all(_domain_rows(tenant_id, data.domains))

                await session.commit()
                await session.refresh(tenant)
                record = _to_record(tenant, await self._load_domains(session, tenant_id))
        except IntegrityError as exc:
            raise ConflictError(f"Tenant slug or domain already in use: {tenant_id}") from exc
        except SQLAlchemyError as exc:
            logger.error("tenant_update_failed", tenant_id=tenant_id, error=str(exc))
            raise UpstreamError("Tenant update failed") from exc

        logger.info("tenant_updated", tenant_id=tenant_id, fields=sorted(fields))
        return record

    async def update_status(self, tenant_id: str, status: TenantStatus) -> TenantRecord:
        await self.find_by_id(tenant_id)

        try:
            async with AsyncSession(self._engine) as session:
                tenant = await session.get(Tenant, tenant_id)
                if tenant is None:
                    raise NotFoundError(f"Tenant with ID {tenant_id} not found")
                tenant.status = status
                tenant.updated_at = _utc_now()
                session.add(tenant)
                await session.commit()
                await session.refresh(tenant)
                record = _to_record(tenant, await self._load_domains(session, tenant_id))
        except SQLAlchemyError as exc:
            logger.error("tenant_status_update_failed", tenant_id=tenant_id, error=str(exc))
            raise UpstreamError("Tenant status update failed") from exc

        logger.info("tenant_status_updated", tenant_id=tenant_id, status=str(status))
        return record

    async def delete(self, tenant_id: str) -> TenantRecord:
        """Soft-delete a tenant and release its domains.

        The row stays because tenant-owned data still references it.
        """
        existing = await self.find_by_id(tenant_id)

        try:
            async with AsyncSession(self._engine) as session:
                tenant = await session.get(Tenant, tenant_id)
                if tenant is None:
                    raise NotFoundError(f"Tenant with ID {tenant_id} not found")
                tenant.status = TenantStatus.INACTIVE
                tenant.deleted_at = _utc_now()
                tenant.updated_at = tenant.deleted_at
                session.add(tenant)
                await session.execute(delete(Domain).where(col(Domain.tenant_id) == tenant_id))
                await session.commit()
        except SQLAlchemyError as exc:
            logger.error("tenant_delete_failed", tenant_id=tenant_id, error=str(exc))
            raise UpstreamError("Tenant deletion failed") from exc

        logger.info("tenant_deleted", tenant_id=tenant_id, slug=existing.slug)
        return existing.model_copy(update={"status": TenantStatus.INACTIVE})
