"""User repository over the data client."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from storefront.auth.passwords import hash_password
from storefront.types import UserRole

if TYPE_CHECKING:
    from storefront.models.database import User
    from storefront.storage.client import DataClient

logger = structlog.get_logger(__name__)


class UserRepository:
    """Principals live outside tenant scoping: the same email may exist in
    several tenants and super admins have no tenant at all.
    """

    def __init__(self, client: DataClient) -> None:
        self._users = client.user

    async def create(
        self,
        email: str,
        password: str,
        role: UserRole = UserRole.CUSTOMER,
        tenant_id: str | None = None,
        first_name: str = "",
        last_name: str = "",
        is_email_verified: bool = False,
    ) -> User:
        user = await self._users.create(
            data={
                "email": email.lower(),
                "password_hash": hash_password(password),
                "role": role,
                "tenant_id": tenant_id,
                "first_name": first_name,
                "last_name": last_name,
                "is_email_verified": is_email_verified,
            }
        )
        logger.info("user_created", user_id=user.id, role=str(role), tenant_id=tenant_id)
        return user

    async def get_by_id(self, user_id: str) -> User | None:
        return await self._users.find_unique(where={"id": user_id, "is_active": True})

    async def list_by_email(self, email: str) -> list[User]:
        """All active users with this email, across every tenant."""
        return await self._users.find_many(
            where={"email": email.lower(), "is_active": True},
            order_by={"created_at": "asc"},
        )

    async def has_any(self) -> bool:
        return await self._users.count(where={"is_active": True}) > 0
