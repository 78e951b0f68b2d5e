"""Login and token-to-principal resolution."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from storefront.auth.passwords import compare_password
from storefront.auth.tokens import TokenClaims, TokenService
from storefront.exceptions import UnauthorizedError
from storefront.models.api import LoginResponse, UserResponse
from storefront.models.domain import Principal
from storefront.types import UserRole

if TYPE_CHECKING:
    from storefront.models.database import User
    from storefront.storage.repositories.users import UserRepository

logger = structlog.get_logger(__name__)


def to_principal(user: User) -> Principal:
    return Principal(
        id=user.id,
        email=user.email,
        role=UserRole(user.role),
        tenant_id=user.tenant_id,
        first_name=user.first_name,
        last_name=user.last_name,
    )


class AuthService:
    def __init__(self, users: UserRepository, tokens: TokenService) -> None:
        self._users = users
        self._tokens = tokens

    async def validate_user_credentials(
        self, email: str, password: str, tenant_id: str | None = None
    ) -> User:
        """Return the user whose password matches.

        Emails are unique per tenant only. With a tenant given, only that
        tenant's users and tenant-less super admins are candidates, tenant
        users first. Without one every user sharing the email is tried in
        creation order.
        """
        candidates = await self._users.list_by_email(email)
        if tenant_id is not None:
            candidates = [u for u in candidates if u.tenant_id == tenant_id] + [
                u for u in candidates if u.tenant_id is None and u.role == UserRole.SUPER_ADMIN
            ]
        for user in candidates:
            if compare_password(password, user.password_hash):
                return user
        logger.info("login_rejected", tenant_id=tenant_id)
        raise UnauthorizedError("Invalid credentials")

    def login(self, user: User) -> LoginResponse:
        principal = to_principal(user)
        token = self._tokens.sign(
            TokenClaims(
                sub=principal.id,
                email=principal.email,
                role=principal.role,
                tenant_id=principal.tenant_id,
            )
        )
        logger.info("user_logged_in", user_id=principal.id, tenant_id=principal.tenant_id)
        return LoginResponse(
            access_token=token,
            user=UserResponse(**principal.model_dump()),
        )

    async def authenticate_token(self, token: str) -> Principal:
        """Verify a bearer token and reload its user."""
        return await self.validate_user(self._tokens.verify(token))

    async def validate_user(self, claims: TokenClaims) -> Principal:
        """Reload the token subject so deactivated users lose access immediately."""
        user = await self._users.get_by_id(claims.sub)
        if user is None:
            logger.warning("token_subject_missing", user_id=claims.sub)
            raise UnauthorizedError("Invalid token")
        return to_principal(user)
