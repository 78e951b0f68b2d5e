"""JWT signing and verification (HS256 via PyJWT)."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any

import jwt
import structlog

from storefront.exceptions import UnauthorizedError
from storefront.types import UserRole

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class TokenClaims:
    """Claims carried by an access token."""

    sub: str  # user id
    email: str
    role: UserRole
    tenant_id: str | None = None  # absent for platform super admins
    iat: int | None = None
    exp: int | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"sub": self.sub, "email": self.email, "role": str(self.role)}
        if self.tenant_id:
            payload["tenantId"] = self.tenant_id
        return payload


class TokenService:
    """Stateless access tokens. Expiry is the only validity limit; no revocation."""

    def __init__(self, secret: str, expires_in: int = 3600, algorithm: str = "HS256") -> None:
        self._secret = secret
        self._expires_in = expires_in
        self._algorithm = algorithm

    def sign(self, claims: TokenClaims) -> str:
        now = int(time.time())
        payload = {**claims.to_payload(), "iat": now, "exp": now + self._expires_in}
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> TokenClaims:
        """Decode and validate a token.

        Raises UnauthorizedError on a bad signature, expired token or
        malformed claims.
        """
        try:
            payload: dict[str, Any] = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["sub", "exp"]},
            )
            return TokenClaims(
                sub=payload["sub"],
                email=payload.get("email", ""),
                role=UserRole(payload["role"]),
                tenant_id=payload.get("tenantId"),
                iat=payload.get("iat"),
                exp=payload.get("exp"),
            )
        except jwt.ExpiredSignatureError as exc:
            logger.info("token_expired")
            raise UnauthorizedError("Token expired") from exc
        except (jwt.PyJWTError, KeyError, ValueError) as exc:
            logger.warning("token_invalid", error=str(exc))
            raise UnauthorizedError("Invalid token") from exc
