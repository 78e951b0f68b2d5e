from __future__ import annotations

import time

import jwt
import pytest

from storefront.auth.passwords import compare_password, hash_password
from storefront.auth.tokens import TokenClaims, TokenService
from storefront.exceptions import UnauthorizedError
from storefront.types import UserRole


@pytest.fixture()
def tokens() -> TokenService:
    return TokenService("test-secret", expires_in=60)


@pytest.mark.unit
class TestTokenService:
    def test_round_trip(self, tokens: TokenService) -> None:
        token = tokens.sign(
            TokenClaims(sub="u1", email="a@acme.com", role=UserRole.CUSTOMER, tenant_id="t1")
        )
        claims = tokens.verify(token)
        assert claims.sub == "u1"
        assert claims.role == UserRole.CUSTOMER
        assert claims.tenant_id == "t1"
        assert claims.exp - claims.iat == 60

    def test_payload_uses_tenant_id_claim(self, tokens: TokenService) -> None:
        token = tokens.sign(
            TokenClaims(sub="u1", email="a@acme.com", role=UserRole.ADMIN, tenant_id="t1")
        )
        payload = jwt.decode(token, "test-secret", algorithms=["HS256"])
        assert payload["tenantId"] == "t1"
        assert payload["role"] == "ADMIN"

    def test_super_admin_has_no_tenant_claim(self, tokens: TokenService) -> None:
        token = tokens.sign(TokenClaims(sub="u1", email="r@sf.com", role=UserRole.SUPER_ADMIN))
        assert "tenantId" not in jwt.decode(token, "test-secret", algorithms=["HS256"])
        assert tokens.verify(token).tenant_id is None

    def test_wrong_secret(self, tokens: TokenService) -> None:
        token = TokenService("other-secret").sign(
            TokenClaims(sub="u1", email="a@acme.com", role=UserRole.CUSTOMER)
        )
        with pytest.raises(UnauthorizedError, match="Invalid token"):
            tokens.verify(token)

    def test_expired(self, tokens: TokenService) -> None:
        now = int(time.time())
        token = jwt.encode(
            {"sub": "u1", "role": "CUSTOMER", "iat": now - 120, "exp": now - 60},
            "test-secret",
            algorithm="HS256",
        )
        with pytest.raises(UnauthorizedError, match="Token expired"):
            tokens.verify(token)

    def test_unknown_role(self, tokens: TokenService) -> None:
        token = jwt.encode(
            {"sub": "u1", "role": "JANITOR", "exp": int(time.time()) + 60},
            "test-secret",
            algorithm="HS256",
        )
        with pytest.raises(UnauthorizedError):
            tokens.verify(token)

    def test_missing_exp(self, tokens: TokenService) -> None:
        token = jwt.encode({"sub": "u1", "role": "CUSTOMER"}, "test-secret", algorithm="HS256")
        with pytest.raises(UnauthorizedError):
            tokens.verify(token)

    def test_garbage(self, tokens: TokenService) -> None:
        with pytest.raises(UnauthorizedError):
            tokens.verify("not-a-jwt")


@pytest.mark.unit
class TestPasswords:
    def test_hash_and_compare(self) -> None:
        hashed = hash_password("s3cret")
        assert hashed != "s3cret"
        assert compare_password("s3cret", hashed)
        assert not compare_password("wrong", hashed)

    def test_malformed_hash(self) -> None:
        assert not compare_password("s3cret", "not-a-bcrypt-hash")
