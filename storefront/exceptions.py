"""Exception hierarchy for the storefront backend."""


class StorefrontError(Exception):
    """Base exception for all storefront errors."""

    status_code: int = 500


class NotFoundError(StorefrontError):
    """Raised when a lookup by id or slug misses."""

    status_code = 404


class ConflictError(StorefrontError):
    """Raised when a write collides with an existing unique value."""

    status_code = 409


class UnauthorizedError(StorefrontError):
    """Raised for missing, invalid or expired credentials and unusable tenants."""

    status_code = 401


class ForbiddenError(StorefrontError):
    """Raised when an authenticated principal lacks a required role."""

    status_code = 403


class InvalidArgumentError(StorefrontError):
    """Raised on programming errors such as scoping a client without a tenant id."""


class UpstreamError(StorefrontError):
    """Raised when the database or another backing service fails."""
