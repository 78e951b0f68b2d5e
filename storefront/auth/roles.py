"""Role hierarchy: SUPER_ADMIN > ADMIN > STAFF > CUSTOMER.

A role holds its own permissions plus those of every role below it. The table
is spelled out rather than derived from enum order so that adding a role is
an explicit decision.
"""

from __future__ import annotations

from collections.abc import Iterable

from storefront.types import UserRole

ROLE_PERMISSIONS: dict[UserRole, frozenset[UserRole]] = {
    UserRole.SUPER_ADMIN: frozenset(
        {UserRole.SUPER_ADMIN, UserRole.ADMIN, UserRole.STAFF, UserRole.CUSTOMER}
    ),
    UserRole.ADMIN: frozenset({UserRole.ADMIN, UserRole.STAFF, UserRole.CUSTOMER}),
    UserRole.STAFF: frozenset({UserRole.STAFF, UserRole.CUSTOMER}),
    UserRole.CUSTOMER: frozenset({UserRole.CUSTOMER}),
}


def permissions_for(role: UserRole | str) -> frozenset[UserRole]:
    """Return the set of roles ``role`` may act as. Unknown roles get nothing."""
    try:
        return ROLE_PERMISSIONS[UserRole(role)]
    except ValueError:
        return frozenset()


def has_required_role(role: UserRole | str | None, required: Iterable[UserRole | str]) -> bool:
    """Decide whether a principal holding ``role`` may access a route requiring any of ``required``.

    An empty requirement always allows. Otherwise the principal's permission
    set must intersect the required set.
    """
    required_set = {UserRole(r) for r in required}
    if not required_set:
        return True
    if role is None:
        return False
    return not permissions_for(role).isdisjoint(required_set)
