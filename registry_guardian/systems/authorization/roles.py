"""
Registry Guardian — Role Hierarchy

GUEST < TRAINER < {COLLECTOR, INVESTOR, CURATOR} < ADMIN

The middle tier is an unordered sibling group: all three outrank TRAINER,
none outranks another, and ADMIN outranks everything.
"""

from __future__ import annotations

from registry_guardian.primitives.common import Role
from registry_guardian.primitives.errors import UnknownRoleError

ROLE_RANKS: dict[Role, int] = {
    Role.GUEST: 0,
    Role.TRAINER: 10,
    Role.COLLECTOR: 20,
    Role.INVESTOR: 20,
    Role.CURATOR: 20,
    Role.ADMIN: 100,
}

# Probe order for introspection: lowest first, siblings in a stable order
_ASCENDING: tuple[Role, ...] = (
    Role.GUEST,
    Role.TRAINER,
    Role.COLLECTOR,
    Role.INVESTOR,
    Role.CURATOR,
    Role.ADMIN,
)


def parse_role(role: Role | str) -> Role:
    """Resolve a role name. Undefined roles raise instead of defaulting to GUEST."""
    if isinstance(role, Role):
        return role
    try:
        return Role(str(role).strip().upper())
    except ValueError:
        raise UnknownRoleError(str(role)) from None


def rank(role: Role | str) -> int:
    return ROLE_RANKS[parse_role(role)]


def meets_minimum(role: Role | str, minimum_role: Role | str) -> bool:
    """True when ``role`` ranks at or above ``minimum_role``."""
    return rank(role) >= rank(minimum_role)


def roles_ascending() -> tuple[Role, ...]:
    return _ASCENDING
