"""
Role-based permission defaults for staff users.

Each system role maps to a set of permission patterns in the ``page.action``
format produced by :mod:`ordering.utils.pages`. Patterns may use ``*`` on
either side of the dot. The admin role always receives every permission.
"""

from fnmatch import fnmatchcase
from typing import Dict, FrozenSet, Iterable, Set
from enum import Enum


ROLE_ADMIN = "admin"
ROLE_MANAGER = "manager"
ROLE_RESTAURANT = "restaurant"
ROLE_VIEWER = "viewer"

ROLE_PERMISSION_PATTERNS: Dict[str, FrozenSet[str]] = {
    ROLE_ADMIN: frozenset({"*.*"}),
    ROLE_MANAGER: frozenset({
        "home.view",
        "dashboard.view",
        "menu.*",
        "orders.*",
        "customers.view",
        "customer-types.*",
        "restaurants.view",
        "drivers.*",
        "activity.view",
    }),
    ROLE_RESTAURANT: frozenset({
        "home.view",
        "dashboard.view",
        "orders.view",
        "orders.edit",
        "drivers.view",
    }),
    ROLE_VIEWER: frozenset({"*.view"}),
}

ALLOWED_ROLES = set(ROLE_PERMISSION_PATTERNS.keys())
SYSTEM_ROLES: FrozenSet[str] = frozenset(ALLOWED_ROLES)

# Permissions that survive obsolete-permission cleanup regardless of config
PROTECTED_PERMISSION_PREFIXES: FrozenSet[str] = frozenset({"profile."})


class RoleEnum(str, Enum):
    """Enum for staff roles used in schemas and validation."""
    admin = ROLE_ADMIN
    manager = ROLE_MANAGER
    restaurant = ROLE_RESTAURANT
    viewer = ROLE_VIEWER


def validate_role(role: str) -> None:
    """Raise ValueError if ``role`` is not a known system role."""
    if role not in ALLOWED_ROLES:
        raise ValueError(f"Invalid role '{role}'. Allowed roles: {sorted(ALLOWED_ROLES)}")


def permission_matches(pattern: str, permission: str) -> bool:
    """Match a permission name against a role pattern (``*`` also spans dots)."""
    return pattern == permission or fnmatchcase(permission, pattern)


def default_permissions_for_role(role: str, available: Iterable[str]) -> Set[str]:
    """Return the subset of ``available`` permission names granted to ``role``."""
    validate_role(role)
    patterns = ROLE_PERMISSION_PATTERNS[role]
    return {name for name in available if any(permission_matches(p, name) for p in patterns)}


def is_protected_permission(name: str) -> bool:
    return any(name.startswith(prefix) for prefix in PROTECTED_PERMISSION_PREFIXES)
