"""Caller identity, roles and ownership policy"""

from .roles import (
    STAFF_ROLES,
    CallerIdentity,
    Role,
    UserRole,
    can_read,
    ensure_can_mutate,
    ensure_can_read,
    ensure_role,
)

__all__ = [
    "STAFF_ROLES",
    "CallerIdentity",
    "Role",
    "UserRole",
    "can_read",
    "ensure_can_mutate",
    "ensure_can_read",
    "ensure_role",
]
