"""User roles, caller identity and ownership policy.

Role Matrix:
┌──────────────────────────────┬───────┬─────────┬───────────┐
│ Action                       │ ADMIN │ MANAGER │ APPLICANT │
├──────────────────────────────┼───────┼─────────┼───────────┤
│ Submit application           │   ✓   │         │     ✓     │
│ List all / statistics        │   ✓   │    ✓    │           │
│ Change status / verify docs  │   ✓   │    ✓    │           │
│ Update applicant details     │   ✓   │    ✓    │           │
│ Delete application           │   ✓   │         │           │
│ Read own aggregates          │   ✓   │    ✓    │     ✓     │
│ Read any aggregate           │   ✓   │    ✓    │           │
│ Attach/remove on own         │   ✓   │    ✓    │     ✓     │
│ Attach/remove on any         │  (e)  │   (e)   │           │
└──────────────────────────────┴───────┴─────────┴───────────┘
(e) only when the caller is explicitly elevated.

Authentication happens upstream; the core only receives a ``CallerIdentity``.
Callers without read access to an aggregate get ``NotFoundError`` so the
existence of other users' records is not revealed.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from ..domain.errors import ForbiddenError, NotFoundError


class UserRole(str, Enum):
    """User roles. Values must match the identity provider exactly."""
    APPLICANT = "APPLICANT"
    MANAGER = "MANAGER"
    ADMIN = "ADMIN"


# Alias for readability at call sites
Role = UserRole

STAFF_ROLES = frozenset({UserRole.ADMIN, UserRole.MANAGER})


@dataclass(frozen=True)
class CallerIdentity:
    """Authenticated caller as seen by the core."""
    user_id: str
    role: UserRole
    elevated: bool = False

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES


def ensure_role(caller: CallerIdentity, allowed_roles: Iterable[UserRole]) -> None:
    """Raise ``ForbiddenError`` unless the caller has one of ``allowed_roles``."""
    allowed = frozenset(allowed_roles)
    if caller.role not in allowed:
        raise ForbiddenError(
            f"Role {caller.role.value} is not permitted to perform this action"
        )


def can_read(caller: CallerIdentity, owner_id: str) -> bool:
    return caller.user_id == owner_id or caller.is_staff


def ensure_can_read(caller: CallerIdentity, owner_id: str, not_found_message: str) -> None:
    if not can_read(caller, owner_id):
        raise NotFoundError(not_found_message)


def ensure_can_mutate(caller: CallerIdentity, owner_id: str, not_found_message: str) -> None:
    """Owners may mutate; staff may mutate other users' aggregates only when elevated."""
    if caller.user_id == owner_id:
        return
    if not caller.is_staff:
        raise NotFoundError(not_found_message)
    if not caller.elevated:
        raise ForbiddenError("Elevated privileges are required to modify another user's documents")
