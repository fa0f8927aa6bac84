"""RenewalStatus state machine for passport renewal requests.

State flow:
    PENDING → VERIFIED or REJECTED

Terminal States: VERIFIED, REJECTED
"""

from enum import Enum
from types import MappingProxyType
from typing import FrozenSet, Mapping

from ..errors import InvalidTransitionError


class RenewalStatus(str, Enum):
    """Renewal request status enumeration."""
    PENDING = "PENDING"
    VERIFIED = "VERIFIED"
    REJECTED = "REJECTED"


ALLOWED_TRANSITIONS: Mapping[RenewalStatus, FrozenSet[RenewalStatus]] = MappingProxyType({
    RenewalStatus.PENDING: frozenset({RenewalStatus.VERIFIED, RenewalStatus.REJECTED}),
    RenewalStatus.VERIFIED: frozenset(),  # Terminal state
    RenewalStatus.REJECTED: frozenset(),  # Terminal state
})


def can_transition(current_status: RenewalStatus, new_status: RenewalStatus) -> bool:
    return new_status in ALLOWED_TRANSITIONS.get(current_status, frozenset())


def validate_transition(current_status: RenewalStatus, new_status: RenewalStatus) -> None:
    """Raise ``InvalidTransitionError`` unless the move is allowed."""
    if not can_transition(current_status, new_status):
        raise InvalidTransitionError(current_status, new_status)
