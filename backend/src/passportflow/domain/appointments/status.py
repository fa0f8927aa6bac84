"""AppointmentStatus state machine for biometrics appointments.

State flow:
    PENDING → APPROVED → COMPLETED
    PENDING or APPROVED → CANCELLED
    PENDING → REJECTED

Terminal States: COMPLETED, CANCELLED, REJECTED

PENDING and APPROVED appointments hold their time slot.
"""

from enum import Enum
from types import MappingProxyType
from typing import FrozenSet, Mapping

from ..errors import InvalidTransitionError


class AppointmentStatus(str, Enum):
    """Appointment status enumeration."""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


ALLOWED_TRANSITIONS: Mapping[AppointmentStatus, FrozenSet[AppointmentStatus]] = MappingProxyType({
    AppointmentStatus.PENDING: frozenset({
        AppointmentStatus.APPROVED,
        AppointmentStatus.REJECTED,
        AppointmentStatus.CANCELLED,
    }),
    AppointmentStatus.APPROVED: frozenset({
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
    }),
    AppointmentStatus.REJECTED: frozenset(),  # Terminal state
    AppointmentStatus.CANCELLED: frozenset(),  # Terminal state
    AppointmentStatus.COMPLETED: frozenset(),  # Terminal state
})

SLOT_HOLDING_STATUSES: FrozenSet[AppointmentStatus] = frozenset({
    AppointmentStatus.PENDING,
    AppointmentStatus.APPROVED,
})


def can_transition(current_status: AppointmentStatus, new_status: AppointmentStatus) -> bool:
    return new_status in ALLOWED_TRANSITIONS.get(current_status, frozenset())


def validate_transition(current_status: AppointmentStatus, new_status: AppointmentStatus) -> None:
    """Raise ``InvalidTransitionError`` unless the move is allowed."""
    if not can_transition(current_status, new_status):
        raise InvalidTransitionError(current_status, new_status)
