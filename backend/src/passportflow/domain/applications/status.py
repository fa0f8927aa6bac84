"""ApplicationStatus state machine for the passport application workflow.

State flow (happy path):
    SUBMITTED → PAYMENT_PENDING → PAYMENT_VERIFIED → COUNTER_VERIFICATION
    → BIOMETRICS_PENDING → BIOMETRICS_COMPLETED → CONTROLLER_REVIEW
    → SENIOR_OFFICER_REVIEW → DATA_ENTRY → PRINTING_PENDING → PRINTING
    → QUALITY_ASSURANCE → READY_FOR_COLLECTION → COLLECTED

ON_HOLD is a detour reachable from most review stages; it fans back out to
the stage an application can resume from, or to REJECTED.

Terminal States: COLLECTED, REJECTED
"""

from enum import Enum
from types import MappingProxyType
from typing import FrozenSet, List, Mapping

from ..errors import InvalidTransitionError


class ApplicationStatus(str, Enum):
    """Application processing status enumeration.

    Values are stored as TEXT and exchanged with clients verbatim.
    """
    SUBMITTED = "SUBMITTED"
    PAYMENT_PENDING = "PAYMENT_PENDING"
    PAYMENT_VERIFIED = "PAYMENT_VERIFIED"
    COUNTER_VERIFICATION = "COUNTER_VERIFICATION"
    BIOMETRICS_PENDING = "BIOMETRICS_PENDING"
    BIOMETRICS_COMPLETED = "BIOMETRICS_COMPLETED"
    CONTROLLER_REVIEW = "CONTROLLER_REVIEW"
    SENIOR_OFFICER_REVIEW = "SENIOR_OFFICER_REVIEW"
    DATA_ENTRY = "DATA_ENTRY"
    PRINTING_PENDING = "PRINTING_PENDING"
    PRINTING = "PRINTING"
    QUALITY_ASSURANCE = "QUALITY_ASSURANCE"
    READY_FOR_COLLECTION = "READY_FOR_COLLECTION"
    COLLECTED = "COLLECTED"
    REJECTED = "REJECTED"
    ON_HOLD = "ON_HOLD"


_S = ApplicationStatus

# Allowed state transitions. Every status must appear as a key.
ALLOWED_TRANSITIONS: Mapping[ApplicationStatus, FrozenSet[ApplicationStatus]] = MappingProxyType({
    _S.SUBMITTED: frozenset({_S.PAYMENT_PENDING, _S.REJECTED}),
    _S.PAYMENT_PENDING: frozenset({_S.PAYMENT_VERIFIED, _S.REJECTED}),
    _S.PAYMENT_VERIFIED: frozenset({_S.COUNTER_VERIFICATION, _S.REJECTED}),
    _S.COUNTER_VERIFICATION: frozenset({_S.BIOMETRICS_PENDING, _S.ON_HOLD, _S.REJECTED}),
    _S.BIOMETRICS_PENDING: frozenset({_S.BIOMETRICS_COMPLETED, _S.ON_HOLD, _S.REJECTED}),
    _S.BIOMETRICS_COMPLETED: frozenset({_S.CONTROLLER_REVIEW, _S.ON_HOLD, _S.REJECTED}),
    _S.CONTROLLER_REVIEW: frozenset({_S.SENIOR_OFFICER_REVIEW, _S.ON_HOLD, _S.REJECTED}),
    _S.SENIOR_OFFICER_REVIEW: frozenset({_S.DATA_ENTRY, _S.ON_HOLD, _S.REJECTED}),
    _S.DATA_ENTRY: frozenset({_S.PRINTING_PENDING, _S.ON_HOLD, _S.REJECTED}),
    _S.PRINTING_PENDING: frozenset({_S.PRINTING, _S.ON_HOLD}),
    _S.PRINTING: frozenset({_S.QUALITY_ASSURANCE}),
    _S.QUALITY_ASSURANCE: frozenset({_S.READY_FOR_COLLECTION, _S.PRINTING}),
    _S.READY_FOR_COLLECTION: frozenset({_S.COLLECTED}),
    _S.ON_HOLD: frozenset({
        _S.COUNTER_VERIFICATION,
        _S.BIOMETRICS_PENDING,
        _S.CONTROLLER_REVIEW,
        _S.SENIOR_OFFICER_REVIEW,
        _S.DATA_ENTRY,
        _S.PRINTING_PENDING,
        _S.REJECTED,
    }),
    _S.COLLECTED: frozenset(),  # Terminal state
    _S.REJECTED: frozenset(),  # Terminal state
})

TERMINAL_STATUSES: FrozenSet[ApplicationStatus] = frozenset(
    status for status, targets in ALLOWED_TRANSITIONS.items() if not targets
)

# Attachments may be added or removed until the passport goes to print.
DOCUMENT_MUTABLE_STATUSES: FrozenSet[ApplicationStatus] = frozenset({
    _S.SUBMITTED,
    _S.PAYMENT_PENDING,
    _S.PAYMENT_VERIFIED,
    _S.COUNTER_VERIFICATION,
    _S.BIOMETRICS_PENDING,
    _S.BIOMETRICS_COMPLETED,
    _S.CONTROLLER_REVIEW,
    _S.SENIOR_OFFICER_REVIEW,
    _S.DATA_ENTRY,
    _S.ON_HOLD,
})

_missing = set(ApplicationStatus) - set(ALLOWED_TRANSITIONS)
if _missing:
    raise RuntimeError(f"Statuses without transition rules: {sorted(s.value for s in _missing)}")


def validate_transition(
    current_status: ApplicationStatus,
    new_status: ApplicationStatus
) -> None:
    """Validate that a state transition is allowed.

    Args:
        current_status: Current application status
        new_status: Target status to transition to

    Raises:
        InvalidTransitionError: If transition is not allowed
    """
    allowed = ALLOWED_TRANSITIONS.get(current_status, frozenset())
    if new_status not in allowed:
        raise InvalidTransitionError(
            current_status,
            new_status,
            f"Invalid status transition: {current_status.value} -> {new_status.value}. "
            f"Allowed transitions from {current_status.value}: "
            f"{sorted(s.value for s in allowed)}"
        )


def can_transition(
    current_status: ApplicationStatus,
    new_status: ApplicationStatus
) -> bool:
    """Check if a state transition is allowed without raising exception.

    Example:
        >>> can_transition(ApplicationStatus.SUBMITTED, ApplicationStatus.PAYMENT_PENDING)
        True
        >>> can_transition(ApplicationStatus.PAYMENT_PENDING, ApplicationStatus.SUBMITTED)
        False
    """
    return new_status in ALLOWED_TRANSITIONS.get(current_status, frozenset())


def get_allowed_transitions(status: ApplicationStatus) -> List[ApplicationStatus]:
    """Get allowed target statuses from a given status, in declaration order."""
    allowed = ALLOWED_TRANSITIONS.get(status, frozenset())
    return [s for s in ApplicationStatus if s in allowed]


def is_terminal(status: ApplicationStatus) -> bool:
    return status in TERMINAL_STATUSES
