"""Applications domain module - status state machine, aggregate, persistence port"""

from .models import (
    ApplicantDetails,
    Application,
    AttachedFile,
    DocumentVerification,
    PhotoPair,
    StatusHistoryEntry,
)
from .ports import ApplicationRepositoryPort
from .status import (
    ALLOWED_TRANSITIONS,
    DOCUMENT_MUTABLE_STATUSES,
    TERMINAL_STATUSES,
    ApplicationStatus,
    can_transition,
    get_allowed_transitions,
    is_terminal,
    validate_transition,
)

__all__ = [
    "ApplicantDetails",
    "Application",
    "AttachedFile",
    "DocumentVerification",
    "PhotoPair",
    "StatusHistoryEntry",
    "ApplicationRepositoryPort",
    "ALLOWED_TRANSITIONS",
    "DOCUMENT_MUTABLE_STATUSES",
    "TERMINAL_STATUSES",
    "ApplicationStatus",
    "can_transition",
    "get_allowed_transitions",
    "is_terminal",
    "validate_transition",
]
