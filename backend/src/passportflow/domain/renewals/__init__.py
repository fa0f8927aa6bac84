"""Renewals domain module - renewal request aggregate and status rules"""

from .models import RenewalDetails, RenewalRequest
from .ports import RenewalRepositoryPort
from .status import ALLOWED_TRANSITIONS, RenewalStatus, can_transition, validate_transition

__all__ = [
    "RenewalDetails",
    "RenewalRequest",
    "RenewalRepositoryPort",
    "ALLOWED_TRANSITIONS",
    "RenewalStatus",
    "can_transition",
    "validate_transition",
]
