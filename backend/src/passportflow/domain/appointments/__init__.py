"""Appointments domain module - biometrics bookings, slot grid and status rules"""

from .models import (
    TIME_SLOTS,
    Appointment,
    AppointmentDetails,
    AppointmentLocation,
    TimeSlot,
)
from .ports import AppointmentRepositoryPort
from .status import (
    ALLOWED_TRANSITIONS,
    SLOT_HOLDING_STATUSES,
    AppointmentStatus,
    can_transition,
    validate_transition,
)

__all__ = [
    "TIME_SLOTS",
    "Appointment",
    "AppointmentDetails",
    "AppointmentLocation",
    "TimeSlot",
    "AppointmentRepositoryPort",
    "ALLOWED_TRANSITIONS",
    "SLOT_HOLDING_STATUSES",
    "AppointmentStatus",
    "can_transition",
    "validate_transition",
]
