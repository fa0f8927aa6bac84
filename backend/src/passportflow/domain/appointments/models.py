"""Appointment aggregate and the fixed booking grid.

An appointment books one ``TimeSlot`` (date, time, location). Slots are
offered on a fixed half-hour grid; while an appointment is PENDING or
APPROVED no other appointment may hold the same slot.
"""

from dataclasses import dataclass, field, fields, replace
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID, uuid4

from ..errors import BadRequestError, InputValidationError
from .status import SLOT_HOLDING_STATUSES, AppointmentStatus, validate_transition

# Morning and afternoon sessions, lunch break 12:00-13:00
TIME_SLOTS: Tuple[str, ...] = (
    "09:00", "09:30", "10:00", "10:30", "11:00", "11:30",
    "13:00", "13:30", "14:00", "14:30", "15:00", "15:30",
)


class AppointmentLocation(str, Enum):
    """Passport offices taking biometrics appointments."""
    COLOMBO = "Colombo"
    KANDY = "Kandy"
    MATARA = "Matara"
    VAVUNIYA = "Vavuniya"
    REGIONAL_OFFICE = "Regional Office"

    @property
    def code(self) -> str:
        return self.value[:3].upper()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def validate_time(time: str) -> str:
    if time not in TIME_SLOTS:
        raise InputValidationError(
            f"Invalid time slot: {time}. Allowed: {', '.join(TIME_SLOTS)}"
        )
    return time


@dataclass(frozen=True)
class TimeSlot:
    date: date
    time: str
    location: AppointmentLocation

    def __post_init__(self):
        validate_time(self.time)


@dataclass
class AppointmentDetails:
    full_name: str
    permanent_address: str
    nic_number: str
    contact_number: str
    reason: str

    @classmethod
    def field_names(cls) -> List[str]:
        return [f.name for f in fields(cls)]

    def updated(self, changes: Dict[str, Any]) -> "AppointmentDetails":
        unknown = set(changes) - set(self.field_names())
        if unknown:
            raise BadRequestError(f"Fields cannot be updated: {sorted(unknown)}")
        return replace(self, **changes)


@dataclass
class Appointment:
    details: AppointmentDetails
    slot: TimeSlot
    created_by: str
    id: UUID = field(default_factory=uuid4)
    status: AppointmentStatus = AppointmentStatus.PENDING
    rejection_reason: Optional[str] = None
    admin_notes: Optional[str] = None
    is_time_slot_confirmed: bool = False
    version: int = 0
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def reference(self) -> str:
        """Human-readable booking reference, e.g. ``APT-20250314-COL-0930-3FA``.

        The suffix is taken from the id, so the reference is stable across reads.
        """
        return (
            f"APT-{self.slot.date.strftime('%Y%m%d')}-{self.slot.location.code}"
            f"-{self.slot.time.replace(':', '')}-{self.id.hex[:3].upper()}"
        )

    @property
    def holds_slot(self) -> bool:
        return self.status in SLOT_HOLDING_STATUSES

    def ensure_pending(self, action: str) -> None:
        if self.status is not AppointmentStatus.PENDING:
            raise BadRequestError(f"Can only {action} pending appointments")

    def update_details(self, changes: Dict[str, Any]) -> None:
        self.details = self.details.updated(changes)
        self.updated_at = utcnow()

    def reschedule(self, slot: TimeSlot) -> None:
        if slot != self.slot:
            self.slot = slot
            self.is_time_slot_confirmed = False
            self.updated_at = utcnow()

    def change_status(self, new_status: AppointmentStatus) -> None:
        validate_transition(self.status, new_status)
        self.status = new_status
        self.updated_at = utcnow()

    def ensure_deletable(self) -> None:
        if self.status is AppointmentStatus.APPROVED:
            raise BadRequestError("Cannot delete an approved appointment")
