"""SQLAlchemy adapter for AppointmentRepositoryPort."""

from datetime import date
from typing import Any, Dict, List, Optional, Set
from uuid import UUID

from ...domain.appointments.models import Appointment, AppointmentDetails, AppointmentLocation, TimeSlot
from ...domain.appointments.ports import NOT_FOUND_MESSAGE, AppointmentRepositoryPort
from ...domain.appointments.status import SLOT_HOLDING_STATUSES, AppointmentStatus
from ...domain.errors import NotFoundError
from ...models.appointment import AppointmentRecord
from .base import VersionedRepository, as_date, parse_datetime

_HOLDING_VALUES = sorted(s.value for s in SLOT_HOLDING_STATUSES)


def _to_values(appointment: Appointment) -> Dict[str, Any]:
    values = {name: getattr(appointment.details, name) for name in AppointmentDetails.field_names()}
    values.update(
        created_by=appointment.created_by,
        status=appointment.status.value,
        preferred_location=appointment.slot.location.value,
        preferred_date=appointment.slot.date,
        preferred_time=appointment.slot.time,
        rejection_reason=appointment.rejection_reason,
        admin_notes=appointment.admin_notes,
        is_time_slot_confirmed=appointment.is_time_slot_confirmed,
        created_at=appointment.created_at,
        updated_at=appointment.updated_at,
    )
    return values


def _to_aggregate(record: AppointmentRecord) -> Appointment:
    return Appointment(
        id=record.id,
        details=AppointmentDetails(
            **{name: getattr(record, name) for name in AppointmentDetails.field_names()}
        ),
        slot=TimeSlot(
            date=as_date(record.preferred_date),
            time=record.preferred_time,
            location=AppointmentLocation(record.preferred_location),
        ),
        created_by=record.created_by,
        status=AppointmentStatus(record.status),
        rejection_reason=record.rejection_reason,
        admin_notes=record.admin_notes,
        is_time_slot_confirmed=bool(record.is_time_slot_confirmed),
        version=record.version,
        created_at=parse_datetime(record.created_at),
        updated_at=parse_datetime(record.updated_at),
    )


class AppointmentRepository(VersionedRepository, AppointmentRepositoryPort):
    """Appointment persistence backed by the ``appointment`` table."""

    model = AppointmentRecord
    entity_label = "Appointment"

    def load(self, appointment_id: UUID) -> Appointment:
        record = self.db.get(AppointmentRecord, appointment_id)
        if record is None:
            raise NotFoundError(NOT_FOUND_MESSAGE)
        return _to_aggregate(record)

    def save(self, appointment: Appointment) -> Appointment:
        appointment.version = self._save_values(
            appointment.id, appointment.version, _to_values(appointment)
        )
        return appointment

    def delete(self, appointment_id: UUID) -> None:
        if not self._delete_row(appointment_id):
            raise NotFoundError(NOT_FOUND_MESSAGE)

    def list_all(
        self,
        status: Optional[AppointmentStatus] = None,
        location: Optional[AppointmentLocation] = None,
        on_date: Optional[date] = None,
    ) -> List[Appointment]:
        query = self.db.query(AppointmentRecord)
        if status is not None:
            query = query.filter(AppointmentRecord.status == status.value)
        if location is not None:
            query = query.filter(AppointmentRecord.preferred_location == location.value)
        if on_date is not None:
            query = query.filter(AppointmentRecord.preferred_date == on_date)
        records = query.order_by(AppointmentRecord.created_at.desc()).all()
        return [_to_aggregate(r) for r in records]

    def list_by_owner(self, user_id: str, status: Optional[AppointmentStatus] = None) -> List[Appointment]:
        query = self.db.query(AppointmentRecord).filter(AppointmentRecord.created_by == user_id)
        if status is not None:
            query = query.filter(AppointmentRecord.status == status.value)
        records = query.order_by(AppointmentRecord.created_at.desc()).all()
        return [_to_aggregate(r) for r in records]

    def find_slot_holder(self, slot: TimeSlot, exclude_id: Optional[UUID] = None) -> Optional[Appointment]:
        query = self.db.query(AppointmentRecord).filter(
            AppointmentRecord.preferred_date == slot.date,
            AppointmentRecord.preferred_time == slot.time,
            AppointmentRecord.preferred_location == slot.location.value,
            AppointmentRecord.status.in_(_HOLDING_VALUES),
        )
        if exclude_id is not None:
            query = query.filter(AppointmentRecord.id != exclude_id)
        record = query.first()
        return _to_aggregate(record) if record is not None else None

    def booked_times(self, on_date: date, location: AppointmentLocation) -> Set[str]:
        rows = (
            self.db.query(AppointmentRecord.preferred_time)
            .filter(
                AppointmentRecord.preferred_date == on_date,
                AppointmentRecord.preferred_location == location.value,
                AppointmentRecord.status.in_(_HOLDING_VALUES),
            )
            .all()
        )
        return {time for (time,) in rows}
