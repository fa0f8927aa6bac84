"""Biometrics appointment booking.

Applicants book one slot on the fixed grid and may move or cancel it while
it is PENDING. Staff approve, reject, complete or annotate bookings. A slot
is taken while its appointment is PENDING or APPROVED; the check and the
write run under a per-slot lock, and the table's partial unique index turns a
cross-process double booking into ``ConcurrencyConflictError``.
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional
from uuid import UUID

from ..auth.roles import STAFF_ROLES, CallerIdentity, UserRole, ensure_can_read, ensure_role
from ..concurrency import AggregateLockRegistry, appointment_locks
from ..domain.appointments.models import (
    TIME_SLOTS,
    Appointment,
    AppointmentDetails,
    AppointmentLocation,
    TimeSlot,
)
from ..domain.appointments.ports import NOT_FOUND_MESSAGE, AppointmentRepositoryPort
from ..domain.appointments.status import AppointmentStatus
from ..domain.audit.port import AuditTrailPort
from ..domain.errors import BadRequestError

logger = logging.getLogger(__name__)

SLOT_FIELDS = frozenset({"preferred_date", "preferred_time", "preferred_location"})
# Applicants may only move the booking or change how to reach them
APPLICANT_FIELDS = SLOT_FIELDS | {"contact_number", "reason"}
REVIEW_FIELDS = frozenset({"status", "rejection_reason", "admin_notes", "is_time_slot_confirmed"})
DELETER_ROLES = frozenset({UserRole.ADMIN, UserRole.APPLICANT})


class AppointmentService:
    """Use cases on the Appointment aggregate."""

    def __init__(
        self,
        appointments: AppointmentRepositoryPort,
        audit: AuditTrailPort,
        locks: AggregateLockRegistry = appointment_locks,
    ):
        self.appointments = appointments
        self.audit = audit
        self.locks = locks

    async def create_appointment(
        self,
        details: AppointmentDetails,
        slot: TimeSlot,
        caller: CallerIdentity,
    ) -> Appointment:
        """Book ``slot`` for the caller. Starts in PENDING.

        Raises:
            ForbiddenError: Caller is not an APPLICANT
            BadRequestError: Slot already held by a PENDING or APPROVED appointment
        """
        ensure_role(caller, [UserRole.APPLICANT])

        async with self.locks.hold(slot):
            self._ensure_available(slot)
            appointment = Appointment(details=details, slot=slot, created_by=caller.user_id)
            self.audit.record(
                action="APPOINTMENT_BOOKED",
                actor_id=caller.user_id,
                entity_type="appointment",
                entity_id=appointment.id,
                metadata={"reference": appointment.reference},
            )
            self.appointments.save(appointment)

        logger.info(
            f"Appointment booked: {appointment.reference}",
            extra={"appointment_id": str(appointment.id), "user_id": caller.user_id},
        )
        return appointment

    def get_appointment(self, appointment_id: UUID, caller: CallerIdentity) -> Appointment:
        appointment = self.appointments.load(appointment_id)
        ensure_can_read(caller, appointment.created_by, NOT_FOUND_MESSAGE)
        return appointment

    def list_appointments(
        self,
        caller: CallerIdentity,
        status: Optional[AppointmentStatus] = None,
        location: Optional[AppointmentLocation] = None,
        on_date: Optional[date] = None,
    ) -> List[Appointment]:
        ensure_role(caller, STAFF_ROLES)
        return self.appointments.list_all(status=status, location=location, on_date=on_date)

    def list_my_appointments(
        self,
        caller: CallerIdentity,
        status: Optional[AppointmentStatus] = None,
    ) -> List[Appointment]:
        return self.appointments.list_by_owner(caller.user_id, status=status)

    def available_slots(self, on_date: date, location: AppointmentLocation) -> List[str]:
        """Grid times on ``on_date`` at ``location`` not held by an active booking."""
        booked = self.appointments.booked_times(on_date, location)
        return [time for time in TIME_SLOTS if time not in booked]

    async def update_appointment(
        self,
        appointment_id: UUID,
        changes: Dict[str, Any],
        caller: CallerIdentity,
    ) -> Appointment:
        """Update a booking.

        Applicants may change only the slot, contact number and reason of
        their own PENDING appointment; other fields they send are ignored.
        Staff may change any field, including the status (validated against
        the transition table).

        Raises:
            NotFoundError: Appointment absent or not visible to the caller
            BadRequestError: Nothing to update, applicant editing a non-pending
                appointment, or the new slot is taken
            InvalidTransitionError: Status change not allowed
        """
        if not caller.is_staff:
            changes = {name: value for name, value in changes.items() if name in APPLICANT_FIELDS}
        if not changes:
            raise BadRequestError("No fields to update")

        async with self.locks.hold(appointment_id):
            appointment = self.appointments.load(appointment_id)
            ensure_can_read(caller, appointment.created_by, NOT_FOUND_MESSAGE)
            if not caller.is_staff:
                appointment.ensure_pending("update")

            previous_status = appointment.status
            slot = TimeSlot(
                date=changes.get("preferred_date") or appointment.slot.date,
                time=changes.get("preferred_time") or appointment.slot.time,
                location=changes.get("preferred_location") or appointment.slot.location,
            )

            async with self.locks.hold(slot):
                new_status = changes.get("status")
                if new_status is not None and new_status is not appointment.status:
                    appointment.change_status(new_status)
                if slot != appointment.slot and appointment.holds_slot:
                    self._ensure_available(slot, exclude_id=appointment.id)
                appointment.reschedule(slot)

                appointment.update_details({
                    name: value for name, value in changes.items()
                    if name not in SLOT_FIELDS and name not in REVIEW_FIELDS
                })
                for name in ("rejection_reason", "admin_notes", "is_time_slot_confirmed"):
                    if name in changes:
                        setattr(appointment, name, changes[name])

                self.audit.record(
                    action=(
                        "APPOINTMENT_STATUS_CHANGED"
                        if appointment.status is not previous_status
                        else "APPOINTMENT_UPDATED"
                    ),
                    actor_id=caller.user_id,
                    entity_type="appointment",
                    entity_id=appointment.id,
                    metadata={
                        "fields": sorted(changes),
                        "from": previous_status.value,
                        "to": appointment.status.value,
                    },
                )
                self.appointments.save(appointment)

        logger.info(
            f"Appointment {appointment_id} updated",
            extra={
                "appointment_id": str(appointment_id),
                "fields": sorted(changes),
                "status": appointment.status.value,
            },
        )
        return appointment

    async def delete_appointment(self, appointment_id: UUID, caller: CallerIdentity) -> None:
        """Delete a booking. APPROVED appointments are never deleted.

        Raises:
            ForbiddenError: Caller is a MANAGER
            NotFoundError: Appointment absent or not visible to the caller
            BadRequestError: Applicant deleting a non-pending appointment, or
                the appointment is APPROVED
        """
        ensure_role(caller, DELETER_ROLES)

        async with self.locks.hold(appointment_id):
            appointment = self.appointments.load(appointment_id)
            ensure_can_read(caller, appointment.created_by, NOT_FOUND_MESSAGE)
            if not caller.is_staff:
                appointment.ensure_pending("delete")
            appointment.ensure_deletable()

            self.audit.record(
                action="APPOINTMENT_DELETED",
                actor_id=caller.user_id,
                entity_type="appointment",
                entity_id=appointment.id,
                metadata={"reference": appointment.reference, "status": appointment.status.value},
            )
            self.appointments.delete(appointment_id)

        logger.info(
            f"Appointment {appointment_id} deleted",
            extra={"appointment_id": str(appointment_id), "user_id": caller.user_id},
        )

    def _ensure_available(self, slot: TimeSlot, exclude_id: Optional[UUID] = None) -> None:
        if self.appointments.find_slot_holder(slot, exclude_id=exclude_id) is not None:
            raise BadRequestError("Selected time slot is not available")
