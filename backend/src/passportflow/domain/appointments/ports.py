"""Persistence port for biometrics appointments."""

from abc import ABC, abstractmethod
from datetime import date
from typing import List, Optional, Set
from uuid import UUID

from .models import Appointment, AppointmentLocation, TimeSlot
from .status import AppointmentStatus

NOT_FOUND_MESSAGE = "Appointment not found"


class AppointmentRepositoryPort(ABC):

    @abstractmethod
    def load(self, appointment_id: UUID) -> Appointment:
        """Raises NotFoundError if absent."""

    @abstractmethod
    def save(self, appointment: Appointment) -> Appointment:
        """Insert or conditionally update (version check).

        Raises:
            ConcurrencyConflictError: Stale version, or another active booking took the slot
        """

    @abstractmethod
    def delete(self, appointment_id: UUID) -> None:
        """Raises NotFoundError if absent."""

    @abstractmethod
    def list_all(
        self,
        status: Optional[AppointmentStatus] = None,
        location: Optional[AppointmentLocation] = None,
        on_date: Optional[date] = None,
    ) -> List[Appointment]:
        """Newest first, optionally filtered."""

    @abstractmethod
    def list_by_owner(self, user_id: str, status: Optional[AppointmentStatus] = None) -> List[Appointment]:
        """Newest first."""

    @abstractmethod
    def find_slot_holder(self, slot: TimeSlot, exclude_id: Optional[UUID] = None) -> Optional[Appointment]:
        """The PENDING or APPROVED appointment on ``slot``, if any."""

    @abstractmethod
    def booked_times(self, on_date: date, location: AppointmentLocation) -> Set[str]:
        """Times held by PENDING or APPROVED appointments on that day and location."""
