"""Persistence port for application aggregates.

Architecture: Hexagonal - Port interface in domain layer
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import List, Tuple
from uuid import UUID

from .models import Application

NOT_FOUND_MESSAGE = "Application not found"


class ApplicationRepositoryPort(ABC):
    """Load/save/delete application aggregates plus read-only aggregations."""

    @abstractmethod
    def load(self, application_id: UUID) -> Application:
        """Load an aggregate.

        Raises:
            NotFoundError: If no application has this id
        """

    @abstractmethod
    def save(self, application: Application) -> Application:
        """Insert or update an aggregate.

        Updates are conditional on ``application.version`` matching the
        stored version; on success the version is incremented.

        Raises:
            ConcurrencyConflictError: If another writer saved first
        """

    @abstractmethod
    def delete(self, application_id: UUID) -> None:
        """Hard-delete an aggregate.

        Raises:
            NotFoundError: If no application has this id
        """

    @abstractmethod
    def list_all(self) -> List[Application]:
        """All applications, newest first."""

    @abstractmethod
    def list_by_owner(self, user_id: str) -> List[Application]:
        """Applications submitted by ``user_id``, newest first."""

    # -- aggregation reads ----------------------------------------------

    @abstractmethod
    def count_all(self) -> int:
        """Total number of applications."""

    @abstractmethod
    def count_with_appointment(self) -> int:
        """Applications with a biometric appointment date."""

    @abstractmethod
    def count_with_renewal_indicator(self) -> int:
        """Applications that declare a present travel document."""

    @abstractmethod
    def count_by_created_day(self) -> List[Tuple[date, int]]:
        """``(day, count)`` for days with at least one application, ascending."""

    @abstractmethod
    def count_by_travel_document_type(self) -> List[Tuple[str, int]]:
        """``(travel document code, count)`` pairs, unordered."""

    @abstractmethod
    def count_by_district(self) -> List[Tuple[str, int]]:
        """``(permanent address district, count)`` pairs, unordered."""

    @abstractmethod
    def count_by_status(self) -> List[Tuple[str, int]]:
        """``(status value, count)`` pairs, unordered."""
