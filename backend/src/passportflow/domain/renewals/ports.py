"""Persistence port for renewal requests."""

from abc import ABC, abstractmethod
from typing import List, Optional
from uuid import UUID

from .models import RenewalRequest
from .status import RenewalStatus

NOT_FOUND_MESSAGE = "Passport renewal request not found"


class RenewalRepositoryPort(ABC):

    @abstractmethod
    def load(self, renewal_id: UUID) -> RenewalRequest:
        """Raises NotFoundError if absent."""

    @abstractmethod
    def save(self, renewal: RenewalRequest) -> RenewalRequest:
        """Insert or conditionally update (version check); raises ConcurrencyConflictError."""

    @abstractmethod
    def delete(self, renewal_id: UUID) -> None:
        """Raises NotFoundError if absent."""

    @abstractmethod
    def list_all(self, status: Optional[RenewalStatus] = None) -> List[RenewalRequest]:
        """Newest first, optionally filtered by status."""

    @abstractmethod
    def list_by_owner(self, user_id: str) -> List[RenewalRequest]:
        """Newest first."""
