"""Audit trail port - records who changed what on an aggregate."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
from uuid import UUID


class AuditTrailPort(ABC):

    @abstractmethod
    def record(
        self,
        action: str,
        actor_id: Optional[str],
        entity_type: str,
        entity_id: UUID,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Stage an audit entry in the same unit of work as the aggregate save."""
