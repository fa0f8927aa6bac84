"""Workflow audit trail.

Entries are added to the caller's session and flushed, not committed: the
repository save that follows commits them together with the aggregate, and a
rejected save rolls them back with it.

Actions written by the core:
    APPLICATION_SUBMITTED, APPLICATION_UPDATED, APPLICATION_DELETED,
    APPLICATION_STATUS_CHANGED, DOCUMENT_VERIFIED,
    DOCUMENT_ATTACHED, DOCUMENT_REMOVED,
    RENEWAL_SUBMITTED, RENEWAL_UPDATED, RENEWAL_REVIEWED
    APPOINTMENT_BOOKED, APPOINTMENT_UPDATED, APPOINTMENT_STATUS_CHANGED,
    APPOINTMENT_DELETED
"""

import logging
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from ..domain.audit.port import AuditTrailPort
from ..models.audit_log import AuditLog

logger = logging.getLogger(__name__)


def log_audit_event(
    db: Session,
    action: str,
    entity_type: str,
    entity_id: UUID,
    actor_id: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    """Stage one audit row on ``db``.

    Args:
        action: Upper-case event name from the module docstring
        entity_type: "application" or "renewal_request"
        actor_id: Caller user id; None for system actions
        metadata: JSON context, e.g. ``{"from": "SUBMITTED", "to": "PAYMENT_PENDING"}``
    """
    entry = AuditLog(
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        actor_id=actor_id,
        metadata_json=metadata,
    )
    db.add(entry)
    db.flush()
    logger.debug(
        f"Audit {action} on {entity_type} {entity_id}",
        extra={"audit_action": action, "entity_id": str(entity_id), "actor_id": actor_id},
    )
    return entry


class SqlAuditTrail(AuditTrailPort):
    """``AuditTrailPort`` over the ``audit_log`` table, bound to one session."""

    def __init__(self, db: Session):
        self.db = db

    def record(
        self,
        action: str,
        actor_id: Optional[str],
        entity_type: str,
        entity_id: UUID,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        log_audit_event(self.db, action, entity_type, entity_id, actor_id=actor_id, metadata=metadata)
