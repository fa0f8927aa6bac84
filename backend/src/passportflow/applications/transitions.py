"""Transition engine - the only code path that writes an application's status.

Each call is serialised per application id in-process, and the repository save
is conditional on the loaded version, so two concurrent transitions can never
both append history from the same starting status.
"""

import logging
from typing import Optional
from uuid import UUID

from ..auth.roles import STAFF_ROLES, CallerIdentity, ensure_role
from ..concurrency import AggregateLockRegistry, application_locks
from ..domain.applications.models import Application
from ..domain.applications.ports import ApplicationRepositoryPort
from ..domain.applications.status import ApplicationStatus
from ..domain.audit.port import AuditTrailPort

logger = logging.getLogger(__name__)


class TransitionEngine:
    """Applies validated status changes to applications."""

    def __init__(
        self,
        applications: ApplicationRepositoryPort,
        audit: AuditTrailPort,
        locks: AggregateLockRegistry = application_locks,
    ):
        self.applications = applications
        self.audit = audit
        self.locks = locks

    async def apply_transition(
        self,
        application_id: UUID,
        requested_status: ApplicationStatus,
        caller: CallerIdentity,
        comment: Optional[str] = None,
    ) -> Application:
        """Move an application to ``requested_status``.

        Only ``status`` and ``status_history`` change; exactly one history
        entry is appended on success and nothing is written on failure.

        Raises:
            ForbiddenError: Caller is not MANAGER or ADMIN
            NotFoundError: Application does not exist
            InvalidTransitionError: Edge not in the transition table
            ConcurrencyConflictError: Another writer saved first
        """
        ensure_role(caller, STAFF_ROLES)

        async with self.locks.hold(application_id):
            application = self.applications.load(application_id)
            previous_status = application.status

            entry = application.apply_status_change(requested_status, comment=comment)
            self.audit.record(
                action="APPLICATION_STATUS_CHANGED",
                actor_id=caller.user_id,
                entity_type="application",
                entity_id=application.id,
                metadata={
                    "from": previous_status.value,
                    "to": entry.status.value,
                    "comment": comment,
                },
            )
            self.applications.save(application)

        logger.info(
            f"Application {application_id} status changed: {previous_status.value} -> {entry.status.value}",
            extra={
                "application_id": str(application_id),
                "from_status": previous_status.value,
                "to_status": entry.status.value,
                "user_id": caller.user_id,
            },
        )
        return application
