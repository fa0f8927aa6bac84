"""Renewal request service.

Owners edit their request while it is PENDING; staff close it as VERIFIED or
REJECTED. Documents are handled by ``DocumentAttachmentManager``.
"""

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from ..auth.roles import STAFF_ROLES, CallerIdentity, ensure_can_read, ensure_role
from ..concurrency import AggregateLockRegistry, renewal_locks
from ..domain.audit.port import AuditTrailPort
from ..domain.errors import BadRequestError, ForbiddenError
from ..domain.renewals.models import RenewalDetails, RenewalRequest
from ..domain.renewals.ports import NOT_FOUND_MESSAGE, RenewalRepositoryPort
from ..domain.renewals.status import RenewalStatus

logger = logging.getLogger(__name__)


class RenewalService:
    """Use cases on the RenewalRequest aggregate."""

    def __init__(
        self,
        renewals: RenewalRepositoryPort,
        audit: AuditTrailPort,
        locks: AggregateLockRegistry = renewal_locks,
    ):
        self.renewals = renewals
        self.audit = audit
        self.locks = locks

    def create_renewal(self, details: RenewalDetails, caller: CallerIdentity) -> RenewalRequest:
        renewal = RenewalRequest(details=details, user_id=caller.user_id)
        self.audit.record(
            action="RENEWAL_SUBMITTED",
            actor_id=caller.user_id,
            entity_type="renewal_request",
            entity_id=renewal.id,
        )
        self.renewals.save(renewal)

        logger.info(
            f"Renewal request submitted: {renewal.id}",
            extra={"renewal_id": str(renewal.id), "user_id": caller.user_id},
        )
        return renewal

    def get_renewal(self, renewal_id: UUID, caller: CallerIdentity) -> RenewalRequest:
        renewal = self.renewals.load(renewal_id)
        ensure_can_read(caller, renewal.user_id, NOT_FOUND_MESSAGE)
        return renewal

    def list_renewals(
        self,
        caller: CallerIdentity,
        status: Optional[RenewalStatus] = None,
    ) -> List[RenewalRequest]:
        ensure_role(caller, STAFF_ROLES)
        return self.renewals.list_all(status=status)

    def list_my_renewals(self, caller: CallerIdentity) -> List[RenewalRequest]:
        return self.renewals.list_by_owner(caller.user_id)

    async def update_renewal(
        self,
        renewal_id: UUID,
        changes: Dict[str, Any],
        caller: CallerIdentity,
    ) -> RenewalRequest:
        """Update request fields. Only the requester, only while PENDING.

        Raises:
            NotFoundError: Request absent or not visible to the caller
            ForbiddenError: Staff caller editing someone else's request
            BadRequestError: Request is no longer PENDING, or nothing to update
        """
        if not changes:
            raise BadRequestError("No fields to update")

        async with self.locks.hold(renewal_id):
            renewal = self.renewals.load(renewal_id)
            if renewal.user_id != caller.user_id:
                ensure_can_read(caller, renewal.user_id, NOT_FOUND_MESSAGE)
                raise ForbiddenError("Only the requester can update a renewal request")

            renewal.update_details(changes)
            self.audit.record(
                action="RENEWAL_UPDATED",
                actor_id=caller.user_id,
                entity_type="renewal_request",
                entity_id=renewal.id,
                metadata={"fields": sorted(changes)},
            )
            self.renewals.save(renewal)

        return renewal

    async def review_renewal(
        self,
        renewal_id: UUID,
        new_status: RenewalStatus,
        caller: CallerIdentity,
        remarks: Optional[str] = None,
    ) -> RenewalRequest:
        """Close a pending request, stamping ``verified_at`` and ``verified_by``.

        Raises:
            ForbiddenError: Caller is not MANAGER or ADMIN
            NotFoundError: Request does not exist
            InvalidTransitionError: Request already closed, or target is PENDING
        """
        ensure_role(caller, STAFF_ROLES)

        async with self.locks.hold(renewal_id):
            renewal = self.renewals.load(renewal_id)
            renewal.review(new_status, reviewer_id=caller.user_id, remarks=remarks)
            self.audit.record(
                action="RENEWAL_REVIEWED",
                actor_id=caller.user_id,
                entity_type="renewal_request",
                entity_id=renewal.id,
                metadata={"status": new_status.value, "remarks": remarks},
            )
            self.renewals.save(renewal)

        logger.info(
            f"Renewal request {renewal_id} reviewed: {new_status.value}",
            extra={"renewal_id": str(renewal_id), "status": new_status.value, "user_id": caller.user_id},
        )
        return renewal
