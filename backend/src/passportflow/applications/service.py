"""Application service - submission, reads, detail updates, deletion and verification.

Status changes live in ``transitions.TransitionEngine`` and documents in
``documents.DocumentAttachmentManager``; this service never writes either.
"""

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from ..auth.roles import STAFF_ROLES, CallerIdentity, UserRole, ensure_can_read, ensure_role
from ..concurrency import AggregateLockRegistry, application_locks
from ..documents.attachment_manager import cleanup_blobs
from ..domain.applications.models import ApplicantDetails, Application, DocumentVerification
from ..domain.applications.ports import NOT_FOUND_MESSAGE, ApplicationRepositoryPort
from ..domain.audit.port import AuditTrailPort
from ..domain.documents.document_type import DocumentKind, DocumentType
from ..domain.documents.ports.blob_storage_port import BlobStoragePort
from ..domain.errors import BadRequestError, InputValidationError

logger = logging.getLogger(__name__)

SUBMITTER_ROLES = frozenset({UserRole.APPLICANT, UserRole.ADMIN})


def parse_verification_kind(value: str) -> DocumentKind:
    """Accept a verification kind (``nic``) or any document type of that kind (``nic-front``).

    Raises:
        BadRequestError: If the value names neither
    """
    normalized = (value or "").strip().lower()
    try:
        return DocumentKind(normalized)
    except ValueError:
        pass
    try:
        return DocumentType.parse(normalized).kind
    except InputValidationError:
        raise BadRequestError("Document type not found")


class ApplicationService:
    """Use cases on the Application aggregate other than status and documents."""

    def __init__(
        self,
        applications: ApplicationRepositoryPort,
        audit: AuditTrailPort,
        storage: Optional[BlobStoragePort] = None,
        locks: AggregateLockRegistry = application_locks,
    ):
        self.applications = applications
        self.audit = audit
        self.storage = storage
        self.locks = locks

    def create_application(
        self,
        details: ApplicantDetails,
        caller: CallerIdentity,
        verification: Optional[List[DocumentVerification]] = None,
    ) -> Application:
        """Submit a new application owned by the caller.

        Raises:
            ForbiddenError: Caller is a MANAGER
        """
        ensure_role(caller, SUBMITTER_ROLES)

        application = Application.submit(details, submitted_by=caller.user_id, verification=verification)
        self.audit.record(
            action="APPLICATION_SUBMITTED",
            actor_id=caller.user_id,
            entity_type="application",
            entity_id=application.id,
            metadata={"type_of_service": details.type_of_service},
        )
        self.applications.save(application)

        logger.info(
            f"Application submitted: {application.id}",
            extra={"application_id": str(application.id), "user_id": caller.user_id},
        )
        return application

    def get_application(self, application_id: UUID, caller: CallerIdentity) -> Application:
        application = self.applications.load(application_id)
        ensure_can_read(caller, application.submitted_by, NOT_FOUND_MESSAGE)
        return application

    def list_applications(self, caller: CallerIdentity) -> List[Application]:
        ensure_role(caller, STAFF_ROLES)
        return self.applications.list_all()

    def list_my_applications(self, caller: CallerIdentity) -> List[Application]:
        return self.applications.list_by_owner(caller.user_id)

    async def update_application(
        self,
        application_id: UUID,
        changes: Dict[str, Any],
        caller: CallerIdentity,
    ) -> Application:
        """Update applicant details.

        Status, history, verification and attachments are not reachable from
        here; unknown field names are rejected.

        Raises:
            ForbiddenError: Caller is not MANAGER or ADMIN
            NotFoundError: Application does not exist
            BadRequestError: No changes, or a field that is not an applicant detail
        """
        ensure_role(caller, STAFF_ROLES)
        if not changes:
            raise BadRequestError("No fields to update")

        async with self.locks.hold(application_id):
            application = self.applications.load(application_id)
            application.details = application.details.updated(changes)
            self.audit.record(
                action="APPLICATION_UPDATED",
                actor_id=caller.user_id,
                entity_type="application",
                entity_id=application.id,
                metadata={"fields": sorted(changes)},
            )
            self.applications.save(application)

        logger.info(
            f"Application {application_id} updated",
            extra={"application_id": str(application_id), "fields": sorted(changes)},
        )
        return application

    async def delete_application(self, application_id: UUID, caller: CallerIdentity) -> None:
        """Hard-delete an application regardless of status, then its blobs (best effort).

        Raises:
            ForbiddenError: Caller is not ADMIN
            NotFoundError: Application does not exist
        """
        ensure_role(caller, [UserRole.ADMIN])

        async with self.locks.hold(application_id):
            application = self.applications.load(application_id)
            keys = [attached.key for attached in application.attachments().values()]
            self.audit.record(
                action="APPLICATION_DELETED",
                actor_id=caller.user_id,
                entity_type="application",
                entity_id=application.id,
                metadata={"status": application.status.value, "documents": len(keys)},
            )
            self.applications.delete(application_id)

        if self.storage is not None and keys:
            await cleanup_blobs(self.storage, keys)

        logger.info(
            f"Application {application_id} deleted",
            extra={"application_id": str(application_id), "user_id": caller.user_id},
        )

    async def verify_document(
        self,
        application_id: UUID,
        document_kind: DocumentKind,
        caller: CallerIdentity,
    ) -> Application:
        """Mark a verification record as verified (idempotent, re-stamps the date).

        Raises:
            ForbiddenError: Caller is not MANAGER or ADMIN
            NotFoundError: Application does not exist
            BadRequestError: No verification record of that kind
        """
        ensure_role(caller, STAFF_ROLES)

        async with self.locks.hold(application_id):
            application = self.applications.load(application_id)
            record = application.mark_verified(document_kind)
            self.audit.record(
                action="DOCUMENT_VERIFIED",
                actor_id=caller.user_id,
                entity_type="application",
                entity_id=application.id,
                metadata={
                    "document_type": document_kind.value,
                    "verification_date": record.verification_date.isoformat(),
                },
            )
            self.applications.save(application)

        logger.info(
            f"Document {document_kind.value} verified on application {application_id}",
            extra={"application_id": str(application_id), "document_type": document_kind.value},
        )
        return application
