"""Document attachment lifecycle for applications and renewal requests.

Every attachment follows the same pipeline:

1. Validate size and content type (no I/O)
2. Check the target aggregate exists, is visible and accepts documents
3. Normalise the image (Pillow)
4. Upload under ``documents/{owner_id}/{document_type}-{epoch_millis}``
   with exponential backoff
5. Issue a signed read URL
6. Under the aggregate lock: reload, re-check, fill exactly one slot, save

If step 5 or 6 fails the uploaded blob is deleted before the error
propagates. A blob replaced by a re-upload is deleted once the new reference
has been saved.

Removal deletes the blob before clearing the slot. If the save that clears the
slot is rejected (another process saved first) the stored aggregate still
references the deleted key until the removal is repeated; deleting an absent
key succeeds, so the repeat clears the slot.

Uploads and deletes share the retry policy from settings: ``STORAGE_MAX_ATTEMPTS``
attempts with ``STORAGE_RETRY_BASE_DELAY * 2**attempt`` between them.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Iterable, Optional, TypeVar
from uuid import UUID

from ..auth.roles import CallerIdentity, ensure_can_mutate, ensure_can_read
from ..concurrency import AggregateLockRegistry, application_locks, renewal_locks
from ..config import Settings, get_settings
from ..domain.applications.models import Application, AttachedFile
from ..domain.applications.ports import NOT_FOUND_MESSAGE as APPLICATION_NOT_FOUND
from ..domain.applications.ports import ApplicationRepositoryPort
from ..domain.applications.status import DOCUMENT_MUTABLE_STATUSES
from ..domain.audit.port import AuditTrailPort
from ..domain.documents.document_type import DocumentType, ensure_renewal_type, slot_for
from ..domain.documents.ports.blob_storage_port import BlobStoragePort, UrlMode
from ..domain.documents.validation import validate_upload
from ..domain.errors import BadRequestError, ForbiddenError, NotFoundError, StorageError
from ..domain.renewals.models import RenewalRequest
from ..domain.renewals.ports import NOT_FOUND_MESSAGE as RENEWAL_NOT_FOUND
from ..domain.renewals.ports import RenewalRepositoryPort
from .image_processing import OUTPUT_CONTENT_TYPE, normalize_image

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def with_storage_retry(
    operation: str,
    key: str,
    call: Callable[[], Awaitable[T]],
    settings: Optional[Settings] = None,
) -> T:
    """Run one storage call with exponential backoff (``base * 2**attempt`` between attempts).

    Args:
        operation: Verb used in log lines and the final error, e.g. "upload"
        key: Blob key, for log context
        call: Zero-argument coroutine factory, invoked once per attempt

    Raises:
        StorageError: If every attempt failed
    """
    settings = settings or get_settings()
    max_attempts = max(1, settings.STORAGE_MAX_ATTEMPTS)
    base_delay = settings.STORAGE_RETRY_BASE_DELAY
    last_error = None

    for attempt in range(max_attempts):
        try:
            return await call()
        except StorageError as e:
            last_error = e
            logger.warning(
                f"Storage {operation} failed on attempt {attempt + 1}: {e.message}",
                extra={"key": key, "operation": operation, "attempt": attempt + 1, "error": e.message},
            )
            if attempt < max_attempts - 1:
                delay = base_delay * (2 ** attempt)
                logger.info(f"Retrying {operation} in {delay}s...")
                await asyncio.sleep(delay)

    logger.error(
        f"Storage {operation} failed after {max_attempts} attempts",
        extra={"key": key, "operation": operation, "final_error": last_error.message},
    )
    raise StorageError(f"{operation.capitalize()} failed after {max_attempts} attempts: {last_error.message}")


@dataclass(frozen=True)
class AttachmentResult:
    """Storage key and signed read URL of a freshly attached document."""
    key: str
    url: str


def build_document_key(owner_id: str, document_type: DocumentType, epoch_millis: Optional[int] = None) -> str:
    """Storage key for one upload. Keys are never de-duplicated."""
    if epoch_millis is None:
        epoch_millis = int(time.time() * 1000)
    return f"documents/{owner_id}/{document_type.value}-{epoch_millis}"


async def cleanup_blobs(storage: BlobStoragePort, keys: Iterable[str], settings: Optional[Settings] = None) -> None:
    """Delete blobs best-effort, each with the retry policy. Failures are logged and never raised."""
    for key in keys:
        try:
            await with_storage_retry("delete", key, lambda key=key: storage.delete(key), settings)
        except Exception as e:
            logger.warning(
                f"Failed to delete blob during cleanup: {key}",
                extra={"key": key, "error": str(e)},
            )


def ensure_documents_mutable(application: Application) -> None:
    if application.status not in DOCUMENT_MUTABLE_STATUSES:
        raise BadRequestError(
            f"Documents cannot be changed while the application is {application.status.value}"
        )


class DocumentAttachmentManager:
    """Uploads, associates, serves and removes documents.

    Args:
        applications: Application repository
        renewals: Renewal request repository
        storage: Blob store adapter
        audit: Audit trail, staged in the same transaction as the aggregate save
        settings: Upload limits, image parameters, URL lifetimes and retry policy
    """

    def __init__(
        self,
        applications: ApplicationRepositoryPort,
        renewals: RenewalRepositoryPort,
        storage: BlobStoragePort,
        audit: AuditTrailPort,
        settings: Optional[Settings] = None,
        application_lock_registry: AggregateLockRegistry = application_locks,
        renewal_lock_registry: AggregateLockRegistry = renewal_locks,
    ):
        self.applications = applications
        self.renewals = renewals
        self.storage = storage
        self.audit = audit
        self.settings = settings or get_settings()
        self.application_locks = application_lock_registry
        self.renewal_locks = renewal_lock_registry

    # -- applications ---------------------------------------------------

    async def attach_document(
        self,
        application_id: UUID,
        document_type: DocumentType,
        data: bytes,
        content_type: Optional[str],
        caller: CallerIdentity,
    ) -> AttachmentResult:
        """Attach one document to its application slot.

        Raises:
            InputValidationError: Empty, oversized, wrong type, or no application slot
            NotFoundError: Application absent or not visible to the caller
            ForbiddenError: Staff caller without elevation on another user's application
            BadRequestError: Application status no longer accepts documents
            ProcessingError: Image could not be normalised
            StorageError: Upload failed after all attempts
            ConcurrencyConflictError: Another process saved the application first
        """
        slot_for(document_type)
        self._validate(data, content_type)

        application = self.applications.load(application_id)
        ensure_can_mutate(caller, application.submitted_by, APPLICATION_NOT_FOUND)
        ensure_documents_mutable(application)

        processed = self._process(data)
        key = build_document_key(application.submitted_by, document_type)
        await self._upload(key, processed)

        try:
            url = await self.storage.signed_url(
                key, UrlMode.READ, self.settings.APPLICATION_DOCUMENT_URL_TTL_SECONDS
            )
            async with self.application_locks.hold(application_id):
                application = self.applications.load(application_id)
                ensure_can_mutate(caller, application.submitted_by, APPLICATION_NOT_FOUND)
                ensure_documents_mutable(application)

                replaced = application.attach(document_type, AttachedFile(key=key, url=url))
                self.audit.record(
                    action="DOCUMENT_ATTACHED",
                    actor_id=caller.user_id,
                    entity_type="application",
                    entity_id=application.id,
                    metadata={"document_type": document_type.value, "key": key},
                )
                self.applications.save(application)
        except Exception:
            logger.warning(
                f"Association failed, removing uploaded blob {key}",
                extra={"application_id": str(application_id), "key": key},
            )
            await cleanup_blobs(self.storage, [key], self.settings)
            raise

        if replaced is not None and replaced.key != key:
            await cleanup_blobs(self.storage, [replaced.key], self.settings)

        logger.info(
            f"Attached {document_type.value} to application {application_id}",
            extra={"application_id": str(application_id), "document_type": document_type.value, "key": key},
        )
        return AttachmentResult(key=key, url=url)

    async def get_document_url(
        self,
        application_id: UUID,
        document_type: DocumentType,
        caller: CallerIdentity,
    ) -> str:
        """Issue a fresh signed URL for one attached document."""
        slot_for(document_type)
        application = self.applications.load(application_id)
        ensure_can_read(caller, application.submitted_by, APPLICATION_NOT_FOUND)

        attached = application.get_attachment(document_type)
        if attached is None:
            raise NotFoundError(f"No {document_type.value} document attached")
        return await self.storage.signed_url(
            attached.key, UrlMode.READ, self.settings.APPLICATION_DOCUMENT_URL_TTL_SECONDS
        )

    async def list_document_urls(self, application_id: UUID, caller: CallerIdentity) -> Dict[str, str]:
        """Fresh signed URLs for every filled slot, keyed by document type."""
        application = self.applications.load(application_id)
        ensure_can_read(caller, application.submitted_by, APPLICATION_NOT_FOUND)

        urls = {}
        for document_type, attached in application.attachments().items():
            urls[document_type.value] = await self.storage.signed_url(
                attached.key, UrlMode.READ, self.settings.APPLICATION_DOCUMENT_URL_TTL_SECONDS
            )
        return urls

    async def remove_document(
        self,
        application_id: UUID,
        document_type: DocumentType,
        caller: CallerIdentity,
    ) -> Application:
        """Delete the blob (with retries), then clear the slot."""
        slot_for(document_type)
        async with self.application_locks.hold(application_id):
            application = self.applications.load(application_id)
            ensure_can_mutate(caller, application.submitted_by, APPLICATION_NOT_FOUND)
            ensure_documents_mutable(application)

            attached = application.get_attachment(document_type)
            if attached is None:
                raise NotFoundError(f"No {document_type.value} document attached")

            await self._delete(attached.key)
            application.detach(document_type)
            self.audit.record(
                action="DOCUMENT_REMOVED",
                actor_id=caller.user_id,
                entity_type="application",
                entity_id=application.id,
                metadata={"document_type": document_type.value, "key": attached.key},
            )
            self.applications.save(application)

        logger.info(
            f"Removed {document_type.value} from application {application_id}",
            extra={"application_id": str(application_id), "document_type": document_type.value},
        )
        return application

    # -- renewal requests -----------------------------------------------

    async def attach_renewal_document(
        self,
        renewal_id: UUID,
        document_type: DocumentType,
        data: bytes,
        content_type: Optional[str],
        caller: CallerIdentity,
    ) -> AttachmentResult:
        """Attach one document to a pending renewal request.

        The ``documents`` mapping is merged per key; other documents stay.
        """
        ensure_renewal_type(document_type)
        self._validate(data, content_type)

        renewal = self.renewals.load(renewal_id)
        _ensure_renewal_owner(caller, renewal)
        renewal.ensure_pending("upload documents to")

        processed = self._process(data)
        key = build_document_key(renewal.user_id, document_type)
        await self._upload(key, processed)

        try:
            url = await self.storage.signed_url(
                key, UrlMode.READ, self.settings.RENEWAL_DOCUMENT_URL_TTL_SECONDS
            )
            async with self.renewal_locks.hold(renewal_id):
                renewal = self.renewals.load(renewal_id)
                _ensure_renewal_owner(caller, renewal)

                replaced = renewal.set_document(document_type, key)
                self.audit.record(
                    action="DOCUMENT_ATTACHED",
                    actor_id=caller.user_id,
                    entity_type="renewal_request",
                    entity_id=renewal.id,
                    metadata={"document_type": document_type.value, "key": key},
                )
                self.renewals.save(renewal)
        except Exception:
            logger.warning(
                f"Association failed, removing uploaded blob {key}",
                extra={"renewal_id": str(renewal_id), "key": key},
            )
            await cleanup_blobs(self.storage, [key], self.settings)
            raise

        if replaced is not None and replaced != key:
            await cleanup_blobs(self.storage, [replaced], self.settings)

        logger.info(
            f"Attached {document_type.value} to renewal request {renewal_id}",
            extra={"renewal_id": str(renewal_id), "document_type": document_type.value, "key": key},
        )
        return AttachmentResult(key=key, url=url)

    async def get_renewal_document_url(
        self,
        renewal_id: UUID,
        document_type: DocumentType,
        caller: CallerIdentity,
    ) -> str:
        renewal = self.renewals.load(renewal_id)
        ensure_can_read(caller, renewal.user_id, RENEWAL_NOT_FOUND)

        key = renewal.document_key(document_type)
        if key is None:
            raise NotFoundError(f"No {document_type.value} document attached")
        return await self.storage.signed_url(
            key, UrlMode.READ, self.settings.RENEWAL_DOCUMENT_URL_TTL_SECONDS
        )

    async def list_renewal_document_urls(self, renewal_id: UUID, caller: CallerIdentity) -> Dict[str, str]:
        renewal = self.renewals.load(renewal_id)
        ensure_can_read(caller, renewal.user_id, RENEWAL_NOT_FOUND)

        urls = {}
        for document_type, key in renewal.documents.items():
            urls[document_type] = await self.storage.signed_url(
                key, UrlMode.READ, self.settings.RENEWAL_DOCUMENT_URL_TTL_SECONDS
            )
        return urls

    async def remove_renewal_document(
        self,
        renewal_id: UUID,
        document_type: DocumentType,
        caller: CallerIdentity,
    ) -> RenewalRequest:
        async with self.renewal_locks.hold(renewal_id):
            renewal = self.renewals.load(renewal_id)
            _ensure_renewal_owner(caller, renewal)
            renewal.ensure_pending("delete documents from")

            key = renewal.document_key(document_type)
            if key is None:
                raise NotFoundError(f"No {document_type.value} document attached")

            await self._delete(key)
            renewal.remove_document(document_type)
            self.audit.record(
                action="DOCUMENT_REMOVED",
                actor_id=caller.user_id,
                entity_type="renewal_request",
                entity_id=renewal.id,
                metadata={"document_type": document_type.value, "key": key},
            )
            self.renewals.save(renewal)

        logger.info(
            f"Removed {document_type.value} from renewal request {renewal_id}",
            extra={"renewal_id": str(renewal_id), "document_type": document_type.value},
        )
        return renewal

    # -- pipeline steps -------------------------------------------------

    def _validate(self, data: bytes, content_type: Optional[str]) -> None:
        validate_upload(
            data,
            content_type,
            max_size=self.settings.MAX_FILE_SIZE,
            allowed_types=self.settings.allowed_file_types,
        )

    def _process(self, data: bytes) -> bytes:
        return normalize_image(
            data,
            max_dimension=self.settings.IMAGE_MAX_DIMENSION,
            quality=self.settings.IMAGE_JPEG_QUALITY,
        )

    async def _upload(self, key: str, data: bytes) -> str:
        return await with_storage_retry(
            "upload", key, lambda: self.storage.put(key, data, OUTPUT_CONTENT_TYPE), self.settings
        )

    async def _delete(self, key: str) -> None:
        await with_storage_retry("delete", key, lambda: self.storage.delete(key), self.settings)


def _ensure_renewal_owner(caller: CallerIdentity, renewal: RenewalRequest) -> None:
    if caller.user_id == renewal.user_id:
        return
    ensure_can_read(caller, renewal.user_id, RENEWAL_NOT_FOUND)
    raise ForbiddenError("Only the requester can modify renewal documents")
