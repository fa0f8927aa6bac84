"""Unit tests for DocumentAttachmentManager (applications)

Covers the upload pipeline: validation before any I/O, image normalisation,
retry, per-slot association, replacement cleanup and cleanup on failure.
"""

import io
from uuid import uuid4

import pytest
from PIL import Image

from conftest import make_image_bytes
from passportflow.documents import attachment_manager as attachment_manager_module
from passportflow.documents.attachment_manager import build_document_key
from passportflow.domain.applications.status import ApplicationStatus
from passportflow.domain.documents.document_type import DocumentType
from passportflow.domain.errors import (
    BadRequestError,
    ConcurrencyConflictError,
    ForbiddenError,
    InputValidationError,
    NotFoundError,
    ProcessingError,
    StorageError,
)
from passportflow.models import AuditLog


class TestValidationBeforeIO:

    @pytest.mark.asyncio
    async def test_oversized_file_rejected_without_storage_calls(
        self, attachment_manager, storage, submitted_application, applicant
    ):
        data = b"\xff" * (5 * 1024 * 1024 + 1)
        with pytest.raises(InputValidationError):
            await attachment_manager.attach_document(
                submitted_application.id, DocumentType.NIC_FRONT, data, "image/jpeg", applicant
            )
        assert storage.put_calls == []

    @pytest.mark.asyncio
    async def test_disallowed_content_type(self, attachment_manager, storage, submitted_application, applicant):
        with pytest.raises(InputValidationError, match="Invalid file type"):
            await attachment_manager.attach_document(
                submitted_application.id, DocumentType.NIC_FRONT, b"%PDF-1.4", "application/pdf", applicant
            )
        assert storage.put_calls == []

    @pytest.mark.asyncio
    async def test_empty_file(self, attachment_manager, storage, submitted_application, applicant):
        with pytest.raises(InputValidationError, match="empty"):
            await attachment_manager.attach_document(
                submitted_application.id, DocumentType.NIC_FRONT, b"", "image/png", applicant
            )
        assert storage.put_calls == []

    @pytest.mark.asyncio
    async def test_renewal_only_type_rejected(self, attachment_manager, storage, submitted_application, applicant, png_bytes):
        with pytest.raises(InputValidationError):
            await attachment_manager.attach_document(
                submitted_application.id, DocumentType.CURRENT_PASSPORT, png_bytes, "image/png", applicant
            )
        assert storage.put_calls == []

    @pytest.mark.asyncio
    async def test_undecodable_image_is_processing_error(
        self, attachment_manager, storage, submitted_application, applicant
    ):
        with pytest.raises(ProcessingError):
            await attachment_manager.attach_document(
                submitted_application.id, DocumentType.NIC_FRONT, b"not an image", "image/jpeg", applicant
            )
        assert storage.put_calls == []


class TestAttachDocument:

    @pytest.mark.asyncio
    async def test_attach_uploads_and_fills_slot(
        self, attachment_manager, storage, application_repository, submitted_application, applicant, png_bytes
    ):
        result = await attachment_manager.attach_document(
            submitted_application.id, DocumentType.NIC_FRONT, png_bytes, "image/png", applicant
        )

        assert result.key.startswith(f"documents/{applicant.user_id}/nic-front-")
        assert result.key in storage.blobs
        assert storage.content_types[result.key] == "image/jpeg"
        assert "expires=604800" in result.url

        stored = application_repository.load(submitted_application.id)
        assert stored.nic_photos.front.key == result.key
        assert stored.nic_photos.front.url == result.url
        assert stored.nic_photos.back is None

    @pytest.mark.asyncio
    async def test_image_is_shrunk_and_reencoded(
        self, attachment_manager, storage, submitted_application, applicant
    ):
        data = make_image_bytes(size=(3000, 1500), mode="RGBA")
        result = await attachment_manager.attach_document(
            submitted_application.id, DocumentType.USER_PHOTO, data, "image/png", applicant
        )

        with Image.open(io.BytesIO(storage.blobs[result.key])) as image:
            assert image.format == "JPEG"
            assert image.size == (1200, 600)

    @pytest.mark.asyncio
    async def test_small_image_not_enlarged(self, attachment_manager, storage, submitted_application, applicant):
        data = make_image_bytes(size=(300, 200), fmt="JPEG")
        result = await attachment_manager.attach_document(
            submitted_application.id, DocumentType.USER_PHOTO, data, "image/jpeg", applicant
        )

        with Image.open(io.BytesIO(storage.blobs[result.key])) as image:
            assert image.size == (300, 200)

    @pytest.mark.asyncio
    async def test_attach_front_then_back_keeps_both(
        self, attachment_manager, application_repository, submitted_application, applicant, png_bytes
    ):
        front = await attachment_manager.attach_document(
            submitted_application.id, DocumentType.NIC_FRONT, png_bytes, "image/png", applicant
        )
        back = await attachment_manager.attach_document(
            submitted_application.id, DocumentType.NIC_BACK, png_bytes, "image/png", applicant
        )

        stored = application_repository.load(submitted_application.id)
        assert stored.nic_photos.front.key == front.key
        assert stored.nic_photos.back.key == back.key

    @pytest.mark.asyncio
    async def test_reattach_replaces_slot_and_deletes_old_blob(
        self, attachment_manager, storage, application_repository, submitted_application, applicant, monkeypatch
    ):
        millis = iter([1700000000000, 1700000000001])
        monkeypatch.setattr(
            attachment_manager_module,
            "build_document_key",
            lambda owner_id, document_type: build_document_key(owner_id, document_type, next(millis)),
        )

        first = await attachment_manager.attach_document(
            submitted_application.id, DocumentType.BIRTH_CERT_FRONT,
            make_image_bytes(color=(255, 0, 0)), "image/png", applicant,
        )
        second = await attachment_manager.attach_document(
            submitted_application.id, DocumentType.BIRTH_CERT_FRONT,
            make_image_bytes(color=(0, 255, 0)), "image/png", applicant,
        )

        stored = application_repository.load(submitted_application.id)
        assert stored.birth_certificate_photos.front.key == second.key
        assert first.key != second.key
        assert first.key not in storage.blobs
        assert first.key in storage.delete_calls
        assert second.key in storage.blobs

    @pytest.mark.asyncio
    async def test_writes_audit_entry(self, attachment_manager, db_session, submitted_application, applicant, png_bytes):
        await attachment_manager.attach_document(
            submitted_application.id, DocumentType.USER_PHOTO, png_bytes, "image/png", applicant
        )
        entry = db_session.query(AuditLog).filter(AuditLog.action == "DOCUMENT_ATTACHED").one()
        assert entry.metadata_json["document_type"] == "user-photo"


class TestRetry:

    @pytest.mark.asyncio
    async def test_transient_failures_are_retried(
        self, attachment_manager, storage, submitted_application, applicant, png_bytes
    ):
        storage.fail_puts = 2
        result = await attachment_manager.attach_document(
            submitted_application.id, DocumentType.NIC_FRONT, png_bytes, "image/png", applicant
        )

        assert len(storage.put_calls) == 3
        assert result.key in storage.blobs

    @pytest.mark.asyncio
    async def test_exhausted_retries_raise_storage_error(
        self, attachment_manager, storage, application_repository, submitted_application, applicant, png_bytes
    ):
        storage.fail_puts = 3
        with pytest.raises(StorageError, match="after 3 attempts"):
            await attachment_manager.attach_document(
                submitted_application.id, DocumentType.NIC_FRONT, png_bytes, "image/png", applicant
            )

        assert len(storage.put_calls) == 3
        assert application_repository.load(submitted_application.id).nic_photos.front is None

    @pytest.mark.asyncio
    async def test_transient_delete_failure_is_retried_on_remove(
        self, attachment_manager, storage, application_repository, submitted_application, applicant, png_bytes
    ):
        result = await attachment_manager.attach_document(
            submitted_application.id, DocumentType.NIC_FRONT, png_bytes, "image/png", applicant
        )
        storage.fail_deletes = 1

        await attachment_manager.remove_document(submitted_application.id, DocumentType.NIC_FRONT, applicant)

        assert storage.delete_calls == [result.key, result.key]
        assert result.key not in storage.blobs
        assert application_repository.load(submitted_application.id).nic_photos.front is None

    @pytest.mark.asyncio
    async def test_exhausted_delete_retries_keep_slot(
        self, attachment_manager, storage, application_repository, submitted_application, applicant, png_bytes
    ):
        result = await attachment_manager.attach_document(
            submitted_application.id, DocumentType.NIC_FRONT, png_bytes, "image/png", applicant
        )
        storage.fail_deletes = 3

        with pytest.raises(StorageError, match="Delete failed after 3 attempts"):
            await attachment_manager.remove_document(submitted_application.id, DocumentType.NIC_FRONT, applicant)

        assert len(storage.delete_calls) == 3
        assert application_repository.load(submitted_application.id).nic_photos.front.key == result.key

    @pytest.mark.asyncio
    async def test_transient_cleanup_failure_is_retried(
        self, attachment_manager, storage, submitted_application, applicant, png_bytes
    ):
        storage.fail_signing = True
        storage.fail_deletes = 1
        with pytest.raises(StorageError, match="signing"):
            await attachment_manager.attach_document(
                submitted_application.id, DocumentType.NIC_FRONT, png_bytes, "image/png", applicant
            )

        assert len(storage.delete_calls) == 2
        assert storage.blobs == {}


class TestCleanupOnFailure:

    @pytest.mark.asyncio
    async def test_failed_signing_deletes_uploaded_blob(
        self, attachment_manager, storage, application_repository, submitted_application, applicant, png_bytes
    ):
        storage.fail_signing = True
        with pytest.raises(StorageError):
            await attachment_manager.attach_document(
                submitted_application.id, DocumentType.NIC_FRONT, png_bytes, "image/png", applicant
            )

        assert len(storage.put_calls) == 1
        assert storage.delete_calls == storage.put_calls
        assert storage.blobs == {}
        assert application_repository.load(submitted_application.id).nic_photos.front is None

    @pytest.mark.asyncio
    async def test_failed_association_deletes_uploaded_blob(
        self, attachment_manager, storage, application_repository, submitted_application, applicant, png_bytes
    ):
        def failing_save(application):
            raise StorageError("Simulated persistence failure")

        application_repository.save = failing_save
        with pytest.raises(StorageError, match="persistence"):
            await attachment_manager.attach_document(
                submitted_application.id, DocumentType.USER_PHOTO, png_bytes, "image/png", applicant
            )

        assert storage.blobs == {}
        assert storage.delete_calls == storage.put_calls

    @pytest.mark.asyncio
    async def test_cleanup_failure_does_not_mask_original_error(
        self, attachment_manager, storage, submitted_application, applicant, png_bytes
    ):
        storage.fail_signing = True
        storage.fail_deletes = 3
        with pytest.raises(StorageError, match="signing"):
            await attachment_manager.attach_document(
                submitted_application.id, DocumentType.NIC_FRONT, png_bytes, "image/png", applicant
            )
        assert storage.delete_calls == [storage.put_calls[0]] * 3


class TestOwnershipAndStatus:

    @pytest.mark.asyncio
    async def test_other_applicant_sees_not_found(
        self, attachment_manager, storage, submitted_application, other_applicant, png_bytes
    ):
        with pytest.raises(NotFoundError):
            await attachment_manager.attach_document(
                submitted_application.id, DocumentType.NIC_FRONT, png_bytes, "image/png", other_applicant
            )
        assert storage.put_calls == []

    @pytest.mark.asyncio
    async def test_staff_without_elevation_forbidden(
        self, attachment_manager, submitted_application, admin, png_bytes
    ):
        with pytest.raises(ForbiddenError):
            await attachment_manager.attach_document(
                submitted_application.id, DocumentType.NIC_FRONT, png_bytes, "image/png", admin
            )

    @pytest.mark.asyncio
    async def test_elevated_staff_may_attach_under_owner_key(
        self, attachment_manager, submitted_application, elevated_admin, applicant, png_bytes
    ):
        result = await attachment_manager.attach_document(
            submitted_application.id, DocumentType.NIC_FRONT, png_bytes, "image/png", elevated_admin
        )
        assert result.key.startswith(f"documents/{applicant.user_id}/")

    @pytest.mark.asyncio
    async def test_unknown_application(self, attachment_manager, applicant, png_bytes):
        with pytest.raises(NotFoundError):
            await attachment_manager.attach_document(
                uuid4(), DocumentType.NIC_FRONT, png_bytes, "image/png", applicant
            )

    @pytest.mark.asyncio
    async def test_no_changes_once_printing(
        self, attachment_manager, application_repository, submitted_application, applicant, png_bytes
    ):
        application = application_repository.load(submitted_application.id)
        application.status = ApplicationStatus.PRINTING
        application_repository.save(application)

        with pytest.raises(BadRequestError):
            await attachment_manager.attach_document(
                submitted_application.id, DocumentType.NIC_FRONT, png_bytes, "image/png", applicant
            )


class TestRetrieveAndRemove:

    @pytest.mark.asyncio
    async def test_get_url_for_attached_document(
        self, attachment_manager, submitted_application, applicant, manager, png_bytes
    ):
        result = await attachment_manager.attach_document(
            submitted_application.id, DocumentType.USER_PHOTO, png_bytes, "image/png", applicant
        )

        url = await attachment_manager.get_document_url(submitted_application.id, DocumentType.USER_PHOTO, manager)
        assert result.key in url

    @pytest.mark.asyncio
    async def test_get_url_for_empty_slot(self, attachment_manager, submitted_application, applicant):
        with pytest.raises(NotFoundError):
            await attachment_manager.get_document_url(submitted_application.id, DocumentType.NIC_BACK, applicant)

    @pytest.mark.asyncio
    async def test_list_urls(self, attachment_manager, submitted_application, applicant, png_bytes):
        await attachment_manager.attach_document(
            submitted_application.id, DocumentType.NIC_FRONT, png_bytes, "image/png", applicant
        )
        await attachment_manager.attach_document(
            submitted_application.id, DocumentType.USER_PHOTO, png_bytes, "image/png", applicant
        )

        urls = await attachment_manager.list_document_urls(submitted_application.id, applicant)
        assert set(urls) == {"nic-front", "user-photo"}

    @pytest.mark.asyncio
    async def test_remove_deletes_blob_and_clears_slot(
        self, attachment_manager, storage, application_repository, submitted_application, applicant, png_bytes
    ):
        result = await attachment_manager.attach_document(
            submitted_application.id, DocumentType.NIC_FRONT, png_bytes, "image/png", applicant
        )
        await attachment_manager.remove_document(submitted_application.id, DocumentType.NIC_FRONT, applicant)

        assert result.key not in storage.blobs
        assert application_repository.load(submitted_application.id).nic_photos.front is None

    @pytest.mark.asyncio
    async def test_removed_document_url_is_not_found(
        self, attachment_manager, submitted_application, applicant, png_bytes
    ):
        result = await attachment_manager.attach_document(
            submitted_application.id, DocumentType.USER_PHOTO, png_bytes, "image/png", applicant
        )
        url = await attachment_manager.get_document_url(submitted_application.id, DocumentType.USER_PHOTO, applicant)
        assert result.key in url

        await attachment_manager.remove_document(submitted_application.id, DocumentType.USER_PHOTO, applicant)

        with pytest.raises(NotFoundError):
            await attachment_manager.get_document_url(submitted_application.id, DocumentType.USER_PHOTO, applicant)

    @pytest.mark.asyncio
    async def test_removal_rejected_by_concurrent_save_can_be_repeated(
        self, attachment_manager, storage, application_repository, submitted_application, applicant, png_bytes,
        monkeypatch,
    ):
        result = await attachment_manager.attach_document(
            submitted_application.id, DocumentType.NIC_FRONT, png_bytes, "image/png", applicant
        )
        concurrent_copy = application_repository.load(submitted_application.id)
        original_save = application_repository.save

        def save_after_concurrent_writer(application):
            monkeypatch.setattr(application_repository, "save", original_save)
            original_save(concurrent_copy)
            return original_save(application)

        monkeypatch.setattr(application_repository, "save", save_after_concurrent_writer)
        with pytest.raises(ConcurrencyConflictError):
            await attachment_manager.remove_document(submitted_application.id, DocumentType.NIC_FRONT, applicant)

        assert result.key not in storage.blobs
        assert application_repository.load(submitted_application.id).nic_photos.front.key == result.key

        await attachment_manager.remove_document(submitted_application.id, DocumentType.NIC_FRONT, applicant)
        assert application_repository.load(submitted_application.id).nic_photos.front is None

    @pytest.mark.asyncio
    async def test_remove_empty_slot(self, attachment_manager, submitted_application, applicant):
        with pytest.raises(NotFoundError):
            await attachment_manager.remove_document(submitted_application.id, DocumentType.NIC_FRONT, applicant)


def test_document_key_format():
    key = build_document_key("user-9", DocumentType.BIRTH_CERT_BACK, epoch_millis=1700000000000)
    assert key == "documents/user-9/birth-certificate-back-1700000000000"
