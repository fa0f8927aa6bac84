"""Unit tests for RenewalService and renewal document handling"""

from uuid import uuid4

import pytest

from passportflow.domain.documents.document_type import DocumentType
from passportflow.domain.errors import (
    BadRequestError,
    ForbiddenError,
    InputValidationError,
    InvalidTransitionError,
    NotFoundError,
)
from passportflow.domain.renewals.status import RenewalStatus


class TestRenewalLifecycle:

    def test_created_pending(self, renewal_repository, pending_renewal, applicant):
        stored = renewal_repository.load(pending_renewal.id)
        assert stored.status == RenewalStatus.PENDING
        assert stored.user_id == applicant.user_id
        assert stored.documents == {}

    @pytest.mark.asyncio
    async def test_owner_updates_while_pending(self, renewal_service, renewal_repository, pending_renewal, applicant):
        await renewal_service.update_renewal(pending_renewal.id, {"address": "7 Hill Street, Galle"}, applicant)
        assert renewal_repository.load(pending_renewal.id).details.address == "7 Hill Street, Galle"

    @pytest.mark.asyncio
    async def test_other_applicant_cannot_see_request(self, renewal_service, pending_renewal, other_applicant):
        with pytest.raises(NotFoundError, match="Passport renewal request not found"):
            await renewal_service.update_renewal(pending_renewal.id, {"address": "x"}, other_applicant)

    @pytest.mark.asyncio
    async def test_staff_cannot_edit_requesters_fields(self, renewal_service, pending_renewal, admin):
        with pytest.raises(ForbiddenError):
            await renewal_service.update_renewal(pending_renewal.id, {"address": "x"}, admin)

    @pytest.mark.asyncio
    async def test_review_stamps_reviewer(self, renewal_service, renewal_repository, pending_renewal, manager):
        await renewal_service.review_renewal(
            pending_renewal.id, RenewalStatus.VERIFIED, manager, remarks="Documents in order"
        )

        stored = renewal_repository.load(pending_renewal.id)
        assert stored.status == RenewalStatus.VERIFIED
        assert stored.verified_by == manager.user_id
        assert stored.verified_at is not None
        assert stored.admin_remarks == "Documents in order"

    @pytest.mark.asyncio
    async def test_closed_request_cannot_be_reviewed_again(self, renewal_service, pending_renewal, manager):
        await renewal_service.review_renewal(pending_renewal.id, RenewalStatus.REJECTED, manager)
        with pytest.raises(InvalidTransitionError):
            await renewal_service.review_renewal(pending_renewal.id, RenewalStatus.VERIFIED, manager)

    @pytest.mark.asyncio
    async def test_applicant_cannot_review(self, renewal_service, pending_renewal, applicant):
        with pytest.raises(ForbiddenError):
            await renewal_service.review_renewal(pending_renewal.id, RenewalStatus.VERIFIED, applicant)

    @pytest.mark.asyncio
    async def test_closed_request_cannot_be_updated(self, renewal_service, pending_renewal, manager, applicant):
        await renewal_service.review_renewal(pending_renewal.id, RenewalStatus.REJECTED, manager)
        with pytest.raises(BadRequestError, match="non-pending"):
            await renewal_service.update_renewal(pending_renewal.id, {"address": "x"}, applicant)

    def test_list_filters_by_status(self, renewal_service, pending_renewal, manager):
        assert [r.id for r in renewal_service.list_renewals(manager, status=RenewalStatus.PENDING)] == [pending_renewal.id]
        assert renewal_service.list_renewals(manager, status=RenewalStatus.VERIFIED) == []

    def test_list_my(self, renewal_service, pending_renewal, applicant, other_applicant):
        assert [r.id for r in renewal_service.list_my_renewals(applicant)] == [pending_renewal.id]
        assert renewal_service.list_my_renewals(other_applicant) == []


class TestRenewalDocuments:

    @pytest.mark.asyncio
    async def test_documents_merge_per_type(
        self, attachment_manager, renewal_repository, pending_renewal, applicant, png_bytes
    ):
        passport = await attachment_manager.attach_renewal_document(
            pending_renewal.id, DocumentType.CURRENT_PASSPORT, png_bytes, "image/png", applicant
        )
        photo = await attachment_manager.attach_renewal_document(
            pending_renewal.id, DocumentType.PASSPORT_PHOTO, png_bytes, "image/png", applicant
        )

        stored = renewal_repository.load(pending_renewal.id)
        assert stored.documents == {
            "current-passport": passport.key,
            "passport-photo": photo.key,
        }

    @pytest.mark.asyncio
    async def test_signed_url_valid_for_one_hour(self, attachment_manager, pending_renewal, applicant, png_bytes):
        result = await attachment_manager.attach_renewal_document(
            pending_renewal.id, DocumentType.NIC_FRONT, png_bytes, "image/png", applicant
        )
        assert "expires=3600" in result.url

        url = await attachment_manager.get_renewal_document_url(pending_renewal.id, DocumentType.NIC_FRONT, applicant)
        assert "expires=3600" in url

    @pytest.mark.asyncio
    async def test_upload_rejected_once_closed(
        self, attachment_manager, renewal_service, storage, pending_renewal, applicant, manager, png_bytes
    ):
        await renewal_service.review_renewal(pending_renewal.id, RenewalStatus.VERIFIED, manager)

        with pytest.raises(BadRequestError, match="non-pending"):
            await attachment_manager.attach_renewal_document(
                pending_renewal.id, DocumentType.CURRENT_PASSPORT, png_bytes, "image/png", applicant
            )
        assert storage.put_calls == []

    @pytest.mark.asyncio
    async def test_application_only_type_rejected(self, attachment_manager, pending_renewal, applicant, png_bytes):
        with pytest.raises(InputValidationError):
            await attachment_manager.attach_renewal_document(
                pending_renewal.id, DocumentType.USER_PHOTO, png_bytes, "image/png", applicant
            )

    @pytest.mark.asyncio
    async def test_staff_cannot_upload_to_renewal(self, attachment_manager, pending_renewal, elevated_admin, png_bytes):
        with pytest.raises(ForbiddenError):
            await attachment_manager.attach_renewal_document(
                pending_renewal.id, DocumentType.CURRENT_PASSPORT, png_bytes, "image/png", elevated_admin
            )

    @pytest.mark.asyncio
    async def test_remove_document(
        self, attachment_manager, renewal_repository, storage, pending_renewal, applicant, png_bytes
    ):
        result = await attachment_manager.attach_renewal_document(
            pending_renewal.id, DocumentType.ADDITIONAL_DOCS, png_bytes, "image/png", applicant
        )
        await attachment_manager.remove_renewal_document(pending_renewal.id, DocumentType.ADDITIONAL_DOCS, applicant)

        assert result.key not in storage.blobs
        assert renewal_repository.load(pending_renewal.id).documents == {}

    @pytest.mark.asyncio
    async def test_remove_document_retries_transient_delete_failure(
        self, attachment_manager, renewal_repository, storage, pending_renewal, applicant, png_bytes
    ):
        result = await attachment_manager.attach_renewal_document(
            pending_renewal.id, DocumentType.ADDITIONAL_DOCS, png_bytes, "image/png", applicant
        )
        storage.fail_deletes = 2

        await attachment_manager.remove_renewal_document(pending_renewal.id, DocumentType.ADDITIONAL_DOCS, applicant)

        assert storage.delete_calls == [result.key] * 3
        assert renewal_repository.load(pending_renewal.id).documents == {}
        with pytest.raises(NotFoundError):
            await attachment_manager.get_renewal_document_url(
                pending_renewal.id, DocumentType.ADDITIONAL_DOCS, applicant
            )

    @pytest.mark.asyncio
    async def test_list_urls_visible_to_staff(self, attachment_manager, pending_renewal, applicant, manager, png_bytes):
        await attachment_manager.attach_renewal_document(
            pending_renewal.id, DocumentType.BIRTH_CERT, png_bytes, "image/png", applicant
        )
        urls = await attachment_manager.list_renewal_document_urls(pending_renewal.id, manager)
        assert list(urls) == ["birth-certificate"]

    @pytest.mark.asyncio
    async def test_unknown_renewal(self, attachment_manager, applicant, png_bytes):
        with pytest.raises(NotFoundError):
            await attachment_manager.attach_renewal_document(
                uuid4(), DocumentType.CURRENT_PASSPORT, png_bytes, "image/png", applicant
            )
