"""Renewals API Router."""

from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Query, UploadFile, status

from ..applications.schemas import AttachmentResponse, DocumentUrlListResponse, DocumentUrlResponse
from ..auth.dependencies import CurrentCaller
from ..dependencies import get_attachment_manager, get_renewal_service
from ..documents.attachment_manager import DocumentAttachmentManager
from ..domain.documents.document_type import DocumentType
from ..domain.renewals.models import RenewalDetails
from ..domain.renewals.status import RenewalStatus
from .schemas import (
    RenewalCreate,
    RenewalListResponse,
    RenewalResponse,
    RenewalReviewRequest,
    RenewalUpdate,
)
from .service import RenewalService

router = APIRouter(prefix="/renewals", tags=["Renewals"])

Service = Annotated[RenewalService, Depends(get_renewal_service)]
Attachments = Annotated[DocumentAttachmentManager, Depends(get_attachment_manager)]


@router.post("", response_model=RenewalResponse, status_code=status.HTTP_201_CREATED)
def create_renewal(payload: RenewalCreate, caller: CurrentCaller, service: Service):
    renewal = service.create_renewal(RenewalDetails(**payload.model_dump()), caller)
    return RenewalResponse.from_aggregate(renewal)


@router.get("", response_model=RenewalListResponse)
def list_renewals(
    caller: CurrentCaller,
    service: Service,
    status_filter: Optional[RenewalStatus] = Query(None, alias="status", description="Filter by status"),
):
    """List renewal requests, newest first (MANAGER or ADMIN)."""
    renewals = service.list_renewals(caller, status=status_filter)
    return RenewalListResponse(
        items=[RenewalResponse.from_aggregate(r) for r in renewals],
        total=len(renewals),
    )


@router.get("/my", response_model=RenewalListResponse)
def list_my_renewals(caller: CurrentCaller, service: Service):
    renewals = service.list_my_renewals(caller)
    return RenewalListResponse(
        items=[RenewalResponse.from_aggregate(r) for r in renewals],
        total=len(renewals),
    )


@router.get("/{renewal_id}", response_model=RenewalResponse)
def get_renewal(renewal_id: UUID, caller: CurrentCaller, service: Service):
    return RenewalResponse.from_aggregate(service.get_renewal(renewal_id, caller))


@router.patch("/{renewal_id}", response_model=RenewalResponse)
async def update_renewal(
    renewal_id: UUID,
    payload: RenewalUpdate,
    caller: CurrentCaller,
    service: Service,
):
    """Update a pending request (requester only)."""
    renewal = await service.update_renewal(renewal_id, payload.model_dump(exclude_unset=True), caller)
    return RenewalResponse.from_aggregate(renewal)


@router.patch("/{renewal_id}/review", response_model=RenewalResponse)
async def review_renewal(
    renewal_id: UUID,
    payload: RenewalReviewRequest,
    caller: CurrentCaller,
    service: Service,
):
    """Verify or reject a pending request (MANAGER or ADMIN)."""
    renewal = await service.review_renewal(
        renewal_id, payload.status, caller, remarks=payload.admin_remarks
    )
    return RenewalResponse.from_aggregate(renewal)


@router.post(
    "/{renewal_id}/documents/{document_type}",
    response_model=AttachmentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_renewal_document(
    renewal_id: UUID,
    document_type: str,
    file: Annotated[UploadFile, File(...)],
    caller: CurrentCaller,
    attachments: Attachments,
):
    parsed_type = DocumentType.parse(document_type)
    data = await file.read()
    result = await attachments.attach_renewal_document(
        renewal_id, parsed_type, data, file.content_type, caller
    )
    return AttachmentResponse(document_type=parsed_type.value, key=result.key, url=result.url)


@router.get("/{renewal_id}/documents", response_model=DocumentUrlListResponse)
async def list_renewal_documents(renewal_id: UUID, caller: CurrentCaller, attachments: Attachments):
    urls = await attachments.list_renewal_document_urls(renewal_id, caller)
    return DocumentUrlListResponse(documents=urls)


@router.get("/{renewal_id}/documents/{document_type}", response_model=DocumentUrlResponse)
async def get_renewal_document(
    renewal_id: UUID,
    document_type: str,
    caller: CurrentCaller,
    attachments: Attachments,
):
    parsed_type = DocumentType.parse(document_type)
    url = await attachments.get_renewal_document_url(renewal_id, parsed_type, caller)
    return DocumentUrlResponse(document_type=parsed_type.value, url=url)


@router.delete("/{renewal_id}/documents/{document_type}", response_model=RenewalResponse)
async def delete_renewal_document(
    renewal_id: UUID,
    document_type: str,
    caller: CurrentCaller,
    attachments: Attachments,
):
    parsed_type = DocumentType.parse(document_type)
    renewal = await attachments.remove_renewal_document(renewal_id, parsed_type, caller)
    return RenewalResponse.from_aggregate(renewal)
