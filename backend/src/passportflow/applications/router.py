"""Applications API Router.

Thin HTTP layer over ``ApplicationService``, ``TransitionEngine`` and
``DocumentAttachmentManager``. Business errors propagate as
``PassportFlowError`` and are mapped to responses in ``passportflow.main``.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, File, Response, UploadFile, status

from ..auth.dependencies import CurrentCaller
from ..dependencies import get_application_service, get_attachment_manager, get_transition_engine
from ..documents.attachment_manager import DocumentAttachmentManager
from ..domain.applications.models import ApplicantDetails, DocumentVerification
from ..domain.documents.document_type import DocumentType
from .schemas import (
    ApplicationCreate,
    ApplicationListResponse,
    ApplicationResponse,
    ApplicationUpdate,
    AttachmentResponse,
    DocumentUrlListResponse,
    DocumentUrlResponse,
    StatusUpdateRequest,
    VerifyDocumentRequest,
)
from .service import ApplicationService, parse_verification_kind
from .transitions import TransitionEngine


router = APIRouter(prefix="/applications", tags=["Applications"])

Service = Annotated[ApplicationService, Depends(get_application_service)]
Engine = Annotated[TransitionEngine, Depends(get_transition_engine)]
Attachments = Annotated[DocumentAttachmentManager, Depends(get_attachment_manager)]


@router.post("", response_model=ApplicationResponse, status_code=status.HTTP_201_CREATED)
def create_application(payload: ApplicationCreate, caller: CurrentCaller, service: Service):
    """Submit a new application (APPLICANT or ADMIN). Starts in SUBMITTED."""
    verification = None
    if payload.document_verification is not None:
        verification = [
            DocumentVerification(
                document_type=item.document_type,
                verified=item.verified,
                verification_date=item.verification_date,
            )
            for item in payload.document_verification
        ]
    details = ApplicantDetails(**payload.model_dump(exclude={"document_verification"}))
    application = service.create_application(details, caller, verification=verification)
    return ApplicationResponse.from_aggregate(application)


@router.get("", response_model=ApplicationListResponse)
def list_applications(caller: CurrentCaller, service: Service):
    """List all applications, newest first (MANAGER or ADMIN)."""
    applications = service.list_applications(caller)
    return ApplicationListResponse(
        items=[ApplicationResponse.from_aggregate(a) for a in applications],
        total=len(applications),
    )


@router.get("/my", response_model=ApplicationListResponse)
def list_my_applications(caller: CurrentCaller, service: Service):
    applications = service.list_my_applications(caller)
    return ApplicationListResponse(
        items=[ApplicationResponse.from_aggregate(a) for a in applications],
        total=len(applications),
    )


@router.get("/{application_id}", response_model=ApplicationResponse)
def get_application(application_id: UUID, caller: CurrentCaller, service: Service):
    return ApplicationResponse.from_aggregate(service.get_application(application_id, caller))


@router.patch("/{application_id}", response_model=ApplicationResponse)
async def update_application(
    application_id: UUID,
    payload: ApplicationUpdate,
    caller: CurrentCaller,
    service: Service,
):
    """Update applicant details (MANAGER or ADMIN). Only fields present in the body change."""
    changes = payload.model_dump(exclude_unset=True)
    application = await service.update_application(application_id, changes, caller)
    return ApplicationResponse.from_aggregate(application)


@router.delete("/{application_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_application(application_id: UUID, caller: CurrentCaller, service: Service):
    """Hard-delete an application and its documents (ADMIN only)."""
    await service.delete_application(application_id, caller)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/{application_id}/status", response_model=ApplicationResponse)
async def update_status(
    application_id: UUID,
    payload: StatusUpdateRequest,
    caller: CurrentCaller,
    engine: Engine,
):
    """Apply a status transition (MANAGER or ADMIN).

    Returns 409 with ``current_status``/``requested_status`` when the
    transition table does not allow the move.
    """
    application = await engine.apply_transition(
        application_id, payload.status, caller, comment=payload.comment
    )
    return ApplicationResponse.from_aggregate(application)


@router.patch("/{application_id}/verify-document", response_model=ApplicationResponse)
async def verify_document(
    application_id: UUID,
    payload: VerifyDocumentRequest,
    caller: CurrentCaller,
    service: Service,
):
    kind = parse_verification_kind(payload.document_type)
    application = await service.verify_document(application_id, kind, caller)
    return ApplicationResponse.from_aggregate(application)


# =============================================================================
# Documents
# =============================================================================

@router.post(
    "/{application_id}/documents/{document_type}",
    response_model=AttachmentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_document(
    application_id: UUID,
    document_type: str,
    file: Annotated[UploadFile, File(...)],
    caller: CurrentCaller,
    attachments: Attachments,
):
    """Upload one document photo (JPEG/PNG, max 5MB) into its slot.

    Re-uploading a slot replaces only that slot.
    """
    parsed_type = DocumentType.parse(document_type)
    data = await file.read()
    result = await attachments.attach_document(
        application_id, parsed_type, data, file.content_type, caller
    )
    return AttachmentResponse(document_type=parsed_type.value, key=result.key, url=result.url)


@router.get("/{application_id}/documents", response_model=DocumentUrlListResponse)
async def list_documents(application_id: UUID, caller: CurrentCaller, attachments: Attachments):
    urls = await attachments.list_document_urls(application_id, caller)
    return DocumentUrlListResponse(documents=urls)


@router.get("/{application_id}/documents/{document_type}", response_model=DocumentUrlResponse)
async def get_document(
    application_id: UUID,
    document_type: str,
    caller: CurrentCaller,
    attachments: Attachments,
):
    parsed_type = DocumentType.parse(document_type)
    url = await attachments.get_document_url(application_id, parsed_type, caller)
    return DocumentUrlResponse(document_type=parsed_type.value, url=url)


@router.delete("/{application_id}/documents/{document_type}", response_model=ApplicationResponse)
async def delete_document(
    application_id: UUID,
    document_type: str,
    caller: CurrentCaller,
    attachments: Attachments,
):
    parsed_type = DocumentType.parse(document_type)
    application = await attachments.remove_document(application_id, parsed_type, caller)
    return ApplicationResponse.from_aggregate(application)
