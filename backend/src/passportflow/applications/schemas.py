"""Pydantic schemas for the Applications API.

Structure and enumerated values are validated here; business rules (roles,
transitions, ownership) are enforced by the core.
"""

from datetime import date, datetime
from typing import Dict, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from ..domain.applications.models import Application
from ..domain.applications.status import ApplicationStatus, get_allowed_transitions
from ..domain.documents.document_type import DocumentKind


TypeOfService = Literal["normal", "oneDay"]
TravelDocumentType = Literal["all", "middleEast", "emergencyCertificate", "identityCertificate"]
Sex = Literal["male", "female"]
CollectionLocation = Literal["Colombo", "Kandy", "Matara", "Vavuniya", "Regional Office"]


# ============================================================================
# Request Schemas
# ============================================================================

class DocumentVerificationInput(BaseModel):
    """Verification record supplied at submission"""
    document_type: DocumentKind
    verified: bool = False
    verification_date: Optional[datetime] = None


class ApplicationCreate(BaseModel):
    """Schema for submitting an application (POST /applications)"""
    type_of_service: TypeOfService
    travel_document_type: TravelDocumentType
    present_travel_document: Optional[str] = None
    nmrp_number: Optional[str] = None
    national_identity_card_number: str = Field(..., min_length=1, max_length=20)
    surname: str = Field(..., min_length=1)
    other_names: str = Field(..., min_length=1)
    permanent_address: str = Field(..., min_length=1)
    permanent_address_district: str = Field(..., min_length=1)
    birthdate: str = Field(..., min_length=1)
    birth_certificate_number: str = Field(..., min_length=1)
    birth_certificate_district: str = Field(..., min_length=1)
    place_of_birth: str = Field(..., min_length=1)
    sex: Sex
    profession: str = Field(..., min_length=1)
    is_dual_citizen: bool = False
    dual_citizenship_number: Optional[str] = None
    mobile_number: str = Field(..., min_length=1)
    email_address: EmailStr
    foreign_nationality: Optional[str] = None
    foreign_passport_number: Optional[str] = None
    is_child: bool = False
    child_father_passport_number: Optional[str] = None
    child_mother_passport_number: Optional[str] = None
    collection_location: Optional[CollectionLocation] = None
    biometric_appointment_date: Optional[date] = None
    biometric_appointment_time: Optional[str] = None
    counter_number: Optional[str] = None
    payment_amount: Optional[float] = Field(None, ge=0)
    payment_reference: Optional[str] = None
    studio_photo_url: Optional[str] = None
    document_verification: Optional[List[DocumentVerificationInput]] = None

    model_config = ConfigDict(extra='forbid')


class ApplicationUpdate(BaseModel):
    """Schema for updating applicant details (PATCH /applications/{id})

    Status, history, verification and attachments are not accepted here.
    """
    type_of_service: Optional[TypeOfService] = None
    travel_document_type: Optional[TravelDocumentType] = None
    present_travel_document: Optional[str] = None
    nmrp_number: Optional[str] = None
    national_identity_card_number: Optional[str] = Field(None, min_length=1, max_length=20)
    surname: Optional[str] = None
    other_names: Optional[str] = None
    permanent_address: Optional[str] = None
    permanent_address_district: Optional[str] = None
    birthdate: Optional[str] = None
    birth_certificate_number: Optional[str] = None
    birth_certificate_district: Optional[str] = None
    place_of_birth: Optional[str] = None
    sex: Optional[Sex] = None
    profession: Optional[str] = None
    is_dual_citizen: Optional[bool] = None
    dual_citizenship_number: Optional[str] = None
    mobile_number: Optional[str] = None
    email_address: Optional[EmailStr] = None
    foreign_nationality: Optional[str] = None
    foreign_passport_number: Optional[str] = None
    is_child: Optional[bool] = None
    child_father_passport_number: Optional[str] = None
    child_mother_passport_number: Optional[str] = None
    collection_location: Optional[CollectionLocation] = None
    biometric_appointment_date: Optional[date] = None
    biometric_appointment_time: Optional[str] = None
    counter_number: Optional[str] = None
    payment_amount: Optional[float] = Field(None, ge=0)
    payment_reference: Optional[str] = None
    studio_photo_url: Optional[str] = None

    model_config = ConfigDict(extra='forbid')


class StatusUpdateRequest(BaseModel):
    """Schema for PATCH /applications/{id}/status"""
    status: ApplicationStatus
    comment: Optional[str] = Field(None, max_length=1000)


class VerifyDocumentRequest(BaseModel):
    """Schema for PATCH /applications/{id}/verify-document

    Accepts a verification kind (``nic``, ``birth_certificate``) or a document
    type of that kind (``nic-front``).
    """
    document_type: str = Field(..., min_length=1)


# ============================================================================
# Response Schemas
# ============================================================================

class StatusHistoryEntryResponse(BaseModel):
    status: ApplicationStatus
    timestamp: datetime
    comment: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class DocumentVerificationResponse(BaseModel):
    document_type: DocumentKind
    verified: bool
    verification_date: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AttachedFileResponse(BaseModel):
    key: str
    url: str

    model_config = ConfigDict(from_attributes=True)


class PhotoPairResponse(BaseModel):
    front: Optional[AttachedFileResponse] = None
    back: Optional[AttachedFileResponse] = None

    model_config = ConfigDict(from_attributes=True)


class ApplicationResponse(BaseModel):
    """Full application view"""
    id: UUID
    submitted_by: str
    status: ApplicationStatus
    allowed_transitions: List[ApplicationStatus] = Field(default_factory=list)
    details: Dict[str, object]
    status_history: List[StatusHistoryEntryResponse]
    document_verification: List[DocumentVerificationResponse]
    nic_photos: PhotoPairResponse
    birth_certificate_photos: PhotoPairResponse
    user_photo: Optional[AttachedFileResponse] = None
    version: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_aggregate(cls, application: Application) -> "ApplicationResponse":
        return cls(
            id=application.id,
            submitted_by=application.submitted_by,
            status=application.status,
            allowed_transitions=get_allowed_transitions(application.status),
            details={
                name: getattr(application.details, name)
                for name in application.details.field_names()
            },
            status_history=[
                StatusHistoryEntryResponse.model_validate(entry)
                for entry in application.status_history
            ],
            document_verification=[
                DocumentVerificationResponse.model_validate(record)
                for record in application.document_verification
            ],
            nic_photos=PhotoPairResponse.model_validate(application.nic_photos),
            birth_certificate_photos=PhotoPairResponse.model_validate(application.birth_certificate_photos),
            user_photo=(
                AttachedFileResponse.model_validate(application.user_photo)
                if application.user_photo else None
            ),
            version=application.version,
            created_at=application.created_at,
            updated_at=application.updated_at,
        )


class ApplicationListResponse(BaseModel):
    items: List[ApplicationResponse]
    total: int


class AttachmentResponse(BaseModel):
    """Result of POST /applications/{id}/documents/{type}"""
    document_type: str
    key: str
    url: str


class DocumentUrlResponse(BaseModel):
    document_type: str
    url: str


class DocumentUrlListResponse(BaseModel):
    documents: Dict[str, str]
