"""Application aggregate.

In-memory representation of one passport application: applicant details,
current status, append-only status history, document verification records
and attached-document slots. Persistence adapters map it to and from rows.
"""

from dataclasses import dataclass, field, fields, replace
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from ..documents.document_type import (
    VERIFIABLE_KINDS,
    DocumentKind,
    DocumentType,
    Side,
    SlotGroup,
    slot_for,
)
from ..errors import BadRequestError
from .status import ApplicationStatus, validate_transition


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ApplicantDetails:
    """Identity and contact fields captured at submission."""
    type_of_service: str
    travel_document_type: str
    national_identity_card_number: str
    surname: str
    other_names: str
    permanent_address: str
    permanent_address_district: str
    birthdate: str
    birth_certificate_number: str
    birth_certificate_district: str
    place_of_birth: str
    sex: str
    profession: str
    mobile_number: str
    email_address: str
    is_dual_citizen: bool = False
    dual_citizenship_number: Optional[str] = None
    present_travel_document: Optional[str] = None
    nmrp_number: Optional[str] = None
    foreign_nationality: Optional[str] = None
    foreign_passport_number: Optional[str] = None
    is_child: bool = False
    child_father_passport_number: Optional[str] = None
    child_mother_passport_number: Optional[str] = None
    collection_location: Optional[str] = None
    biometric_appointment_date: Optional[date] = None
    biometric_appointment_time: Optional[str] = None
    counter_number: Optional[str] = None
    payment_amount: Optional[float] = None
    payment_reference: Optional[str] = None
    studio_photo_url: Optional[str] = None

    @classmethod
    def field_names(cls) -> List[str]:
        return [f.name for f in fields(cls)]

    def updated(self, changes: Dict[str, Any]) -> "ApplicantDetails":
        unknown = set(changes) - set(self.field_names())
        if unknown:
            raise BadRequestError(f"Fields cannot be updated: {sorted(unknown)}")
        return replace(self, **changes)


@dataclass(frozen=True)
class StatusHistoryEntry:
    status: ApplicationStatus
    timestamp: datetime
    comment: Optional[str] = None


@dataclass
class DocumentVerification:
    document_type: DocumentKind
    verified: bool = False
    verification_date: Optional[datetime] = None


@dataclass(frozen=True)
class AttachedFile:
    """Storage key and retrieval URL of one uploaded blob."""
    key: str
    url: str


@dataclass
class PhotoPair:
    """Front/back attachment pair (NIC, birth certificate)."""
    front: Optional[AttachedFile] = None
    back: Optional[AttachedFile] = None

    def get(self, side: Side) -> Optional[AttachedFile]:
        return self.front if side is Side.FRONT else self.back

    def put(self, side: Side, attached: Optional[AttachedFile]) -> Optional[AttachedFile]:
        """Set one side, leaving the other untouched. Returns the replaced file."""
        previous = self.get(side)
        if side is Side.FRONT:
            self.front = attached
        else:
            self.back = attached
        return previous


@dataclass
class Application:
    """Aggregate root for a passport application.

    ``status`` and ``status_history`` are only changed through
    ``apply_status_change``; attachment slots only through
    ``attach``/``detach``.
    """
    details: ApplicantDetails
    submitted_by: str
    id: UUID = field(default_factory=uuid4)
    status: ApplicationStatus = ApplicationStatus.SUBMITTED
    status_history: List[StatusHistoryEntry] = field(default_factory=list)
    document_verification: List[DocumentVerification] = field(default_factory=list)
    nic_photos: PhotoPair = field(default_factory=PhotoPair)
    birth_certificate_photos: PhotoPair = field(default_factory=PhotoPair)
    user_photo: Optional[AttachedFile] = None
    version: int = 0
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @classmethod
    def submit(
        cls,
        details: ApplicantDetails,
        submitted_by: str,
        now: Optional[datetime] = None,
        verification: Optional[List[DocumentVerification]] = None,
    ) -> "Application":
        """Create a new application in SUBMITTED with a seeded history entry.

        Verification records are seeded for every verifiable kind; records
        supplied by the submitter override the defaults for their kind.
        """
        now = now or utcnow()
        supplied = {record.document_type: record for record in verification or []}
        records = [
            supplied.get(kind, DocumentVerification(document_type=kind))
            for kind in VERIFIABLE_KINDS
        ]
        records.extend(r for kind, r in supplied.items() if kind not in VERIFIABLE_KINDS)

        return cls(
            details=details,
            submitted_by=submitted_by,
            status=ApplicationStatus.SUBMITTED,
            status_history=[
                StatusHistoryEntry(
                    status=ApplicationStatus.SUBMITTED,
                    timestamp=now,
                    comment="Application submitted",
                )
            ],
            document_verification=records,
            created_at=now,
            updated_at=now,
        )

    # -- status ---------------------------------------------------------

    def apply_status_change(
        self,
        new_status: ApplicationStatus,
        comment: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> StatusHistoryEntry:
        """Move to ``new_status`` and append exactly one history entry.

        Raises:
            InvalidTransitionError: If the transition table forbids the move
        """
        validate_transition(self.status, new_status)
        now = now or utcnow()
        entry = StatusHistoryEntry(status=new_status, timestamp=now, comment=comment)
        self.status = new_status
        self.status_history.append(entry)
        self.updated_at = now
        return entry

    # -- verification ---------------------------------------------------

    def find_verification(self, kind: DocumentKind) -> Optional[DocumentVerification]:
        for record in self.document_verification:
            if record.document_type == kind:
                return record
        return None

    def mark_verified(self, kind: DocumentKind, now: Optional[datetime] = None) -> DocumentVerification:
        """Mark a seeded verification record as verified.

        Re-verifying an already verified record re-stamps the date.

        Raises:
            BadRequestError: If no record exists for ``kind``
        """
        record = self.find_verification(kind)
        if record is None:
            raise BadRequestError("Document type not found")
        now = now or utcnow()
        record.verified = True
        record.verification_date = now
        self.updated_at = now
        return record

    # -- attachments ----------------------------------------------------

    def get_attachment(self, document_type: DocumentType) -> Optional[AttachedFile]:
        slot = slot_for(document_type)
        if slot.group is SlotGroup.NIC_PHOTOS:
            return self.nic_photos.get(slot.side)
        if slot.group is SlotGroup.BIRTH_CERTIFICATE_PHOTOS:
            return self.birth_certificate_photos.get(slot.side)
        return self.user_photo

    def attach(self, document_type: DocumentType, attached: AttachedFile) -> Optional[AttachedFile]:
        """Fill one slot, leaving sibling slots untouched. Returns the replaced file."""
        return self._set_slot(document_type, attached)

    def detach(self, document_type: DocumentType) -> Optional[AttachedFile]:
        """Clear one slot. Returns the removed file."""
        return self._set_slot(document_type, None)

    def attachments(self) -> Dict[DocumentType, AttachedFile]:
        found = {}
        for document_type in (
            DocumentType.NIC_FRONT,
            DocumentType.NIC_BACK,
            DocumentType.BIRTH_CERT_FRONT,
            DocumentType.BIRTH_CERT_BACK,
            DocumentType.USER_PHOTO,
        ):
            attached = self.get_attachment(document_type)
            if attached is not None:
                found[document_type] = attached
        return found

    def _set_slot(self, document_type: DocumentType, attached: Optional[AttachedFile]) -> Optional[AttachedFile]:
        slot = slot_for(document_type)
        if slot.group is SlotGroup.NIC_PHOTOS:
            previous = self.nic_photos.put(slot.side, attached)
        elif slot.group is SlotGroup.BIRTH_CERTIFICATE_PHOTOS:
            previous = self.birth_certificate_photos.put(slot.side, attached)
        else:
            previous, self.user_photo = self.user_photo, attached
        self.updated_at = utcnow()
        return previous
