"""RenewalRequest aggregate.

A renewal request owns an open ``documents`` mapping of document-type value
to storage key. Documents and fields may only change while PENDING.
"""

from dataclasses import dataclass, field, fields, replace
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from ..documents.document_type import DocumentType, ensure_renewal_type
from ..errors import BadRequestError
from .status import RenewalStatus, validate_transition


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class RenewalDetails:
    full_name: str
    date_of_birth: date
    nic_number: str
    current_passport_number: str
    current_passport_expiry_date: date
    address: str
    contact_number: str
    email: str

    @classmethod
    def field_names(cls) -> List[str]:
        return [f.name for f in fields(cls)]

    def updated(self, changes: Dict[str, Any]) -> "RenewalDetails":
        unknown = set(changes) - set(self.field_names())
        if unknown:
            raise BadRequestError(f"Fields cannot be updated: {sorted(unknown)}")
        return replace(self, **changes)


@dataclass
class RenewalRequest:
    details: RenewalDetails
    user_id: str
    id: UUID = field(default_factory=uuid4)
    status: RenewalStatus = RenewalStatus.PENDING
    documents: Dict[str, str] = field(default_factory=dict)
    admin_remarks: Optional[str] = None
    verified_at: Optional[datetime] = None
    verified_by: Optional[str] = None
    version: int = 0
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def is_pending(self) -> bool:
        return self.status is RenewalStatus.PENDING

    def ensure_pending(self, action: str) -> None:
        if not self.is_pending:
            raise BadRequestError(f"Cannot {action} non-pending requests")

    def update_details(self, changes: Dict[str, Any]) -> None:
        self.ensure_pending("update")
        self.details = self.details.updated(changes)
        self.updated_at = utcnow()

    def review(
        self,
        new_status: RenewalStatus,
        reviewer_id: str,
        remarks: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> None:
        """Close the request as VERIFIED or REJECTED."""
        validate_transition(self.status, new_status)
        now = now or utcnow()
        self.status = new_status
        self.admin_remarks = remarks
        self.verified_at = now
        self.verified_by = reviewer_id
        self.updated_at = now

    def document_key(self, document_type: DocumentType) -> Optional[str]:
        return self.documents.get(document_type.value)

    def set_document(self, document_type: DocumentType, key: str) -> Optional[str]:
        """Record one document key, merging with the others. Returns the replaced key."""
        ensure_renewal_type(document_type)
        self.ensure_pending("upload documents to")
        previous = self.documents.get(document_type.value)
        self.documents = {**self.documents, document_type.value: key}
        self.updated_at = utcnow()
        return previous

    def remove_document(self, document_type: DocumentType) -> Optional[str]:
        self.ensure_pending("delete documents from")
        remaining = dict(self.documents)
        removed = remaining.pop(document_type.value, None)
        self.documents = remaining
        self.updated_at = utcnow()
        return removed
