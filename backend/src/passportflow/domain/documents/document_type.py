"""Document types and the slots they populate on an aggregate.

Every uploaded document is identified by one ``DocumentType``. Each type is
tagged with a ``DocumentKind`` (what the paper is) which is also the key used
by document verification records. ``APPLICATION_SLOTS`` is the single table
mapping a type to the application field/side it fills; renewal requests accept
the types in ``RENEWAL_DOCUMENT_TYPES`` and store them keyed by value.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import FrozenSet, Mapping, Optional

from ..errors import InputValidationError


class DocumentKind(str, Enum):
    """Physical document category, used for verification records."""
    NIC = "nic"
    BIRTH_CERTIFICATE = "birth_certificate"
    PHOTO = "photo"
    PASSPORT = "passport"
    OTHER = "other"


class DocumentType(str, Enum):
    """Uploadable document types (values are the wire format)."""
    NIC_FRONT = "nic-front"
    NIC_BACK = "nic-back"
    BIRTH_CERT_FRONT = "birth-certificate-front"
    BIRTH_CERT_BACK = "birth-certificate-back"
    USER_PHOTO = "user-photo"
    BIRTH_CERT = "birth-certificate"
    CURRENT_PASSPORT = "current-passport"
    PASSPORT_PHOTO = "passport-photo"
    ADDITIONAL_DOCS = "additional-documents"

    @property
    def kind(self) -> DocumentKind:
        return _KINDS[self]

    @classmethod
    def parse(cls, value: str) -> "DocumentType":
        """Parse a wire value, accepting the short ``birth-cert-*`` aliases.

        Raises:
            InputValidationError: If the value names no known document type
        """
        normalized = (value or "").strip().lower()
        normalized = _ALIASES.get(normalized, normalized)
        try:
            return cls(normalized)
        except ValueError:
            raise InputValidationError(f"Invalid document type: {value}")


_KINDS = {
    DocumentType.NIC_FRONT: DocumentKind.NIC,
    DocumentType.NIC_BACK: DocumentKind.NIC,
    DocumentType.BIRTH_CERT_FRONT: DocumentKind.BIRTH_CERTIFICATE,
    DocumentType.BIRTH_CERT_BACK: DocumentKind.BIRTH_CERTIFICATE,
    DocumentType.BIRTH_CERT: DocumentKind.BIRTH_CERTIFICATE,
    DocumentType.USER_PHOTO: DocumentKind.PHOTO,
    DocumentType.PASSPORT_PHOTO: DocumentKind.PHOTO,
    DocumentType.CURRENT_PASSPORT: DocumentKind.PASSPORT,
    DocumentType.ADDITIONAL_DOCS: DocumentKind.OTHER,
}

_ALIASES = {
    "birth-cert-front": DocumentType.BIRTH_CERT_FRONT.value,
    "birth-cert-back": DocumentType.BIRTH_CERT_BACK.value,
    "birth-cert": DocumentType.BIRTH_CERT.value,
}


class SlotGroup(str, Enum):
    """Application attachment fields."""
    NIC_PHOTOS = "nic_photos"
    BIRTH_CERTIFICATE_PHOTOS = "birth_certificate_photos"
    USER_PHOTO = "user_photo"


class Side(str, Enum):
    FRONT = "front"
    BACK = "back"


@dataclass(frozen=True)
class SlotRef:
    """Location of one attachment slot on an application."""
    group: SlotGroup
    side: Optional[Side] = None


APPLICATION_SLOTS: Mapping[DocumentType, SlotRef] = MappingProxyType({
    DocumentType.NIC_FRONT: SlotRef(SlotGroup.NIC_PHOTOS, Side.FRONT),
    DocumentType.NIC_BACK: SlotRef(SlotGroup.NIC_PHOTOS, Side.BACK),
    DocumentType.BIRTH_CERT_FRONT: SlotRef(SlotGroup.BIRTH_CERTIFICATE_PHOTOS, Side.FRONT),
    DocumentType.BIRTH_CERT_BACK: SlotRef(SlotGroup.BIRTH_CERTIFICATE_PHOTOS, Side.BACK),
    DocumentType.USER_PHOTO: SlotRef(SlotGroup.USER_PHOTO),
})

RENEWAL_DOCUMENT_TYPES: FrozenSet[DocumentType] = frozenset({
    DocumentType.CURRENT_PASSPORT,
    DocumentType.NIC_FRONT,
    DocumentType.NIC_BACK,
    DocumentType.BIRTH_CERT,
    DocumentType.PASSPORT_PHOTO,
    DocumentType.ADDITIONAL_DOCS,
})

# Verification records seeded on every new application.
VERIFIABLE_KINDS = (DocumentKind.NIC, DocumentKind.BIRTH_CERTIFICATE)


def slot_for(document_type: DocumentType) -> SlotRef:
    """Return the application slot for a document type.

    Raises:
        InputValidationError: If the type cannot be attached to an application
    """
    try:
        return APPLICATION_SLOTS[document_type]
    except KeyError:
        raise InputValidationError(
            f"Document type {document_type.value} cannot be attached to an application"
        )


def ensure_renewal_type(document_type: DocumentType) -> DocumentType:
    if document_type not in RENEWAL_DOCUMENT_TYPES:
        raise InputValidationError(
            f"Document type {document_type.value} cannot be attached to a renewal request"
        )
    return document_type
