"""Documents domain module - document types, upload validation, blob storage port"""

from .document_type import (
    APPLICATION_SLOTS,
    RENEWAL_DOCUMENT_TYPES,
    VERIFIABLE_KINDS,
    DocumentKind,
    DocumentType,
    Side,
    SlotGroup,
    SlotRef,
    ensure_renewal_type,
    slot_for,
)
from .validation import (
    MAX_FILE_SIZE,
    SUPPORTED_MIME_TYPES,
    is_supported_mime_type,
    validate_file_size,
    validate_upload,
)

__all__ = [
    "APPLICATION_SLOTS",
    "RENEWAL_DOCUMENT_TYPES",
    "VERIFIABLE_KINDS",
    "DocumentKind",
    "DocumentType",
    "Side",
    "SlotGroup",
    "SlotRef",
    "ensure_renewal_type",
    "slot_for",
    "MAX_FILE_SIZE",
    "SUPPORTED_MIME_TYPES",
    "is_supported_mime_type",
    "validate_file_size",
    "validate_upload",
]
