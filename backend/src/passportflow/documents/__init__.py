"""Document upload, normalisation and association."""

from .attachment_manager import AttachmentResult, DocumentAttachmentManager, build_document_key, cleanup_blobs
from .image_processing import normalize_image

__all__ = [
    "AttachmentResult",
    "DocumentAttachmentManager",
    "build_document_key",
    "cleanup_blobs",
    "normalize_image",
]
