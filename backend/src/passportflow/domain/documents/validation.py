"""File validation utilities for document uploads.

Defaults mirror the upload settings (5MB, JPEG/PNG images) and can be
overridden per call with values from ``passportflow.config.Settings``.
"""

from typing import Iterable, Optional, Tuple

from ..errors import InputValidationError


# Supported MIME types for identity photos and scanned certificates
SUPPORTED_MIME_TYPES = frozenset({
    'image/jpeg',
    'image/png',
    'image/jpg',
})

# File size limit (default 5MB)
MAX_FILE_SIZE = 5 * 1024 * 1024


def is_supported_mime_type(mime_type: Optional[str], allowed: Optional[Iterable[str]] = None) -> bool:
    """Check if MIME type is supported for upload

    Example:
        >>> is_supported_mime_type('image/png')
        True
        >>> is_supported_mime_type('application/pdf')
        False
    """
    allowed_types = SUPPORTED_MIME_TYPES if allowed is None else frozenset(allowed)
    return (mime_type or "").lower() in allowed_types


def validate_file_size(size_bytes: int, max_size: Optional[int] = None) -> Tuple[bool, Optional[str]]:
    """Validate file size is within limits

    Returns:
        Tuple of (is_valid, error_message)

    Example:
        >>> validate_file_size(1024)
        (True, None)
        >>> validate_file_size(0)
        (False, 'File is empty (0 bytes)')
    """
    if max_size is None:
        max_size = MAX_FILE_SIZE

    if size_bytes == 0:
        return False, "File is empty (0 bytes)"

    if size_bytes > max_size:
        limit_mb = max_size / 1024 / 1024
        return False, f"File size exceeds {limit_mb:g}MB limit (got {size_bytes} bytes)"

    return True, None


def validate_upload(
    data: bytes,
    content_type: Optional[str],
    max_size: Optional[int] = None,
    allowed_types: Optional[Iterable[str]] = None,
) -> None:
    """Validate an uploaded file before any processing or storage I/O.

    Raises:
        InputValidationError: If the file is empty, too large or of a disallowed type
    """
    is_valid, error_msg = validate_file_size(len(data), max_size)
    if not is_valid:
        raise InputValidationError(error_msg)

    if not is_supported_mime_type(content_type, allowed_types):
        allowed = sorted(SUPPORTED_MIME_TYPES if allowed_types is None else allowed_types)
        raise InputValidationError(
            f"Invalid file type {content_type!r}. Allowed types: {', '.join(allowed)}"
        )
