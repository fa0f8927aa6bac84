"""Error taxonomy shared by every core component.

Each error carries a stable ``kind`` string and a human-readable message.
The HTTP layer maps kinds to status codes (see ``passportflow.main``).
"""

from typing import Any, Dict, Optional


class PassportFlowError(Exception):
    """Base class for all business errors raised by the core."""

    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.kind, "message": self.message}


class NotFoundError(PassportFlowError):
    """Referenced aggregate or sub-record does not exist (or is not visible to the caller)."""

    kind = "not_found"


class InvalidTransitionError(PassportFlowError):
    """Requested status change is not permitted from the current status."""

    kind = "invalid_transition"

    def __init__(self, current_status: Any, requested_status: Any, message: Optional[str] = None):
        self.current_status = getattr(current_status, "value", current_status)
        self.requested_status = getattr(requested_status, "value", requested_status)
        super().__init__(
            message
            or f"Invalid status transition: {self.current_status} -> {self.requested_status}"
        )

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["current_status"] = self.current_status
        data["requested_status"] = self.requested_status
        return data


class InputValidationError(PassportFlowError):
    """Malformed or oversized input, raised before any storage I/O."""

    kind = "validation_error"


class ProcessingError(PassportFlowError):
    """File transformation failed; no persistent state was changed."""

    kind = "processing_error"


class StorageError(PassportFlowError):
    """Blob store operation failed (after retries where applicable)."""

    kind = "storage_error"


class ForbiddenError(PassportFlowError):
    """Role or elevation check failed."""

    kind = "forbidden"


class BadRequestError(PassportFlowError):
    """Business rule rejected the request (missing sub-record, status-gated mutation)."""

    kind = "bad_request"


class ConcurrencyConflictError(PassportFlowError):
    """Another writer updated the aggregate since it was loaded."""

    kind = "conflict"
