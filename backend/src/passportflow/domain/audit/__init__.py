from .port import AuditTrailPort

__all__ = ["AuditTrailPort"]
