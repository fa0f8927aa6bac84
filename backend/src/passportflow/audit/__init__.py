"""Audit module - immutable workflow event log"""

from .service import SqlAuditTrail, log_audit_event

__all__ = ["SqlAuditTrail", "log_audit_event"]
