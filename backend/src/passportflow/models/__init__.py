"""SQLAlchemy Models for PassportFlow"""

from .base import Base
from .application import ApplicationRecord
from .renewal_request import RenewalRequestRecord
from .appointment import AppointmentRecord
from .audit_log import AuditLog

__all__ = [
    "Base",
    "ApplicationRecord",
    "RenewalRequestRecord",
    "AppointmentRecord",
    "AuditLog",
]
