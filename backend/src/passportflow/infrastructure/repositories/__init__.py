from .application_repository import ApplicationRepository
from .appointment_repository import AppointmentRepository
from .renewal_repository import RenewalRepository

__all__ = ["ApplicationRepository", "AppointmentRepository", "RenewalRepository"]
