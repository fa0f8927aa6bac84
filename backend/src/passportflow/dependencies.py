"""FastAPI dependency wiring for repositories, storage and services.

All per-request collaborators share the request's database session, so an
aggregate save commits the audit entries staged alongside it.
"""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from .applications.service import ApplicationService
from .applications.transitions import TransitionEngine
from .appointments.service import AppointmentService
from .audit.service import SqlAuditTrail
from .config import get_settings
from .database import get_db
from .documents.attachment_manager import DocumentAttachmentManager
from .domain.documents.ports.blob_storage_port import BlobStoragePort
from .infrastructure.repositories import (
    ApplicationRepository,
    AppointmentRepository,
    RenewalRepository,
)
from .infrastructure.storage import S3StorageAdapter, load_storage_config
from .renewals.service import RenewalService
from .statistics.service import QueryService


@lru_cache()
def get_storage() -> BlobStoragePort:
    """Shared S3 adapter built from settings (boto3 clients are thread-safe)."""
    return S3StorageAdapter.from_config(load_storage_config())


def get_application_repository(db: Session = Depends(get_db)) -> ApplicationRepository:
    return ApplicationRepository(db)


def get_renewal_repository(db: Session = Depends(get_db)) -> RenewalRepository:
    return RenewalRepository(db)


def get_appointment_repository(db: Session = Depends(get_db)) -> AppointmentRepository:
    return AppointmentRepository(db)


def get_audit_trail(db: Session = Depends(get_db)) -> SqlAuditTrail:
    return SqlAuditTrail(db)


def get_application_service(
    applications: ApplicationRepository = Depends(get_application_repository),
    audit: SqlAuditTrail = Depends(get_audit_trail),
    storage: BlobStoragePort = Depends(get_storage),
) -> ApplicationService:
    return ApplicationService(applications, audit, storage=storage)


def get_transition_engine(
    applications: ApplicationRepository = Depends(get_application_repository),
    audit: SqlAuditTrail = Depends(get_audit_trail),
) -> TransitionEngine:
    return TransitionEngine(applications, audit)


def get_attachment_manager(
    applications: ApplicationRepository = Depends(get_application_repository),
    renewals: RenewalRepository = Depends(get_renewal_repository),
    audit: SqlAuditTrail = Depends(get_audit_trail),
    storage: BlobStoragePort = Depends(get_storage),
) -> DocumentAttachmentManager:
    return DocumentAttachmentManager(applications, renewals, storage, audit, settings=get_settings())


def get_renewal_service(
    renewals: RenewalRepository = Depends(get_renewal_repository),
    audit: SqlAuditTrail = Depends(get_audit_trail),
) -> RenewalService:
    return RenewalService(renewals, audit)


def get_appointment_service(
    appointments: AppointmentRepository = Depends(get_appointment_repository),
    audit: SqlAuditTrail = Depends(get_audit_trail),
) -> AppointmentService:
    return AppointmentService(appointments, audit)


def get_query_service(
    applications: ApplicationRepository = Depends(get_application_repository),
) -> QueryService:
    return QueryService(applications)
