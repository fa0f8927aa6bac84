"""Shared pytest fixtures.

Provides:
- In-memory SQLite database session (StaticPool, schema created per test)
- In-memory blob store implementing BlobStoragePort, with failure injection
- Caller identities for every role
- Factories for applicant, renewal and appointment details and test images
- Wired services sharing one session, as the HTTP layer does

Usage:
    @pytest.mark.asyncio
    async def test_attach(attachment_manager, submitted_application, applicant, png_bytes):
        result = await attachment_manager.attach_document(...)
"""

import io
import os
from datetime import date
from typing import Dict, List

# Set environment variables BEFORE any passportflow imports; the engine and
# settings are built at import time.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("S3_ENDPOINT_URL", "http://localhost:9000")
os.environ.setdefault("S3_ACCESS_KEY_ID", "test-access-key")
os.environ.setdefault("S3_SECRET_ACCESS_KEY", "test-secret-key")
os.environ.setdefault("S3_BUCKET_NAME", "test-passportflow-bucket")
os.environ.setdefault("STORAGE_RETRY_BASE_DELAY", "0")
os.environ.setdefault("LOG_JSON", "false")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
import pytest_asyncio
from PIL import Image
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from passportflow.applications.service import ApplicationService
from passportflow.applications.transitions import TransitionEngine
from passportflow.appointments.service import AppointmentService
from passportflow.audit.service import SqlAuditTrail
from passportflow.auth.roles import CallerIdentity, UserRole
from passportflow.concurrency import AggregateLockRegistry
from passportflow.config import Settings
from passportflow.documents.attachment_manager import DocumentAttachmentManager
from passportflow.domain.applications.models import ApplicantDetails
from passportflow.domain.appointments.models import AppointmentDetails, AppointmentLocation, TimeSlot
from passportflow.domain.documents.ports.blob_storage_port import BlobStoragePort, UrlMode
from passportflow.domain.errors import StorageError
from passportflow.domain.renewals.models import RenewalDetails
from passportflow.infrastructure.repositories import (
    ApplicationRepository,
    AppointmentRepository,
    RenewalRepository,
)
from passportflow.models import Base
from passportflow.renewals.service import RenewalService
from passportflow.statistics.service import QueryService


# =============================================================================
# Blob storage
# =============================================================================

class InMemoryBlobStorage(BlobStoragePort):
    """BlobStoragePort backed by a dict.

    Attributes:
        fail_puts: Number of upcoming ``put`` calls that raise StorageError
        fail_deletes: Number of upcoming ``delete`` calls that raise StorageError
        fail_signing: When True every ``signed_url`` raises StorageError
    """

    def __init__(self):
        self.blobs: Dict[str, bytes] = {}
        self.content_types: Dict[str, str] = {}
        self.put_calls: List[str] = []
        self.delete_calls: List[str] = []
        self.fail_puts = 0
        self.fail_deletes = 0
        self.fail_signing = False

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        self.put_calls.append(key)
        if self.fail_puts > 0:
            self.fail_puts -= 1
            raise StorageError("Simulated upload failure")
        self.blobs[key] = data
        self.content_types[key] = content_type
        return key

    async def delete(self, key: str) -> None:
        self.delete_calls.append(key)
        if self.fail_deletes > 0:
            self.fail_deletes -= 1
            raise StorageError("Simulated delete failure")
        self.blobs.pop(key, None)
        self.content_types.pop(key, None)

    async def signed_url(self, key: str, mode: UrlMode, ttl_seconds: int) -> str:
        if self.fail_signing:
            raise StorageError("Simulated signing failure")
        return f"https://blobs.test/{key}?mode={mode.value}&expires={ttl_seconds}"

    async def exists(self, key: str) -> bool:
        return key in self.blobs


# =============================================================================
# Database
# =============================================================================

@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db_session(session_factory) -> Session:
    session = session_factory()
    yield session
    session.close()


# =============================================================================
# Collaborators
# =============================================================================

@pytest.fixture
def storage() -> InMemoryBlobStorage:
    return InMemoryBlobStorage()


@pytest.fixture
def settings() -> Settings:
    return Settings(STORAGE_RETRY_BASE_DELAY=0.0)


@pytest.fixture
def application_repository(db_session) -> ApplicationRepository:
    return ApplicationRepository(db_session)


@pytest.fixture
def renewal_repository(db_session) -> RenewalRepository:
    return RenewalRepository(db_session)


@pytest.fixture
def appointment_repository(db_session) -> AppointmentRepository:
    return AppointmentRepository(db_session)


@pytest.fixture
def audit_trail(db_session) -> SqlAuditTrail:
    return SqlAuditTrail(db_session)


@pytest.fixture
def application_locks() -> AggregateLockRegistry:
    return AggregateLockRegistry()


@pytest.fixture
def renewal_locks() -> AggregateLockRegistry:
    return AggregateLockRegistry()


@pytest.fixture
def appointment_locks() -> AggregateLockRegistry:
    return AggregateLockRegistry()


@pytest.fixture
def application_service(application_repository, audit_trail, storage, application_locks):
    return ApplicationService(application_repository, audit_trail, storage=storage, locks=application_locks)


@pytest.fixture
def transition_engine(application_repository, audit_trail, application_locks):
    return TransitionEngine(application_repository, audit_trail, locks=application_locks)


@pytest.fixture
def attachment_manager(
    application_repository,
    renewal_repository,
    storage,
    audit_trail,
    settings,
    application_locks,
    renewal_locks,
):
    return DocumentAttachmentManager(
        application_repository,
        renewal_repository,
        storage,
        audit_trail,
        settings=settings,
        application_lock_registry=application_locks,
        renewal_lock_registry=renewal_locks,
    )


@pytest.fixture
def renewal_service(renewal_repository, audit_trail, renewal_locks):
    return RenewalService(renewal_repository, audit_trail, locks=renewal_locks)


@pytest.fixture
def appointment_service(appointment_repository, audit_trail, appointment_locks):
    return AppointmentService(appointment_repository, audit_trail, locks=appointment_locks)


@pytest.fixture
def query_service(application_repository):
    return QueryService(application_repository)


# =============================================================================
# Callers
# =============================================================================

@pytest.fixture
def applicant() -> CallerIdentity:
    return CallerIdentity(user_id="applicant-1", role=UserRole.APPLICANT)


@pytest.fixture
def other_applicant() -> CallerIdentity:
    return CallerIdentity(user_id="applicant-2", role=UserRole.APPLICANT)


@pytest.fixture
def manager() -> CallerIdentity:
    return CallerIdentity(user_id="manager-1", role=UserRole.MANAGER)


@pytest.fixture
def admin() -> CallerIdentity:
    return CallerIdentity(user_id="admin-1", role=UserRole.ADMIN)


@pytest.fixture
def elevated_admin() -> CallerIdentity:
    return CallerIdentity(user_id="admin-2", role=UserRole.ADMIN, elevated=True)


# =============================================================================
# Data factories
# =============================================================================

def make_details(**overrides) -> ApplicantDetails:
    data = dict(
        type_of_service="normal",
        travel_document_type="all",
        national_identity_card_number="199012345678",
        surname="Perera",
        other_names="Nimal Kumar",
        permanent_address="12 Temple Road, Colombo 05",
        permanent_address_district="CMB",
        birthdate="1990-04-12",
        birth_certificate_number="BC-4521",
        birth_certificate_district="CMB",
        place_of_birth="Colombo",
        sex="male",
        profession="Engineer",
        mobile_number="0771234567",
        email_address="nimal@example.com",
    )
    data.update(overrides)
    return ApplicantDetails(**data)


def make_renewal_details(**overrides) -> RenewalDetails:
    data = dict(
        full_name="Kamala Silva",
        date_of_birth=date(1985, 7, 3),
        nic_number="198512345678",
        current_passport_number="N1234567",
        current_passport_expiry_date=date(2025, 1, 31),
        address="45 Lake Drive, Kandy",
        contact_number="0719876543",
        email="kamala@example.com",
    )
    data.update(overrides)
    return RenewalDetails(**data)


def make_appointment_details(**overrides) -> AppointmentDetails:
    data = dict(
        full_name="Ruwan Jayasinghe",
        permanent_address="8 Galle Road, Matara",
        nic_number="199234567890",
        contact_number="0761122334",
        reason="First passport biometrics",
    )
    data.update(overrides)
    return AppointmentDetails(**data)


def make_slot(time="09:30", location=AppointmentLocation.COLOMBO, on_date=date(2030, 3, 14)) -> TimeSlot:
    return TimeSlot(date=on_date, time=time, location=location)


def make_image_bytes(size=(800, 600), mode="RGB", fmt="PNG", color=None) -> bytes:
    if color is None:
        color = (30, 120, 200, 255) if mode == "RGBA" else (30, 120, 200)
    buffer = io.BytesIO()
    Image.new(mode, size, color).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return make_image_bytes()


@pytest.fixture
def submitted_application(application_service, applicant):
    """An application owned by ``applicant`` in SUBMITTED."""
    return application_service.create_application(make_details(), applicant)


@pytest.fixture
def pending_renewal(renewal_service, applicant):
    """A renewal request owned by ``applicant`` in PENDING."""
    return renewal_service.create_renewal(make_renewal_details(), applicant)


@pytest_asyncio.fixture
async def pending_appointment(appointment_service, applicant):
    """An appointment owned by ``applicant`` in PENDING at the default slot."""
    return await appointment_service.create_appointment(make_appointment_details(), make_slot(), applicant)
