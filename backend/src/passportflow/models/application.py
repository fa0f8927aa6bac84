"""ApplicationRecord SQLAlchemy model

One row per passport application. Applicant details are plain columns so the
statistics queries can group on them; the status history, verification
records and attachment slots are JSON documents owned by the aggregate.
"""

from uuid import uuid4

from sqlalchemy import Boolean, Column, Date, DateTime, Float, Index, Integer, Text, Uuid

from .base import Base, PortableJSONB, utcnow


class ApplicationRecord(Base):
    """Persistent form of ``passportflow.domain.applications.Application``."""
    __tablename__ = "application"
    __table_args__ = (
        Index("ix_application_submitted_by", "submitted_by"),
        Index("ix_application_status", "status"),
        Index("ix_application_created_at", "created_at"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    submitted_by = Column(Text, nullable=False)
    status = Column(Text, nullable=False, default="SUBMITTED")
    version = Column(Integer, nullable=False, default=1)

    # Applicant details
    type_of_service = Column(Text, nullable=False)
    travel_document_type = Column(Text, nullable=False)
    present_travel_document = Column(Text, nullable=True)
    nmrp_number = Column(Text, nullable=True)
    national_identity_card_number = Column(Text, nullable=False)
    surname = Column(Text, nullable=False)
    other_names = Column(Text, nullable=False)
    permanent_address = Column(Text, nullable=False)
    permanent_address_district = Column(Text, nullable=False)
    birthdate = Column(Text, nullable=False)
    birth_certificate_number = Column(Text, nullable=False)
    birth_certificate_district = Column(Text, nullable=False)
    place_of_birth = Column(Text, nullable=False)
    sex = Column(Text, nullable=False)
    profession = Column(Text, nullable=False)
    is_dual_citizen = Column(Boolean, nullable=False, default=False)
    dual_citizenship_number = Column(Text, nullable=True)
    mobile_number = Column(Text, nullable=False)
    email_address = Column(Text, nullable=False)
    foreign_nationality = Column(Text, nullable=True)
    foreign_passport_number = Column(Text, nullable=True)
    is_child = Column(Boolean, nullable=False, default=False)
    child_father_passport_number = Column(Text, nullable=True)
    child_mother_passport_number = Column(Text, nullable=True)
    collection_location = Column(Text, nullable=True)
    biometric_appointment_date = Column(Date, nullable=True)
    biometric_appointment_time = Column(Text, nullable=True)
    counter_number = Column(Text, nullable=True)
    payment_amount = Column(Float, nullable=True)
    payment_reference = Column(Text, nullable=True)
    studio_photo_url = Column(Text, nullable=True)

    # Aggregate-owned documents
    status_history = Column(PortableJSONB, nullable=False, default=list)
    document_verification = Column(PortableJSONB, nullable=False, default=list)
    nic_photos = Column(PortableJSONB, nullable=False, default=dict)
    birth_certificate_photos = Column(PortableJSONB, nullable=False, default=dict)
    user_photo = Column(PortableJSONB, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
