"""RenewalRequestRecord SQLAlchemy model"""

from uuid import uuid4

from sqlalchemy import Column, Date, DateTime, Index, Integer, Text, Uuid

from .base import Base, PortableJSONB, utcnow


class RenewalRequestRecord(Base):
    """Persistent form of ``passportflow.domain.renewals.RenewalRequest``.

    ``documents`` maps a document-type value to its storage key.
    """
    __tablename__ = "renewal_request"
    __table_args__ = (
        Index("ix_renewal_request_user_id", "user_id"),
        Index("ix_renewal_request_status", "status"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(Text, nullable=False)
    status = Column(Text, nullable=False, default="PENDING")
    version = Column(Integer, nullable=False, default=1)

    full_name = Column(Text, nullable=False)
    date_of_birth = Column(Date, nullable=False)
    nic_number = Column(Text, nullable=False)
    current_passport_number = Column(Text, nullable=False)
    current_passport_expiry_date = Column(Date, nullable=False)
    address = Column(Text, nullable=False)
    contact_number = Column(Text, nullable=False)
    email = Column(Text, nullable=False)

    documents = Column(PortableJSONB, nullable=False, default=dict)
    admin_remarks = Column(Text, nullable=True)
    verified_at = Column(DateTime(timezone=True), nullable=True)
    verified_by = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
