"""AppointmentRecord SQLAlchemy model"""

from uuid import uuid4

from sqlalchemy import Boolean, Column, Date, DateTime, Index, Integer, Text, Uuid, text

from .base import Base, utcnow

# Only PENDING and APPROVED bookings hold their slot
ACTIVE_SLOT_PREDICATE = text("status IN ('PENDING', 'APPROVED')")


class AppointmentRecord(Base):
    """Persistent form of ``passportflow.domain.appointments.Appointment``.

    The partial unique index is the cross-process guard against two active
    bookings on the same date, time and location.
    """
    __tablename__ = "appointment"
    __table_args__ = (
        Index("ix_appointment_created_by", "created_by"),
        Index("ix_appointment_preferred_date", "preferred_date"),
        Index(
            "uq_appointment_active_slot",
            "preferred_date",
            "preferred_time",
            "preferred_location",
            unique=True,
            postgresql_where=ACTIVE_SLOT_PREDICATE,
            sqlite_where=ACTIVE_SLOT_PREDICATE,
        ),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    created_by = Column(Text, nullable=False)
    status = Column(Text, nullable=False, default="PENDING")
    version = Column(Integer, nullable=False, default=1)

    full_name = Column(Text, nullable=False)
    permanent_address = Column(Text, nullable=False)
    nic_number = Column(Text, nullable=False)
    contact_number = Column(Text, nullable=False)
    reason = Column(Text, nullable=False)

    preferred_location = Column(Text, nullable=False)
    preferred_date = Column(Date, nullable=False)
    preferred_time = Column(Text, nullable=False)  # HH:MM

    rejection_reason = Column(Text, nullable=True)
    admin_notes = Column(Text, nullable=True)
    is_time_slot_confirmed = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
