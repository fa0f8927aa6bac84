"""AuditLog SQLAlchemy model"""

from uuid import uuid4

from sqlalchemy import Column, DateTime, Index, Text, Uuid

from .base import Base, PortableJSONB, utcnow


class AuditLog(Base):
    """Append-only record of workflow actions on applications and renewals.

    Entries are never updated or deleted, including when the audited
    aggregate itself is hard-deleted.
    """
    __tablename__ = "audit_log"
    __table_args__ = (
        Index("ix_audit_log_entity", "entity_type", "entity_id"),
        Index("ix_audit_log_created_at", "created_at"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    actor_id = Column(Text, nullable=True)
    action = Column(Text, nullable=False)
    entity_type = Column(Text, nullable=False)
    entity_id = Column(Uuid(as_uuid=True), nullable=False)
    metadata_json = Column(PortableJSONB, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self):
        """Convert audit log entry to dictionary representation"""
        return {
            "id": str(self.id),
            "actor_id": self.actor_id,
            "action": self.action,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id),
            "metadata": self.metadata_json,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
