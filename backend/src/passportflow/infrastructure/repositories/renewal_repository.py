"""SQLAlchemy adapter for RenewalRepositoryPort."""

from typing import Any, Dict, List, Optional
from uuid import UUID

from ...domain.errors import NotFoundError
from ...domain.renewals.models import RenewalDetails, RenewalRequest
from ...domain.renewals.ports import NOT_FOUND_MESSAGE, RenewalRepositoryPort
from ...domain.renewals.status import RenewalStatus
from ...models.renewal_request import RenewalRequestRecord
from .base import VersionedRepository, parse_datetime


def _to_values(renewal: RenewalRequest) -> Dict[str, Any]:
    values = {name: getattr(renewal.details, name) for name in RenewalDetails.field_names()}
    values.update(
        user_id=renewal.user_id,
        status=renewal.status.value,
        documents=dict(renewal.documents),
        admin_remarks=renewal.admin_remarks,
        verified_at=renewal.verified_at,
        verified_by=renewal.verified_by,
        created_at=renewal.created_at,
        updated_at=renewal.updated_at,
    )
    return values


def _to_aggregate(record: RenewalRequestRecord) -> RenewalRequest:
    return RenewalRequest(
        id=record.id,
        details=RenewalDetails(
            **{name: getattr(record, name) for name in RenewalDetails.field_names()}
        ),
        user_id=record.user_id,
        status=RenewalStatus(record.status),
        documents=dict(record.documents or {}),
        admin_remarks=record.admin_remarks,
        verified_at=parse_datetime(record.verified_at),
        verified_by=record.verified_by,
        version=record.version,
        created_at=parse_datetime(record.created_at),
        updated_at=parse_datetime(record.updated_at),
    )


class RenewalRepository(VersionedRepository, RenewalRepositoryPort):
    """Renewal persistence backed by the ``renewal_request`` table."""

    model = RenewalRequestRecord
    entity_label = "Renewal request"

    def load(self, renewal_id: UUID) -> RenewalRequest:
        record = self.db.get(RenewalRequestRecord, renewal_id)
        if record is None:
            raise NotFoundError(NOT_FOUND_MESSAGE)
        return _to_aggregate(record)

    def save(self, renewal: RenewalRequest) -> RenewalRequest:
        renewal.version = self._save_values(renewal.id, renewal.version, _to_values(renewal))
        return renewal

    def delete(self, renewal_id: UUID) -> None:
        if not self._delete_row(renewal_id):
            raise NotFoundError(NOT_FOUND_MESSAGE)

    def list_all(self, status: Optional[RenewalStatus] = None) -> List[RenewalRequest]:
        query = self.db.query(RenewalRequestRecord)
        if status is not None:
            query = query.filter(RenewalRequestRecord.status == status.value)
        records = query.order_by(RenewalRequestRecord.created_at.desc()).all()
        return [_to_aggregate(r) for r in records]

    def list_by_owner(self, user_id: str) -> List[RenewalRequest]:
        records = (
            self.db.query(RenewalRequestRecord)
            .filter(RenewalRequestRecord.user_id == user_id)
            .order_by(RenewalRequestRecord.created_at.desc())
            .all()
        )
        return [_to_aggregate(r) for r in records]
