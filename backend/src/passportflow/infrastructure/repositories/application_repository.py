"""SQLAlchemy adapter for ApplicationRepositoryPort."""

from datetime import date
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func

from ...domain.applications.models import (
    ApplicantDetails,
    Application,
    AttachedFile,
    DocumentVerification,
    PhotoPair,
    StatusHistoryEntry,
)
from ...domain.applications.ports import NOT_FOUND_MESSAGE, ApplicationRepositoryPort
from ...domain.applications.status import ApplicationStatus
from ...domain.documents.document_type import DocumentKind
from ...domain.errors import NotFoundError
from ...models.application import ApplicationRecord
from .base import VersionedRepository, as_date, iso_or_none, parse_datetime


def _file_to_json(attached: Optional[AttachedFile]) -> Optional[Dict[str, str]]:
    if attached is None:
        return None
    return {"key": attached.key, "url": attached.url}


def _file_from_json(data: Optional[Dict[str, Any]]) -> Optional[AttachedFile]:
    if not data:
        return None
    return AttachedFile(key=data["key"], url=data["url"])


def _pair_to_json(pair: PhotoPair) -> Dict[str, Dict[str, str]]:
    data = {}
    if pair.front is not None:
        data["front"] = _file_to_json(pair.front)
    if pair.back is not None:
        data["back"] = _file_to_json(pair.back)
    return data


def _pair_from_json(data: Optional[Dict[str, Any]]) -> PhotoPair:
    data = data or {}
    return PhotoPair(front=_file_from_json(data.get("front")), back=_file_from_json(data.get("back")))


def _to_values(application: Application) -> Dict[str, Any]:
    values = {name: getattr(application.details, name) for name in ApplicantDetails.field_names()}
    values.update(
        submitted_by=application.submitted_by,
        status=application.status.value,
        status_history=[
            {
                "status": entry.status.value,
                "timestamp": entry.timestamp.isoformat(),
                "comment": entry.comment,
            }
            for entry in application.status_history
        ],
        document_verification=[
            {
                "document_type": record.document_type.value,
                "verified": record.verified,
                "verification_date": iso_or_none(record.verification_date),
            }
            for record in application.document_verification
        ],
        nic_photos=_pair_to_json(application.nic_photos),
        birth_certificate_photos=_pair_to_json(application.birth_certificate_photos),
        user_photo=_file_to_json(application.user_photo),
        created_at=application.created_at,
        updated_at=application.updated_at,
    )
    return values


def _to_aggregate(record: ApplicationRecord) -> Application:
    details = ApplicantDetails(
        **{name: getattr(record, name) for name in ApplicantDetails.field_names()}
    )
    return Application(
        id=record.id,
        details=details,
        submitted_by=record.submitted_by,
        status=ApplicationStatus(record.status),
        status_history=[
            StatusHistoryEntry(
                status=ApplicationStatus(entry["status"]),
                timestamp=parse_datetime(entry["timestamp"]),
                comment=entry.get("comment"),
            )
            for entry in record.status_history or []
        ],
        document_verification=[
            DocumentVerification(
                document_type=DocumentKind(item["document_type"]),
                verified=bool(item.get("verified")),
                verification_date=parse_datetime(item.get("verification_date")),
            )
            for item in record.document_verification or []
        ],
        nic_photos=_pair_from_json(record.nic_photos),
        birth_certificate_photos=_pair_from_json(record.birth_certificate_photos),
        user_photo=_file_from_json(record.user_photo),
        version=record.version,
        created_at=parse_datetime(record.created_at),
        updated_at=parse_datetime(record.updated_at),
    )


class ApplicationRepository(VersionedRepository, ApplicationRepositoryPort):
    """Application persistence backed by the ``application`` table."""

    model = ApplicationRecord
    entity_label = "Application"

    def load(self, application_id: UUID) -> Application:
        record = self.db.get(ApplicationRecord, application_id)
        if record is None:
            raise NotFoundError(NOT_FOUND_MESSAGE)
        return _to_aggregate(record)

    def save(self, application: Application) -> Application:
        application.version = self._save_values(
            application.id, application.version, _to_values(application)
        )
        return application

    def delete(self, application_id: UUID) -> None:
        if not self._delete_row(application_id):
            raise NotFoundError(NOT_FOUND_MESSAGE)

    def list_all(self) -> List[Application]:
        records = self.db.query(ApplicationRecord).order_by(ApplicationRecord.created_at.desc()).all()
        return [_to_aggregate(r) for r in records]

    def list_by_owner(self, user_id: str) -> List[Application]:
        records = (
            self.db.query(ApplicationRecord)
            .filter(ApplicationRecord.submitted_by == user_id)
            .order_by(ApplicationRecord.created_at.desc())
            .all()
        )
        return [_to_aggregate(r) for r in records]

    # -- aggregation reads ----------------------------------------------

    def count_all(self) -> int:
        return self.db.query(func.count(ApplicationRecord.id)).scalar() or 0

    def count_with_appointment(self) -> int:
        return (
            self.db.query(func.count(ApplicationRecord.id))
            .filter(ApplicationRecord.biometric_appointment_date.isnot(None))
            .scalar()
            or 0
        )

    def count_with_renewal_indicator(self) -> int:
        return (
            self.db.query(func.count(ApplicationRecord.id))
            .filter(
                ApplicationRecord.present_travel_document.isnot(None),
                ApplicationRecord.present_travel_document != "",
            )
            .scalar()
            or 0
        )

    def count_by_created_day(self) -> List[Tuple[date, int]]:
        day = func.date(ApplicationRecord.created_at)
        rows = (
            self.db.query(day.label("day"), func.count(ApplicationRecord.id).label("count"))
            .group_by(day)
            .order_by(day)
            .all()
        )
        return [(as_date(row.day), row.count) for row in rows]

    def count_by_travel_document_type(self) -> List[Tuple[str, int]]:
        return self._count_by(ApplicationRecord.travel_document_type)

    def count_by_district(self) -> List[Tuple[str, int]]:
        return self._count_by(ApplicationRecord.permanent_address_district)

    def count_by_status(self) -> List[Tuple[str, int]]:
        return self._count_by(ApplicationRecord.status)

    def _count_by(self, column) -> List[Tuple[str, int]]:
        rows = (
            self.db.query(column.label("code"), func.count(ApplicationRecord.id).label("count"))
            .group_by(column)
            .all()
        )
        return [(row.code, row.count) for row in rows]
