"""Shared persistence helpers for aggregate repositories.

Saves are optimistic: an insert for a new aggregate (version 0), otherwise an
UPDATE conditional on the version that was loaded. Each save commits the
session, so audit entries staged on the same session are committed with it.
"""

import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional, Type
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ...domain.errors import ConcurrencyConflictError

logger = logging.getLogger(__name__)


def iso_or_none(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def parse_datetime(value: Optional[Any]) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value))
    if parsed.tzinfo is None:
        # SQLite drops the offset; all timestamps are written in UTC
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def as_date(value: Any) -> date:
    """Normalise a ``func.date()`` result (date on PostgreSQL, str on SQLite)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


class VersionedRepository:
    """Base for repositories whose rows carry an optimistic ``version`` column."""

    model: Type[Any]
    entity_label: str = "Aggregate"

    def __init__(self, db: Session):
        self.db = db

    def _save_values(self, entity_id: UUID, loaded_version: int, values: Dict[str, Any]) -> int:
        """Insert or conditionally update a row. Returns the new version.

        Raises:
            ConcurrencyConflictError: If the stored version moved on, or a unique index rejected the row
        """
        new_version = loaded_version + 1
        try:
            if loaded_version == 0:
                self.db.add(self.model(id=entity_id, version=new_version, **values))
                self.db.flush()
            else:
                result = self.db.execute(
                    update(self.model)
                    .where(self.model.id == entity_id, self.model.version == loaded_version)
                    .values(version=new_version, **values)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    self.db.rollback()
                    logger.warning(
                        f"{self.entity_label} save rejected: id={entity_id}, "
                        f"expected_version={loaded_version}"
                    )
                    raise ConcurrencyConflictError(
                        f"{self.entity_label} {entity_id} was modified concurrently; reload and retry"
                    )
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConcurrencyConflictError(f"{self.entity_label} {entity_id} conflicts with an existing record")
        except SQLAlchemyError:
            self.db.rollback()
            raise

        return new_version

    def _delete_row(self, entity_id: UUID) -> bool:
        record = self.db.get(self.model, entity_id)
        if record is None:
            return False
        try:
            self.db.delete(record)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        return True
