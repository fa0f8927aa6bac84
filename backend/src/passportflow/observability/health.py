"""Readiness probes for the database and the blob store.

Each probe reports its own outcome and never raises; ``/health`` combines
them into one status.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..domain.documents.ports.blob_storage_port import BlobStoragePort
from ..domain.errors import StorageError

logger = logging.getLogger(__name__)

# HEAD of a key that normally does not exist; a 404 still proves connectivity
STORAGE_PROBE_KEY = "health/probe"


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


@dataclass
class ComponentHealth:
    status: HealthStatus
    message: Optional[str] = None
    latency_ms: Optional[float] = None

    def to_dict(self) -> Dict[str, object]:
        return {"status": self.status.value, "message": self.message, "latency_ms": self.latency_ms}


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


def check_database_health(db: Session) -> ComponentHealth:
    started = time.perf_counter()
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Database probe failed: {e}")
        return ComponentHealth(HealthStatus.UNHEALTHY, f"Database unreachable: {e}")
    return ComponentHealth(HealthStatus.HEALTHY, "Database reachable", _elapsed_ms(started))


async def check_object_storage_health(storage: BlobStoragePort) -> ComponentHealth:
    started = time.perf_counter()
    try:
        await storage.exists(STORAGE_PROBE_KEY)
    except StorageError as e:
        logger.error(f"Object storage probe failed: {e.message}")
        return ComponentHealth(HealthStatus.UNHEALTHY, f"Object storage unreachable: {e.message}")
    return ComponentHealth(HealthStatus.HEALTHY, "Object storage reachable", _elapsed_ms(started))


def get_overall_health(components: Dict[str, ComponentHealth]) -> HealthStatus:
    if any(c.status is HealthStatus.UNHEALTHY for c in components.values()):
        return HealthStatus.UNHEALTHY
    return HealthStatus.HEALTHY
