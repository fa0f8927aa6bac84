"""Health endpoint."""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import get_storage
from ..domain.documents.ports.blob_storage_port import BlobStoragePort
from .health import HealthStatus, check_database_health, check_object_storage_health, get_overall_health

router = APIRouter(tags=["Observability"])


@router.get("/health", summary="Database and object storage readiness")
async def health_check(
    db: Session = Depends(get_db),
    storage: BlobStoragePort = Depends(get_storage),
):
    """200 when every component answers, 503 otherwise."""
    components = {
        "database": check_database_health(db),
        "object_storage": await check_object_storage_health(storage),
    }
    overall = get_overall_health(components)
    return JSONResponse(
        status_code=status.HTTP_200_OK if overall is HealthStatus.HEALTHY else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": overall.value,
            "components": {name: component.to_dict() for name, component in components.items()},
        },
    )
