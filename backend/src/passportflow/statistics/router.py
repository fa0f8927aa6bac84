"""Statistics API Router (MANAGER or ADMIN)."""

from typing import Annotated, List

from fastapi import APIRouter, Depends

from ..auth.dependencies import require_role
from ..auth.roles import STAFF_ROLES, CallerIdentity
from ..dependencies import get_query_service
from .schemas import (
    ApplicationStatisticsResponse,
    CountsResponse,
    DailyCountResponse,
    LabeledCountResponse,
)
from .service import QueryService

router = APIRouter(prefix="/statistics/applications", tags=["Statistics"])

StaffCaller = Annotated[CallerIdentity, Depends(require_role(STAFF_ROLES))]
Queries = Annotated[QueryService, Depends(get_query_service)]


@router.get("", response_model=ApplicationStatisticsResponse)
def application_statistics(caller: StaffCaller, queries: Queries):
    """All figures in one response, recomputed on every call."""
    return ApplicationStatisticsResponse.model_validate(queries.summary())


@router.get("/counts", response_model=CountsResponse)
def application_counts(caller: StaffCaller, queries: Queries):
    return CountsResponse(
        total_count=queries.total_count(),
        count_with_appointment=queries.count_with_appointment(),
        count_with_renewal_indicator=queries.count_with_renewal_indicator(),
    )


@router.get("/daily", response_model=List[DailyCountResponse])
def daily_distribution(caller: StaffCaller, queries: Queries):
    return [DailyCountResponse.model_validate(row) for row in queries.daily_distribution()]


@router.get("/travel-documents", response_model=List[LabeledCountResponse])
def travel_document_distribution(caller: StaffCaller, queries: Queries):
    return [LabeledCountResponse.model_validate(row) for row in queries.travel_document_distribution()]


@router.get("/districts", response_model=List[LabeledCountResponse])
def district_distribution(caller: StaffCaller, queries: Queries):
    return [LabeledCountResponse.model_validate(row) for row in queries.district_distribution()]


@router.get("/statuses", response_model=List[LabeledCountResponse])
def status_distribution(caller: StaffCaller, queries: Queries):
    return [LabeledCountResponse.model_validate(row) for row in queries.status_distribution()]
