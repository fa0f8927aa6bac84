"""Appointments API Router."""

from datetime import date
from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from ..auth.dependencies import CurrentCaller
from ..dependencies import get_appointment_service
from ..domain.appointments.models import AppointmentDetails, AppointmentLocation, TimeSlot
from ..domain.appointments.status import AppointmentStatus
from .schemas import (
    AppointmentCreate,
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentUpdate,
    AvailableSlotsResponse,
)
from .service import AppointmentService

router = APIRouter(prefix="/appointments", tags=["Appointments"])

Service = Annotated[AppointmentService, Depends(get_appointment_service)]


@router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
async def create_appointment(payload: AppointmentCreate, caller: CurrentCaller, service: Service):
    """Book a biometrics slot (APPLICANT)."""
    slot = TimeSlot(
        date=payload.preferred_date,
        time=payload.preferred_time,
        location=payload.preferred_location,
    )
    details = AppointmentDetails(
        **payload.model_dump(include=set(AppointmentDetails.field_names()))
    )
    appointment = await service.create_appointment(details, slot, caller)
    return AppointmentResponse.from_aggregate(appointment)


@router.get("", response_model=AppointmentListResponse)
def list_appointments(
    caller: CurrentCaller,
    service: Service,
    status_filter: Optional[AppointmentStatus] = Query(None, alias="status", description="Filter by status"),
    location: Optional[AppointmentLocation] = Query(None, description="Filter by office"),
    on_date: Optional[date] = Query(None, alias="date", description="Filter by appointment date"),
):
    """List appointments, newest first (MANAGER or ADMIN)."""
    appointments = service.list_appointments(
        caller, status=status_filter, location=location, on_date=on_date
    )
    return AppointmentListResponse(
        items=[AppointmentResponse.from_aggregate(a) for a in appointments],
        total=len(appointments),
    )


@router.get("/my", response_model=AppointmentListResponse)
def list_my_appointments(
    caller: CurrentCaller,
    service: Service,
    status_filter: Optional[AppointmentStatus] = Query(None, alias="status", description="Filter by status"),
):
    appointments = service.list_my_appointments(caller, status=status_filter)
    return AppointmentListResponse(
        items=[AppointmentResponse.from_aggregate(a) for a in appointments],
        total=len(appointments),
    )


@router.get("/available-slots", response_model=AvailableSlotsResponse)
def available_slots(
    caller: CurrentCaller,
    service: Service,
    on_date: date = Query(..., alias="date"),
    location: AppointmentLocation = Query(...),
):
    """Free grid times for one office and day."""
    return AvailableSlotsResponse(
        date=on_date,
        location=location,
        slots=service.available_slots(on_date, location),
    )


@router.get("/{appointment_id}", response_model=AppointmentResponse)
def get_appointment(appointment_id: UUID, caller: CurrentCaller, service: Service):
    return AppointmentResponse.from_aggregate(service.get_appointment(appointment_id, caller))


@router.patch("/{appointment_id}", response_model=AppointmentResponse)
async def update_appointment(
    appointment_id: UUID,
    payload: AppointmentUpdate,
    caller: CurrentCaller,
    service: Service,
):
    appointment = await service.update_appointment(
        appointment_id, payload.model_dump(exclude_unset=True), caller
    )
    return AppointmentResponse.from_aggregate(appointment)


@router.delete("/{appointment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_appointment(appointment_id: UUID, caller: CurrentCaller, service: Service):
    await service.delete_appointment(appointment_id, caller)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
