"""Pydantic schemas for the Appointments API."""

from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ..domain.appointments.models import Appointment, AppointmentLocation
from ..domain.appointments.status import AppointmentStatus


class AppointmentCreate(BaseModel):
    """Schema for POST /appointments"""
    full_name: str = Field(..., min_length=1)
    permanent_address: str = Field(..., min_length=1)
    nic_number: str = Field(..., min_length=1, max_length=20)
    contact_number: str = Field(..., min_length=1)
    preferred_location: AppointmentLocation
    preferred_date: date
    preferred_time: str = Field(..., description="Grid time, HH:MM")
    reason: str = Field(..., min_length=1)

    model_config = ConfigDict(extra='forbid')


class AppointmentUpdate(BaseModel):
    """Schema for PATCH /appointments/{id}

    Applicants may send only the slot fields, ``contact_number`` and
    ``reason``; anything else they send is ignored.
    """
    full_name: Optional[str] = Field(None, min_length=1)
    permanent_address: Optional[str] = Field(None, min_length=1)
    nic_number: Optional[str] = Field(None, min_length=1, max_length=20)
    contact_number: Optional[str] = Field(None, min_length=1)
    preferred_location: Optional[AppointmentLocation] = None
    preferred_date: Optional[date] = None
    preferred_time: Optional[str] = None
    reason: Optional[str] = Field(None, min_length=1)
    status: Optional[AppointmentStatus] = None
    rejection_reason: Optional[str] = Field(None, max_length=2000)
    admin_notes: Optional[str] = Field(None, max_length=2000)
    is_time_slot_confirmed: Optional[bool] = None

    model_config = ConfigDict(extra='forbid')


class AppointmentResponse(BaseModel):
    id: UUID
    appointment_id: str = Field(..., description="Booking reference, e.g. APT-20250314-COL-0930-3FA")
    created_by: str
    full_name: str
    permanent_address: str
    nic_number: str
    contact_number: str
    reason: str
    preferred_location: AppointmentLocation
    preferred_date: date
    preferred_time: str
    status: AppointmentStatus
    rejection_reason: Optional[str] = None
    admin_notes: Optional[str] = None
    is_time_slot_confirmed: bool
    version: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_aggregate(cls, appointment: Appointment) -> "AppointmentResponse":
        details = {
            name: getattr(appointment.details, name)
            for name in appointment.details.field_names()
        }
        return cls(
            id=appointment.id,
            appointment_id=appointment.reference,
            created_by=appointment.created_by,
            preferred_location=appointment.slot.location,
            preferred_date=appointment.slot.date,
            preferred_time=appointment.slot.time,
            status=appointment.status,
            rejection_reason=appointment.rejection_reason,
            admin_notes=appointment.admin_notes,
            is_time_slot_confirmed=appointment.is_time_slot_confirmed,
            version=appointment.version,
            created_at=appointment.created_at,
            updated_at=appointment.updated_at,
            **details,
        )


class AppointmentListResponse(BaseModel):
    items: List[AppointmentResponse]
    total: int


class AvailableSlotsResponse(BaseModel):
    date: date
    location: AppointmentLocation
    slots: List[str]
