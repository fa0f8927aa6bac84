"""Pydantic schemas for the Renewals API."""

from datetime import date, datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from ..domain.renewals.models import RenewalRequest
from ..domain.renewals.status import RenewalStatus


class RenewalCreate(BaseModel):
    """Schema for POST /renewals"""
    full_name: str = Field(..., min_length=1)
    date_of_birth: date
    nic_number: str = Field(..., min_length=1, max_length=20)
    current_passport_number: str = Field(..., min_length=1)
    current_passport_expiry_date: date
    address: str = Field(..., min_length=1)
    contact_number: str = Field(..., min_length=1)
    email: EmailStr

    model_config = ConfigDict(extra='forbid')


class RenewalUpdate(BaseModel):
    """Schema for PATCH /renewals/{id} (requester only, while PENDING)"""
    full_name: Optional[str] = Field(None, min_length=1)
    date_of_birth: Optional[date] = None
    nic_number: Optional[str] = Field(None, min_length=1, max_length=20)
    current_passport_number: Optional[str] = None
    current_passport_expiry_date: Optional[date] = None
    address: Optional[str] = None
    contact_number: Optional[str] = None
    email: Optional[EmailStr] = None

    model_config = ConfigDict(extra='forbid')


class RenewalReviewRequest(BaseModel):
    """Schema for PATCH /renewals/{id}/review"""
    status: RenewalStatus = Field(..., description="VERIFIED or REJECTED")
    admin_remarks: Optional[str] = Field(None, max_length=2000)


class RenewalResponse(BaseModel):
    id: UUID
    user_id: str
    full_name: str
    date_of_birth: date
    nic_number: str
    current_passport_number: str
    current_passport_expiry_date: date
    address: str
    contact_number: str
    email: str
    status: RenewalStatus
    documents: Dict[str, str] = Field(default_factory=dict)
    admin_remarks: Optional[str] = None
    verified_at: Optional[datetime] = None
    verified_by: Optional[str] = None
    version: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_aggregate(cls, renewal: RenewalRequest) -> "RenewalResponse":
        details = {name: getattr(renewal.details, name) for name in renewal.details.field_names()}
        return cls(
            id=renewal.id,
            user_id=renewal.user_id,
            status=renewal.status,
            documents=dict(renewal.documents),
            admin_remarks=renewal.admin_remarks,
            verified_at=renewal.verified_at,
            verified_by=renewal.verified_by,
            version=renewal.version,
            created_at=renewal.created_at,
            updated_at=renewal.updated_at,
            **details,
        )


class RenewalListResponse(BaseModel):
    items: List[RenewalResponse]
    total: int
