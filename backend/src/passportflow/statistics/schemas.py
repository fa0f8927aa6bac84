"""Pydantic schemas for the Statistics API."""

from datetime import date
from typing import List

from pydantic import BaseModel, ConfigDict


class DailyCountResponse(BaseModel):
    date: date
    count: int

    model_config = ConfigDict(from_attributes=True)


class LabeledCountResponse(BaseModel):
    label: str
    count: int

    model_config = ConfigDict(from_attributes=True)


class CountsResponse(BaseModel):
    total_count: int
    count_with_appointment: int
    count_with_renewal_indicator: int


class ApplicationStatisticsResponse(CountsResponse):
    daily_distribution: List[DailyCountResponse]
    travel_document_distribution: List[LabeledCountResponse]
    district_distribution: List[LabeledCountResponse]
    status_distribution: List[LabeledCountResponse]

    model_config = ConfigDict(from_attributes=True)
