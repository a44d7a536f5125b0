"""Appointment domain schemas - Pydantic models for validation"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, field_validator

from ...errors import ValidationError
from ...models import APPOINTMENT_STATUSES
from ...shared.validators import (
    as_utc,
    clean_description,
    parse_timestamp,
    validate_positive_id,
)


class AppointmentCreate(BaseModel):
    """Schema for booking an appointment"""

    user_id: int
    pet_id: int
    service_id: int
    start_time: datetime
    description: Optional[str] = None

    @field_validator("user_id", "pet_id", "service_id", mode="before")
    @classmethod
    def validate_ids(cls, v, info):
        return validate_positive_id(v, info.field_name)

    @field_validator("start_time", mode="before")
    @classmethod
    def validate_start_time(cls, v):
        return parse_timestamp(v)

    @field_validator("description", mode="before")
    @classmethod
    def validate_description(cls, v):
        return clean_description(v)


class AppointmentReschedule(BaseModel):
    start_time: datetime

    @field_validator("start_time", mode="before")
    @classmethod
    def validate_start_time(cls, v):
        return parse_timestamp(v)


class AppointmentStatusUpdate(BaseModel):
    status: str

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, v):
        if not isinstance(v, str) or v.strip().lower() not in APPOINTMENT_STATUSES:
            raise ValidationError("invalid status")
        return v.strip().lower()


class AppointmentResponse(BaseModel):
    """Schema for appointment response"""

    id: int
    user_id: int
    pet_id: int
    service_id: int
    start_time: datetime
    end_time: datetime
    status: str
    price_snapshot: Decimal
    duration_snapshot: int
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("start_time", "end_time", "created_at", "updated_at")
    @classmethod
    def normalize_timezone(cls, v):
        # SQLite hands back naive values; everything is stored in UTC
        return as_utc(v)

    class Config:
        from_attributes = True
