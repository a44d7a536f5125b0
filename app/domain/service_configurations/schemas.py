"""Service configuration schemas - Pydantic models for validation"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_duration, validate_positive_id, validate_price


class ServiceConfigurationCreate(BaseModel):
    """Schema for creating a configuration"""

    species_id: int
    service_id: int
    weight_class_id: int
    price: Decimal
    duration_minutes: int
    is_active: bool = True

    @field_validator("species_id", "service_id", "weight_class_id", mode="before")
    @classmethod
    def validate_ids(cls, v, info):
        return validate_positive_id(v, info.field_name)

    @field_validator("price", mode="before")
    @classmethod
    def validate_price_field(cls, v):
        return validate_price(v)

    @field_validator("duration_minutes", mode="before")
    @classmethod
    def validate_duration_field(cls, v):
        return validate_duration(v)


class ServiceConfigurationUpdate(BaseModel):
    """Schema for a partial configuration update"""

    price: Optional[Decimal] = None
    duration_minutes: Optional[int] = None
    is_active: Optional[bool] = None

    @field_validator("price", mode="before")
    @classmethod
    def validate_price_field(cls, v):
        if v is None:
            return v
        return validate_price(v)

    @field_validator("duration_minutes", mode="before")
    @classmethod
    def validate_duration_field(cls, v):
        if v is None:
            return v
        return validate_duration(v)


class ServiceConfigurationResponse(BaseModel):
    species_id: int
    service_id: int
    weight_class_id: int
    price: Decimal
    duration_minutes: int
    is_active: bool

    class Config:
        from_attributes = True
