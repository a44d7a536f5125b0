"""Pet domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import normalize_name, validate_positive_id


class PetCreate(BaseModel):
    """Schema for creating a new pet"""

    name: str
    species_id: int
    owner_id: int
    weight_class_id: Optional[int] = None

    @field_validator("name", mode="before")
    @classmethod
    def validate_name(cls, v):
        return normalize_name(v, "pet name")

    @field_validator("species_id", "owner_id", mode="before")
    @classmethod
    def validate_ids(cls, v, info):
        return validate_positive_id(v, info.field_name)

    @field_validator("weight_class_id", mode="before")
    @classmethod
    def validate_weight_class(cls, v):
        if v is None:
            return v
        return validate_positive_id(v, "weight_class_id")


class PetUpdate(BaseModel):
    """Schema for a partial pet update"""

    name: Optional[str] = None
    species_id: Optional[int] = None
    weight_class_id: Optional[int] = None

    @field_validator("name", mode="before")
    @classmethod
    def validate_name(cls, v):
        if v is None:
            return v
        return normalize_name(v, "pet name")

    @field_validator("species_id", "weight_class_id", mode="before")
    @classmethod
    def validate_ids(cls, v, info):
        if v is None:
            return v
        return validate_positive_id(v, info.field_name)


class PetResponse(BaseModel):
    id: int
    name: str
    species_id: int
    weight_class_id: Optional[int] = None
    owner_id: int
    uuid: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
