import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..database import get_db, transaction
from ..errors import (
    FOREIGN_KEY_VIOLATION,
    UNIQUE_VIOLATION,
    ConflictError,
    NotFoundError,
    ValidationError,
    integrity_error_code,
)
from ..models import Service
from ..shared.validators import (
    clean_description,
    normalize_name,
    validate_positive_id,
    validate_price,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/services", tags=["Services"])


class ServiceCreate(BaseModel):
    name: str
    base_price: Decimal
    description: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def validate_name(cls, v):
        return normalize_name(v, "service name")

    @field_validator("base_price", mode="before")
    @classmethod
    def validate_base_price(cls, v):
        return validate_price(v, "base price", allow_zero=False)

    @field_validator("description", mode="before")
    @classmethod
    def validate_description(cls, v):
        return clean_description(v)


class ServiceUpdate(BaseModel):
    name: Optional[str] = None
    base_price: Optional[Decimal] = None
    description: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def validate_name(cls, v):
        if v is None:
            return v
        return normalize_name(v, "service name")

    @field_validator("base_price", mode="before")
    @classmethod
    def validate_base_price(cls, v):
        if v is None:
            return v
        return validate_price(v, "base price", allow_zero=False)

    @field_validator("description", mode="before")
    @classmethod
    def validate_description(cls, v):
        return clean_description(v)


class ServiceResponse(BaseModel):
    id: int
    name: str
    base_price: Decimal
    description: Optional[str] = None
    uuid: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


def _get_service_or_404(db: Session, service_id) -> Service:
    service = db.query(Service).filter(Service.id == validate_positive_id(service_id)).first()
    if not service:
        raise NotFoundError("service not found")
    return service


@router.get("", response_model=list[ServiceResponse])
def list_services(db: Session = Depends(get_db)):
    return db.query(Service).order_by(Service.id.asc()).all()


@router.get("/{service_id}", response_model=ServiceResponse)
def get_service(service_id: str, db: Session = Depends(get_db)):
    return _get_service_or_404(db, service_id)


@router.post("", response_model=ServiceResponse, status_code=201)
def create_service(data: ServiceCreate, db: Session = Depends(get_db)):
    logger.info(f"✂️ Creating service: {data.name}")
    try:
        with transaction(db):
            service = Service(**data.model_dump())
            db.add(service)
            db.flush()
    except IntegrityError as e:
        if integrity_error_code(e) == UNIQUE_VIOLATION:
            raise ConflictError("service already exists") from e
        raise

    db.refresh(service)
    return service


@router.patch("/{service_id}", response_model=ServiceResponse)
def update_service(service_id: str, data: ServiceUpdate, db: Session = Depends(get_db)):
    updates = data.model_dump(exclude_none=True)
    if not updates:
        raise ValidationError("no fields provided for update")

    try:
        with transaction(db):
            service = _get_service_or_404(db, service_id)
            for field, value in updates.items():
                setattr(service, field, value)
            db.flush()
    except IntegrityError as e:
        if integrity_error_code(e) == UNIQUE_VIOLATION:
            raise ConflictError("service already exists") from e
        raise

    db.refresh(service)
    return service


@router.delete("/{service_id}", status_code=204)
def delete_service(service_id: str, db: Session = Depends(get_db)):
    """Delete a service; its configurations go with it, booked appointments block it"""
    try:
        with transaction(db):
            service = _get_service_or_404(db, service_id)
            db.delete(service)
            db.flush()
    except IntegrityError as e:
        if integrity_error_code(e) == FOREIGN_KEY_VIOLATION:
            raise ConflictError("cannot delete service with appointments") from e
        raise
    return Response(status_code=204)
