import logging

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
    integrity_error_code,
)
from ..models import WeightClass
from ..shared.validators import normalize_name, validate_positive_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/weight-classes", tags=["Weight Classes"])


class WeightClassCreate(BaseModel):
    label: str

    @field_validator("label", mode="before")
    @classmethod
    def validate_label(cls, v):
        return normalize_name(v, "weight class label")


class WeightClassResponse(BaseModel):
    id: int
    label: str

    class Config:
        from_attributes = True


def _get_weight_class_or_404(db: Session, weight_class_id) -> WeightClass:
    weight_class = (
        db.query(WeightClass).filter(WeightClass.id == validate_positive_id(weight_class_id)).first()
    )
    if not weight_class:
        raise NotFoundError("weight class not found")
    return weight_class


@router.get("", response_model=list[WeightClassResponse])
def list_weight_classes(db: Session = Depends(get_db)):
    return db.query(WeightClass).order_by(WeightClass.id.asc()).all()


@router.get("/{weight_class_id}", response_model=WeightClassResponse)
def get_weight_class(weight_class_id: str, db: Session = Depends(get_db)):
    return _get_weight_class_or_404(db, weight_class_id)


@router.post("", response_model=WeightClassResponse, status_code=201)
def create_weight_class(data: WeightClassCreate, db: Session = Depends(get_db)):
    try:
        with transaction(db):
            weight_class = WeightClass(label=data.label)
            db.add(weight_class)
            db.flush()
    except IntegrityError as e:
        if integrity_error_code(e) == UNIQUE_VIOLATION:
            raise ConflictError("weight class already exists") from e
        raise

    db.refresh(weight_class)
    return weight_class


@router.delete("/{weight_class_id}", status_code=204)
def delete_weight_class(weight_class_id: str, db: Session = Depends(get_db)):
    """Delete a weight class that no pet references"""
    try:
        with transaction(db):
            weight_class = _get_weight_class_or_404(db, weight_class_id)
            db.delete(weight_class)
            db.flush()
    except IntegrityError as e:
        if integrity_error_code(e) == FOREIGN_KEY_VIOLATION:
            raise ConflictError("cannot delete weight class in use") from e
        raise
    return Response(status_code=204)
