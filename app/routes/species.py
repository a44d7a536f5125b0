import logging
from datetime import datetime
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
    integrity_error_code,
)
from ..models import Species
from ..shared.validators import normalize_name, validate_positive_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/species", tags=["Species"])


class SpeciesRequest(BaseModel):
    name: str

    @field_validator("name", mode="before")
    @classmethod
    def validate_name(cls, v):
        return normalize_name(v, "species name")


class SpeciesResponse(BaseModel):
    id: int
    name: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


def _get_species_or_404(db: Session, species_id) -> Species:
    species = db.query(Species).filter(Species.id == validate_positive_id(species_id)).first()
    if not species:
        raise NotFoundError("species not found")
    return species


@router.get("", response_model=list[SpeciesResponse])
def list_species(db: Session = Depends(get_db)):
    return db.query(Species).order_by(Species.name.asc()).all()


@router.get("/{species_id}", response_model=SpeciesResponse)
def get_species(species_id: str, db: Session = Depends(get_db)):
    return _get_species_or_404(db, species_id)


@router.post("", response_model=SpeciesResponse, status_code=201)
def create_species(data: SpeciesRequest, db: Session = Depends(get_db)):
    try:
        with transaction(db):
            species = Species(name=data.name)
            db.add(species)
            db.flush()
    except IntegrityError as e:
        if integrity_error_code(e) == UNIQUE_VIOLATION:
            raise ConflictError("species already exists") from e
        raise

    db.refresh(species)
    return species


@router.put("/{species_id}", response_model=SpeciesResponse)
def rename_species(species_id: str, data: SpeciesRequest, db: Session = Depends(get_db)):
    try:
        with transaction(db):
            species = _get_species_or_404(db, species_id)
            species.name = data.name
            db.flush()
    except IntegrityError as e:
        if integrity_error_code(e) == UNIQUE_VIOLATION:
            raise ConflictError("species already exists") from e
        raise

    db.refresh(species)
    return species


@router.delete("/{species_id}", status_code=204)
def delete_species(species_id: str, db: Session = Depends(get_db)):
    """Delete a species that no pet references"""
    try:
        with transaction(db):
            species = _get_species_or_404(db, species_id)
            db.delete(species)
            db.flush()
    except IntegrityError as e:
        if integrity_error_code(e) == FOREIGN_KEY_VIOLATION:
            raise ConflictError("cannot delete species in use") from e
        raise
    return Response(status_code=204)
