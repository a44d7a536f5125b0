"""Pet router - FastAPI endpoints for pet operations"""

import logging

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from ...database import get_db
from .schemas import PetCreate, PetResponse, PetUpdate
from .service import PetService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pets", tags=["Pets"])


def get_pet_service(db: Session = Depends(get_db)) -> PetService:
    """Dependency injection for PetService"""
    return PetService(db)


@router.get("", response_model=list[PetResponse])
def get_pets(service: PetService = Depends(get_pet_service)):
    return service.get_pets()


@router.get("/owner/{owner_id}", response_model=list[PetResponse])
def get_pets_by_owner(owner_id: str, service: PetService = Depends(get_pet_service)):
    """Get all pets belonging to a user"""
    return service.get_pets_by_owner(owner_id)


@router.get("/{pet_id}", response_model=PetResponse)
def get_pet(pet_id: str, service: PetService = Depends(get_pet_service)):
    return service.get_pet(pet_id)


@router.post("", response_model=PetResponse, status_code=201)
def create_pet(data: PetCreate, service: PetService = Depends(get_pet_service)):
    return service.create_pet(data)


@router.patch("/{pet_id}", response_model=PetResponse)
def update_pet(pet_id: str, data: PetUpdate, service: PetService = Depends(get_pet_service)):
    return service.update_pet(pet_id, data)


@router.delete("/{pet_id}", status_code=204)
def delete_pet(pet_id: str, service: PetService = Depends(get_pet_service)):
    service.delete_pet(pet_id)
    return Response(status_code=204)
