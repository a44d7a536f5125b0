"""Pet service - Business logic for pet operations"""

import logging
from typing import NamedTuple, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...database import transaction
from ...errors import (
    FOREIGN_KEY_VIOLATION,
    ConflictError,
    NotFoundError,
    ReferentialViolationError,
    ValidationError,
    integrity_error_code,
)
from ...models import Pet
from ...shared.validators import validate_positive_id
from .repository import PetRepository
from .schemas import PetCreate, PetUpdate

logger = logging.getLogger(__name__)


class PetClassification(NamedTuple):
    """The pet attributes that select a service configuration"""

    pet_id: int
    species_id: int
    weight_class_id: Optional[int]


class PetService:
    """Service layer for pet business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = PetRepository()

    def lock_and_get_classification(self, pet_id: int) -> PetClassification:
        """
        Lock the pet row inside the caller's open transaction and return its classification.

        Raises:
            NotFoundError: no pet with this id
        """
        pet = self.repo.lock_pet(self.db, pet_id)
        if not pet:
            raise NotFoundError("pet not found")
        return PetClassification(pet.id, pet.species_id, pet.weight_class_id)

    def get_pets(self) -> list[Pet]:
        return self.repo.get_pets(self.db)

    def get_pets_by_owner(self, owner_id) -> list[Pet]:
        return self.repo.get_pets_by_owner(self.db, validate_positive_id(owner_id, "owner_id"))

    def get_pet(self, pet_id) -> Pet:
        pet = self.repo.get_pet_by_id(self.db, validate_positive_id(pet_id))
        if not pet:
            raise NotFoundError("pet not found")
        return pet

    def _ensure_weight_class(self, weight_class_id: Optional[int]) -> None:
        if weight_class_id is not None and not self.repo.weight_class_exists(self.db, weight_class_id):
            raise ValidationError("invalid weight class")

    def create_pet(self, data: PetCreate) -> Pet:
        logger.info(f"🐾 Creating pet '{data.name}' for owner {data.owner_id}")
        try:
            with transaction(self.db):
                self._ensure_weight_class(data.weight_class_id)
                pet = self.repo.add(self.db, **data.model_dump())
        except IntegrityError as e:
            if integrity_error_code(e) == FOREIGN_KEY_VIOLATION:
                raise ReferentialViolationError("invalid species or owner") from e
            raise

        self.db.refresh(pet)
        return pet

    def update_pet(self, pet_id, data: PetUpdate) -> Pet:
        """
        Partially update a pet.

        Reclassifying species or weight class only affects future bookings;
        booked appointments keep their price and duration snapshot.
        """
        pet_id = validate_positive_id(pet_id)
        updates = data.model_dump(exclude_none=True)
        if not updates:
            raise ValidationError("no fields provided for update")

        try:
            with transaction(self.db):
                pet = self.repo.lock_pet(self.db, pet_id)
                if not pet:
                    raise NotFoundError("pet not found")
                self._ensure_weight_class(updates.get("weight_class_id"))
                for field, value in updates.items():
                    setattr(pet, field, value)
                self.db.flush()
        except IntegrityError as e:
            if integrity_error_code(e) == FOREIGN_KEY_VIOLATION:
                raise ReferentialViolationError("invalid species") from e
            raise

        self.db.refresh(pet)
        return pet

    def delete_pet(self, pet_id) -> None:
        pet_id = validate_positive_id(pet_id)
        try:
            with transaction(self.db):
                pet = self.repo.get_pet_by_id(self.db, pet_id)
                if not pet:
                    raise NotFoundError("pet not found")
                self.repo.delete(self.db, pet)
        except IntegrityError as e:
            # Appointments are never hard-deleted, so a pet with history stays
            if integrity_error_code(e) == FOREIGN_KEY_VIOLATION:
                raise ConflictError("cannot delete pet with appointments") from e
            raise
        logger.info(f"🗑️ Deleted pet {pet_id}")
