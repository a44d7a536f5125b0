"""Pet repository - Database operations for pets"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Pet, WeightClass


class PetRepository:
    """Repository for pet database operations"""

    @staticmethod
    def get_pets(db: Session) -> list[Pet]:
        return db.query(Pet).order_by(Pet.id.desc()).all()

    @staticmethod
    def get_pets_by_owner(db: Session, owner_id: int) -> list[Pet]:
        return db.query(Pet).filter(Pet.owner_id == owner_id).order_by(Pet.created_at.desc()).all()

    @staticmethod
    def get_pet_by_id(db: Session, pet_id: int) -> Optional[Pet]:
        return db.query(Pet).filter(Pet.id == pet_id).first()

    @staticmethod
    def lock_pet(db: Session, pet_id: int) -> Optional[Pet]:
        """
        Get a pet and hold its row lock until the current transaction ends.

        Concurrent lockers of the same pet wait here; other pets are unaffected.
        """
        return db.query(Pet).filter(Pet.id == pet_id).with_for_update().populate_existing().first()

    @staticmethod
    def weight_class_exists(db: Session, weight_class_id: int) -> bool:
        return db.query(WeightClass.id).filter(WeightClass.id == weight_class_id).first() is not None

    @staticmethod
    def add(db: Session, **pet_data) -> Pet:
        pet = Pet(**pet_data)
        db.add(pet)
        db.flush()
        return pet

    @staticmethod
    def delete(db: Session, pet: Pet) -> None:
        db.delete(pet)
        db.flush()
