"""Service configuration service - Business logic for price/duration configuration"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...database import transaction
from ...errors import (
    FOREIGN_KEY_VIOLATION,
    UNIQUE_VIOLATION,
    ConflictError,
    NotFoundError,
    ReferentialViolationError,
    ValidationError,
    integrity_error_code,
)
from ...models import ServiceConfiguration
from ...shared.validators import validate_positive_id
from .repository import ServiceConfigurationRepository
from .schemas import ServiceConfigurationCreate, ServiceConfigurationUpdate

logger = logging.getLogger(__name__)


def _validate_key(species_id, service_id, weight_class_id) -> tuple[int, int, int]:
    return (
        validate_positive_id(species_id, "species_id"),
        validate_positive_id(service_id, "service_id"),
        validate_positive_id(weight_class_id, "weight_class_id"),
    )


class ServiceConfigurationService:
    """Service layer for configuration lookups and maintenance"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ServiceConfigurationRepository()

    def get_active(
        self, species_id: int, service_id: int, weight_class_id: Optional[int]
    ) -> Optional[ServiceConfiguration]:
        """
        Resolve the active price/duration for a triple.

        Pure read: runs inside whatever transaction the caller has open and
        never creates a configuration. Returns None when nothing active matches.
        """
        return self.repo.get_active(self.db, species_id, service_id, weight_class_id)

    def get_configuration(self, species_id, service_id, weight_class_id) -> ServiceConfiguration:
        key = _validate_key(species_id, service_id, weight_class_id)
        config = self.repo.get(self.db, *key)
        if not config:
            raise NotFoundError("configuration not found")
        return config

    def list_by_service(self, service_id) -> list[ServiceConfiguration]:
        return self.repo.list_by_service(self.db, validate_positive_id(service_id, "service_id"))

    def create_configuration(self, data: ServiceConfigurationCreate) -> ServiceConfiguration:
        logger.info(
            f"💲 Creating configuration species={data.species_id} service={data.service_id} "
            f"weight_class={data.weight_class_id}"
        )
        try:
            with transaction(self.db):
                config = self.repo.add(self.db, **data.model_dump())
        except IntegrityError as e:
            code = integrity_error_code(e)
            if code == UNIQUE_VIOLATION:
                raise ConflictError("configuration already exists") from e
            if code == FOREIGN_KEY_VIOLATION:
                raise ReferentialViolationError("invalid species, service, or weight class") from e
            raise

        self.db.refresh(config)
        return config

    def update_configuration(
        self, species_id, service_id, weight_class_id, data: ServiceConfigurationUpdate
    ) -> ServiceConfiguration:
        key = _validate_key(species_id, service_id, weight_class_id)
        updates = data.model_dump(exclude_none=True)
        if not updates:
            raise ValidationError("no fields provided for update")

        with transaction(self.db):
            config = self.repo.get(self.db, *key)
            if not config:
                raise NotFoundError("configuration not found")
            for field, value in updates.items():
                setattr(config, field, value)

        # Existing appointments keep their snapshot; only future bookings see this
        logger.info(f"💲 Updated configuration {key}: {updates}")
        self.db.refresh(config)
        return config

    def delete_configuration(self, species_id, service_id, weight_class_id) -> None:
        key = _validate_key(species_id, service_id, weight_class_id)
        with transaction(self.db):
            config = self.repo.get(self.db, *key)
            if not config:
                raise NotFoundError("configuration not found")
            self.repo.delete(self.db, config)
        logger.info(f"🗑️ Deleted configuration {key}")
