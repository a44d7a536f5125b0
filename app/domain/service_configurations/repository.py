"""Service configuration repository - Database operations for price/duration lookups"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import ServiceConfiguration


class ServiceConfigurationRepository:
    """Repository for service configuration database operations"""

    @staticmethod
    def get(
        db: Session, species_id: int, service_id: int, weight_class_id: int
    ) -> Optional[ServiceConfiguration]:
        """Get a configuration by its composite key, active or not"""
        return (
            db.query(ServiceConfiguration)
            .filter(
                ServiceConfiguration.species_id == species_id,
                ServiceConfiguration.service_id == service_id,
                ServiceConfiguration.weight_class_id == weight_class_id,
            )
            .first()
        )

    @staticmethod
    def get_active(
        db: Session, species_id: int, service_id: int, weight_class_id: Optional[int]
    ) -> Optional[ServiceConfiguration]:
        """Get the active configuration for a (species, service, weight class) triple"""
        if weight_class_id is None:
            return None
        return (
            db.query(ServiceConfiguration)
            .filter(
                ServiceConfiguration.species_id == species_id,
                ServiceConfiguration.service_id == service_id,
                ServiceConfiguration.weight_class_id == weight_class_id,
                ServiceConfiguration.is_active.is_(True),
            )
            .first()
        )

    @staticmethod
    def list_by_service(db: Session, service_id: int) -> list[ServiceConfiguration]:
        return (
            db.query(ServiceConfiguration)
            .filter(ServiceConfiguration.service_id == service_id)
            .order_by(ServiceConfiguration.species_id, ServiceConfiguration.weight_class_id)
            .all()
        )

    @staticmethod
    def add(db: Session, **config_data) -> ServiceConfiguration:
        """Stage a new configuration; the caller owns the transaction"""
        config = ServiceConfiguration(**config_data)
        db.add(config)
        db.flush()
        return config

    @staticmethod
    def delete(db: Session, config: ServiceConfiguration) -> None:
        db.delete(config)
        db.flush()
