"""Service configuration router - FastAPI endpoints for price/duration configuration"""

import logging

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from ...database import get_db
from .schemas import (
    ServiceConfigurationCreate,
    ServiceConfigurationResponse,
    ServiceConfigurationUpdate,
)
from .service import ServiceConfigurationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/service-configurations", tags=["Service Configurations"])


def get_configuration_service(db: Session = Depends(get_db)) -> ServiceConfigurationService:
    """Dependency injection for ServiceConfigurationService"""
    return ServiceConfigurationService(db)


@router.get("", response_model=ServiceConfigurationResponse)
def get_configuration(
    species_id: str = Query(...),
    service_id: str = Query(...),
    weight_class_id: str = Query(...),
    service: ServiceConfigurationService = Depends(get_configuration_service),
):
    """Get a single configuration by composite key"""
    return service.get_configuration(species_id, service_id, weight_class_id)


@router.get("/service/{service_id}", response_model=list[ServiceConfigurationResponse])
def get_configurations_by_service(
    service_id: str,
    service: ServiceConfigurationService = Depends(get_configuration_service),
):
    """List every configuration of a service"""
    return service.list_by_service(service_id)


@router.post("", response_model=ServiceConfigurationResponse, status_code=201)
def create_configuration(
    data: ServiceConfigurationCreate,
    service: ServiceConfigurationService = Depends(get_configuration_service),
):
    return service.create_configuration(data)


@router.patch("", response_model=ServiceConfigurationResponse)
def update_configuration(
    data: ServiceConfigurationUpdate,
    species_id: str = Query(...),
    service_id: str = Query(...),
    weight_class_id: str = Query(...),
    service: ServiceConfigurationService = Depends(get_configuration_service),
):
    """Partially update price, duration or active flag"""
    return service.update_configuration(species_id, service_id, weight_class_id, data)


@router.delete("", status_code=204)
def delete_configuration(
    species_id: str = Query(...),
    service_id: str = Query(...),
    weight_class_id: str = Query(...),
    service: ServiceConfigurationService = Depends(get_configuration_service),
):
    service.delete_configuration(species_id, service_id, weight_class_id)
    return Response(status_code=204)
