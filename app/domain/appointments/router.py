"""Appointment router - FastAPI endpoints for booking operations"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from ...errors import NotFoundError, ValidationError
from .schemas import (
    AppointmentCreate,
    AppointmentReschedule,
    AppointmentResponse,
    AppointmentStatusUpdate,
)
from .service import AppointmentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointments"])


def get_appointment_service(db: Session = Depends(get_db)) -> AppointmentService:
    """Dependency injection for AppointmentService"""
    return AppointmentService(db)


@router.post("", response_model=AppointmentResponse, status_code=201)
def book_appointment(
    data: AppointmentCreate,
    service: AppointmentService = Depends(get_appointment_service),
):
    """Book an appointment; price and duration come from the pet's service configuration"""
    try:
        return service.book(
            user_id=data.user_id,
            pet_id=data.pet_id,
            service_id=data.service_id,
            start_time=data.start_time,
            description=data.description,
        )
    except NotFoundError as e:
        # A missing pet or configuration is a bad booking request, not a missing resource
        raise ValidationError(e.message) from e


@router.get("", response_model=list[AppointmentResponse])
def list_appointments(
    pet_id: Optional[str] = Query(None),
    user_id: Optional[str] = Query(None),
    include_cancelled: bool = Query(True),
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.list_appointments(pet_id, user_id, include_cancelled)


@router.get("/{appointment_id}", response_model=AppointmentResponse)
def get_appointment(
    appointment_id: str,
    service: AppointmentService = Depends(get_appointment_service),
):
    appointment = service.find_by_id(appointment_id)
    if not appointment:
        raise NotFoundError("appointment not found")
    return appointment


@router.patch("/{appointment_id}/cancel", response_model=AppointmentResponse)
def cancel_appointment(
    appointment_id: str,
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.cancel(appointment_id)


@router.patch("/{appointment_id}/reschedule", response_model=AppointmentResponse)
def reschedule_appointment(
    appointment_id: str,
    data: AppointmentReschedule,
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.reschedule(appointment_id, data.start_time)


@router.patch("/{appointment_id}/status", response_model=AppointmentResponse)
def update_appointment_status(
    appointment_id: str,
    data: AppointmentStatusUpdate,
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.transition(appointment_id, data.status)
