"""
Appointment service - the booking engine

Booking and rescheduling each run as one transaction that performs every read
its write depends on:

    lock pet row -> resolve configuration -> compute end time -> check overlap -> write

The pet row lock serializes work for one pet; bookings for different pets do
not wait on each other. The storage-level exclusion constraint (PostgreSQL,
see models.py) is the final word on overlap. Where the database has no such
constraint the explicit overlap query, run under the same lock, stands in
for it.

Every failure rolls the transaction back before the error is translated and
re-raised. Nothing is retried here; offering another slot is up to the caller.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...database import set_lock_timeout, transaction
from ...errors import (
    EXCLUSION_VIOLATION,
    FOREIGN_KEY_VIOLATION,
    ConflictError,
    NotFoundError,
    ReferentialViolationError,
    ValidationError,
    integrity_error_code,
)
from ...models import APPOINTMENT_STATUSES, Appointment
from ...shared.validators import add_minutes, parse_timestamp, validate_positive_id
from ..pets.service import PetService
from ..service_configurations.service import ServiceConfigurationService
from .repository import AppointmentRepository

logger = logging.getLogger(__name__)

BOOKING_OVERLAP_MESSAGE = "appointment overlaps existing booking"
RESCHEDULE_OVERLAP_MESSAGE = "new time overlaps existing booking"

# Finished visits keep their recorded time
NON_RESCHEDULABLE_STATUSES = {"completed", "no_show"}

ALLOWED_TRANSITIONS = {
    "booked": {"confirmed", "completed", "no_show", "cancelled"},
    "confirmed": {"completed", "no_show", "cancelled"},
    "completed": set(),
    "no_show": set(),
    # Only reschedule brings a cancelled appointment back
    "cancelled": set(),
}


class AppointmentService:
    """Service layer for appointment booking, rescheduling and cancellation"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AppointmentRepository()
        self.pets = PetService(db)
        self.configurations = ServiceConfigurationService(db)

    def _ensure_slot_free(
        self,
        pet_id: int,
        start_time: datetime,
        end_time: datetime,
        message: str,
        exclude_id: Optional[int] = None,
    ) -> None:
        clash = self.repo.find_overlapping(self.db, pet_id, start_time, end_time, exclude_id)
        if clash:
            logger.warning(
                f"⚠️ Pet {pet_id} slot {start_time.isoformat()} - {end_time.isoformat()} "
                f"clashes with appointment {clash.id}"
            )
            raise ConflictError(message)

    def book(
        self,
        user_id,
        pet_id,
        service_id,
        start_time,
        description: Optional[str] = None,
    ) -> Appointment:
        """
        Book an appointment, capturing the configuration's price and duration.

        Raises:
            ValidationError: malformed id or start time
            NotFoundError: unknown pet, or no active configuration for the pet's classification
            ConflictError: the slot overlaps another non-cancelled appointment of the pet
            ReferentialViolationError: unknown user or service
        """
        user_id = validate_positive_id(user_id, "user_id")
        pet_id = validate_positive_id(pet_id, "pet_id")
        service_id = validate_positive_id(service_id, "service_id")
        start = parse_timestamp(start_time)

        logger.info(f"📅 Booking service {service_id} for pet {pet_id} at {start.isoformat()}")

        try:
            with transaction(self.db):
                set_lock_timeout(self.db)

                pet = self.pets.lock_and_get_classification(pet_id)

                config = self.configurations.get_active(
                    pet.species_id, service_id, pet.weight_class_id
                )
                if not config:
                    logger.warning(
                        f"⚠️ No active configuration for species={pet.species_id} "
                        f"service={service_id} weight_class={pet.weight_class_id}"
                    )
                    raise NotFoundError("service configuration not found")

                end = add_minutes(start, config.duration_minutes)
                self._ensure_slot_free(pet_id, start, end, BOOKING_OVERLAP_MESSAGE)

                appointment = self.repo.insert(
                    self.db,
                    user_id=user_id,
                    pet_id=pet_id,
                    service_id=service_id,
                    start_time=start,
                    end_time=end,
                    status="booked",
                    price_snapshot=config.price,
                    duration_snapshot=config.duration_minutes,
                    description=description,
                )
        except IntegrityError as e:
            code = integrity_error_code(e)
            if code == EXCLUSION_VIOLATION:
                logger.warning(f"⚠️ Exclusion constraint rejected booking for pet {pet_id}")
                raise ConflictError(BOOKING_OVERLAP_MESSAGE) from e
            if code == FOREIGN_KEY_VIOLATION:
                raise ReferentialViolationError("invalid user, pet, or service") from e
            logger.error(f"❌ Booking failed for pet {pet_id}: {e}")
            raise

        self.db.refresh(appointment)
        logger.info(f"✅ Booked appointment {appointment.id} for pet {pet_id}")
        return appointment

    def find_by_id(self, appointment_id) -> Optional[Appointment]:
        return self.repo.get_by_id(self.db, validate_positive_id(appointment_id))

    def list_appointments(
        self, pet_id=None, user_id=None, include_cancelled: bool = True
    ) -> list[Appointment]:
        if pet_id is not None:
            pet_id = validate_positive_id(pet_id, "pet_id")
        if user_id is not None:
            user_id = validate_positive_id(user_id, "user_id")
        return self.repo.list_appointments(self.db, pet_id, user_id, include_cancelled)

    def cancel(self, appointment_id) -> Appointment:
        """
        Mark an appointment cancelled.

        Applies to any status and is idempotent in effect. Cancelling only
        frees time on the pet's timeline, so no overlap check is needed.
        """
        appointment_id = validate_positive_id(appointment_id)

        with transaction(self.db):
            appointment = self.repo.get_by_id(self.db, appointment_id)
            if not appointment:
                raise NotFoundError("appointment not found")
            appointment.status = "cancelled"

        self.db.refresh(appointment)
        logger.info(f"🚫 Cancelled appointment {appointment_id}")
        return appointment

    def reschedule(self, appointment_id, new_start_time) -> Appointment:
        """
        Move an appointment to a new start time, keeping its duration snapshot.

        The status is reset to booked, which also revives a cancelled
        appointment. Completed and no-show appointments cannot be moved.
        """
        appointment_id = validate_positive_id(appointment_id)
        start = parse_timestamp(new_start_time)

        try:
            with transaction(self.db):
                set_lock_timeout(self.db)

                current = self.repo.get_by_id(self.db, appointment_id)
                if not current:
                    raise NotFoundError("appointment not found")

                # Same lock order as booking: pet first, then the appointment
                self.pets.lock_and_get_classification(current.pet_id)
                appointment = self.repo.lock_by_id(self.db, appointment_id)
                if not appointment:
                    raise NotFoundError("appointment not found")

                if appointment.status in NON_RESCHEDULABLE_STATUSES:
                    raise ValidationError(
                        f"cannot reschedule a {appointment.status} appointment"
                    )

                end = add_minutes(start, appointment.duration_snapshot)
                self._ensure_slot_free(
                    appointment.pet_id, start, end, RESCHEDULE_OVERLAP_MESSAGE, exclude_id=appointment.id
                )

                appointment.start_time = start
                appointment.end_time = end
                appointment.status = "booked"
                self.db.flush()
        except IntegrityError as e:
            if integrity_error_code(e) == EXCLUSION_VIOLATION:
                logger.warning(f"⚠️ Exclusion constraint rejected reschedule of {appointment_id}")
                raise ConflictError(RESCHEDULE_OVERLAP_MESSAGE) from e
            logger.error(f"❌ Reschedule failed for appointment {appointment_id}: {e}")
            raise

        self.db.refresh(appointment)
        logger.info(f"🔁 Rescheduled appointment {appointment_id} to {start.isoformat()}")
        return appointment

    def transition(self, appointment_id, status: str) -> Appointment:
        """Advance an appointment through its lifecycle (confirm, complete, no-show, cancel)"""
        appointment_id = validate_positive_id(appointment_id)
        if status not in APPOINTMENT_STATUSES:
            raise ValidationError("invalid status")

        with transaction(self.db):
            appointment = self.repo.lock_by_id(self.db, appointment_id)
            if not appointment:
                raise NotFoundError("appointment not found")

            if status not in ALLOWED_TRANSITIONS[appointment.status]:
                raise ValidationError(
                    f"cannot change status from {appointment.status} to {status}"
                )
            appointment.status = status

        self.db.refresh(appointment)
        logger.info(f"📌 Appointment {appointment_id} is now {status}")
        return appointment
