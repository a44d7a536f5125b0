"""Appointment repository - Database operations for appointments"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...models import Appointment


class AppointmentRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def get_by_id(db: Session, appointment_id: int) -> Optional[Appointment]:
        return db.query(Appointment).filter(Appointment.id == appointment_id).first()

    @staticmethod
    def lock_by_id(db: Session, appointment_id: int) -> Optional[Appointment]:
        """Get an appointment and hold its row lock until the transaction ends"""
        return (
            db.query(Appointment)
            .filter(Appointment.id == appointment_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    @staticmethod
    def find_overlapping(
        db: Session,
        pet_id: int,
        start_time: datetime,
        end_time: datetime,
        exclude_id: Optional[int] = None,
    ) -> Optional[Appointment]:
        """
        Find a non-cancelled appointment of the pet whose [start, end) meets [start_time, end_time).

        Touching intervals (one ends exactly when the other starts) do not overlap.
        """
        query = db.query(Appointment).filter(
            Appointment.pet_id == pet_id,
            Appointment.status != "cancelled",
            Appointment.start_time < end_time,
            Appointment.end_time > start_time,
        )
        if exclude_id is not None:
            query = query.filter(Appointment.id != exclude_id)
        return query.order_by(Appointment.start_time).first()

    @staticmethod
    def insert(db: Session, **appointment_data) -> Appointment:
        """Stage a new appointment; constraint violations surface on this flush"""
        appointment = Appointment(**appointment_data)
        db.add(appointment)
        db.flush()
        return appointment

    @staticmethod
    def list_appointments(
        db: Session,
        pet_id: Optional[int] = None,
        user_id: Optional[int] = None,
        include_cancelled: bool = True,
    ) -> list[Appointment]:
        query = db.query(Appointment)
        if pet_id is not None:
            query = query.filter(Appointment.pet_id == pet_id)
        if user_id is not None:
            query = query.filter(Appointment.user_id == user_id)
        if not include_cancelled:
            query = query.filter(Appointment.status != "cancelled")
        return query.order_by(Appointment.start_time, Appointment.id).all()
