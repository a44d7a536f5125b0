import uuid

from sqlalchemy import (
    DDL,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    event,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

APPOINTMENT_STATUSES = ("booked", "confirmed", "completed", "cancelled", "no_show")


def generate_public_id():
    """Generate a unique public ID for secure public access"""
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(60), nullable=False)
    last_name = Column(String(60), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=True)  # Stored lower-cased
    phone = Column(String(20), nullable=False)  # E.164
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    pets = relationship("Pet", back_populates="owner", cascade="all, delete-orphan", passive_deletes=True)


class Species(Base):
    __tablename__ = "species"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(60), unique=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class WeightClass(Base):
    __tablename__ = "weight_classes"

    id = Column(Integer, primary_key=True, index=True)
    label = Column(String(60), unique=True, nullable=False)  # e.g. Small, Medium, Large


class Service(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(60), unique=True, nullable=False)
    base_price = Column(Numeric(10, 2), nullable=False)  # Catalog price; bookings use configuration price
    description = Column(Text, nullable=True)
    uuid = Column(String(36), unique=True, default=generate_public_id)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Pet(Base):
    __tablename__ = "pets"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(60), nullable=False)
    species_id = Column(Integer, ForeignKey("species.id"), nullable=False, index=True)
    # Unclassified pets cannot be booked until a weight class is assigned
    weight_class_id = Column(Integer, ForeignKey("weight_classes.id"), nullable=True)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    uuid = Column(String(36), unique=True, default=generate_public_id)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    owner = relationship("User", back_populates="pets")
    species = relationship("Species")
    weight_class = relationship("WeightClass")


class ServiceConfiguration(Base):
    """Price and duration for one (species, service, weight class) combination"""

    __tablename__ = "service_configurations"

    species_id = Column(Integer, ForeignKey("species.id", ondelete="CASCADE"), primary_key=True)
    service_id = Column(Integer, ForeignKey("services.id", ondelete="CASCADE"), primary_key=True)
    weight_class_id = Column(
        Integer, ForeignKey("weight_classes.id", ondelete="CASCADE"), primary_key=True
    )
    price = Column(Numeric(10, 2), nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    __table_args__ = (
        CheckConstraint("price >= 0", name="service_configurations_price_check"),
        CheckConstraint("duration_minutes > 0", name="service_configurations_duration_check"),
    )


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    pet_id = Column(Integer, ForeignKey("pets.id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=False)
    status = Column(String(20), default="booked", nullable=False)
    # Copied from the configuration at booking time, never recomputed
    price_snapshot = Column(Numeric(10, 2), nullable=False)
    duration_snapshot = Column(Integer, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("end_time > start_time", name="appointments_time_order_check"),
        CheckConstraint("price_snapshot >= 0", name="appointments_price_snapshot_check"),
        CheckConstraint("duration_snapshot > 0", name="appointments_duration_snapshot_check"),
        CheckConstraint(
            "status IN ('booked', 'confirmed', 'completed', 'cancelled', 'no_show')",
            name="appointments_status_check",
        ),
    )


# PostgreSQL enforces the no-overlap rule itself: no two non-cancelled
# appointments for the same pet may share any instant of [start_time, end_time).
event.listen(
    Appointment.__table__,
    "before_create",
    DDL("CREATE EXTENSION IF NOT EXISTS btree_gist").execute_if(dialect="postgresql"),
)
event.listen(
    Appointment.__table__,
    "after_create",
    DDL(
        "ALTER TABLE appointments ADD CONSTRAINT appointments_no_overlap "
        "EXCLUDE USING gist (pet_id WITH =, tstzrange(start_time, end_time, '[)') WITH &&) "
        "WHERE (status <> 'cancelled')"
    ).execute_if(dialect="postgresql"),
)
