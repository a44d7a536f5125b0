#!/usr/bin/env python3
"""
Script to seed the grooming catalog: species, weight classes, services and
their price/duration configurations. Safe to run repeatedly; existing rows
are left untouched.

Usage:
    python seed_catalog.py            # catalog only
    python seed_catalog.py --demo     # catalog plus demo clients and pets
"""

import logging
import sys
from decimal import Decimal
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from sqlalchemy.orm import Session

from app import models  # noqa: F401
from app.database import Base, SessionLocal, engine
from app.models import Pet, Service, ServiceConfiguration, Species, User, WeightClass

logger = logging.getLogger(__name__)

SPECIES = ["Dog", "Cat", "Rabbit"]

WEIGHT_CLASSES = ["Small", "Medium", "Large", "Extra Large"]

SERVICES = [
    {"name": "Wash", "base_price": Decimal("35.00"), "description": "Shampoo, rinse and blow dry."},
    {"name": "Haircut", "base_price": Decimal("50.00"), "description": "Breed or custom trim."},
    {"name": "Nail Trim", "base_price": Decimal("15.00"), "description": "Clip and file."},
    {"name": "Full Groom", "base_price": Decimal("80.00"), "description": "Wash, haircut, nails and ears."},
]

# (species, service) -> {weight class: (price, minutes)}
CONFIGURATIONS = {
    ("Dog", "Wash"): {
        "Small": ("40.00", 30),
        "Medium": ("50.00", 45),
        "Large": ("65.00", 60),
        "Extra Large": ("80.00", 75),
    },
    ("Dog", "Haircut"): {
        "Small": ("55.00", 45),
        "Medium": ("65.00", 60),
        "Large": ("80.00", 75),
        "Extra Large": ("95.00", 90),
    },
    ("Dog", "Nail Trim"): {
        "Small": ("15.00", 15),
        "Medium": ("15.00", 15),
        "Large": ("20.00", 20),
        "Extra Large": ("20.00", 20),
    },
    ("Dog", "Full Groom"): {
        "Small": ("85.00", 90),
        "Medium": ("100.00", 105),
        "Large": ("120.00", 120),
        "Extra Large": ("140.00", 150),
    },
    ("Cat", "Wash"): {"Small": ("45.00", 40), "Medium": ("55.00", 50)},
    ("Cat", "Nail Trim"): {"Small": ("18.00", 15), "Medium": ("18.00", 15)},
    ("Rabbit", "Nail Trim"): {"Small": ("12.00", 10)},
}

# Optional demo clients and their pets (--demo), keyed by email
DEMO_CLIENTS = [
    {
        "first_name": "Dana",
        "last_name": "Reyes",
        "phone": "+15555550100",
        "email": "dana.reyes@example.com",
        "description": "Prefers morning appointments.",
    },
    {
        "first_name": "Marcus",
        "last_name": "Bell",
        "phone": "+15555550101",
        "email": "marcus.bell@example.com",
        "description": None,
    },
]

# (name, species, weight class or None, owner email)
DEMO_PETS = [
    ("Rex", "Dog", "Small", "dana.reyes@example.com"),
    ("Bruno", "Dog", "Large", "dana.reyes@example.com"),
    ("Misty", "Cat", "Small", "marcus.bell@example.com"),
    ("Clover", "Rabbit", None, "marcus.bell@example.com"),
]


def _get_or_create(db: Session, model, lookup: dict, defaults: dict = None):
    instance = db.query(model).filter_by(**lookup).first()
    if instance:
        return instance, False
    instance = model(**lookup, **(defaults or {}))
    db.add(instance)
    db.flush()
    return instance, True


def seed(db: Session) -> dict:
    """Insert any missing catalog rows and return how many of each were created"""
    created = {"species": 0, "weight_classes": 0, "services": 0, "configurations": 0}

    species = {}
    for name in SPECIES:
        species[name], was_created = _get_or_create(db, Species, {"name": name})
        created["species"] += was_created

    weight_classes = {}
    for label in WEIGHT_CLASSES:
        weight_classes[label], was_created = _get_or_create(db, WeightClass, {"label": label})
        created["weight_classes"] += was_created

    services = {}
    for service in SERVICES:
        services[service["name"]], was_created = _get_or_create(
            db,
            Service,
            {"name": service["name"]},
            {"base_price": service["base_price"], "description": service["description"]},
        )
        created["services"] += was_created

    for (species_name, service_name), by_weight in CONFIGURATIONS.items():
        for label, (price, minutes) in by_weight.items():
            _, was_created = _get_or_create(
                db,
                ServiceConfiguration,
                {
                    "species_id": species[species_name].id,
                    "service_id": services[service_name].id,
                    "weight_class_id": weight_classes[label].id,
                },
                {"price": Decimal(price), "duration_minutes": minutes, "is_active": True},
            )
            created["configurations"] += was_created

    db.commit()
    return created


def seed_demo(db: Session) -> dict:
    """Insert demo clients and pets on top of the catalog; run seed() first"""
    created = {"users": 0, "pets": 0}

    owners = {}
    for client in DEMO_CLIENTS:
        details = {k: v for k, v in client.items() if k != "email"}
        owners[client["email"]], was_created = _get_or_create(db, User, {"email": client["email"]}, details)
        created["users"] += was_created

    species = {s.name: s for s in db.query(Species).all()}
    weight_classes = {w.label: w for w in db.query(WeightClass).all()}

    for name, species_name, label, owner_email in DEMO_PETS:
        _, was_created = _get_or_create(
            db,
            Pet,
            {"name": name, "owner_id": owners[owner_email].id},
            {
                "species_id": species[species_name].id,
                "weight_class_id": weight_classes[label].id if label else None,
            },
        )
        created["pets"] += was_created

    db.commit()
    return created


def main():
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    Base.metadata.create_all(bind=engine, checkfirst=True)

    db = SessionLocal()
    try:
        logger.info("🌱 Seeding grooming catalog...")
        created = seed(db)
        if "--demo" in sys.argv[1:]:
            logger.info("🐶 Adding demo clients and pets...")
            created.update(seed_demo(db))
        for table, count in created.items():
            logger.info(f"   ✅ {table}: {count} new")
    except Exception as e:
        db.rollback()
        logger.error(f"❌ Seed failed: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
