import os
from decimal import Decimal
from types import SimpleNamespace

# Must be set before the app modules read their configuration
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECURITY_HEADERS_ENABLED"] = "true"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, configure_engine, get_db
from app.main import app
from app.models import Pet, Service, ServiceConfiguration, Species, User, WeightClass

test_engine = configure_engine(
    create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=test_engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def client(db):
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def catalog(db):
    """
    Dog/Small/Wash priced at 40 for 30 minutes, plus a second pet and an
    unclassified pet, committed so request sessions can see them.
    """
    owner = User(first_name="Dana", last_name="Reyes", phone="+15555550100", email="dana@example.com")
    dog = Species(name="Dog")
    cat = Species(name="Cat")
    small = WeightClass(label="Small")
    large = WeightClass(label="Large")
    wash = Service(name="Wash", base_price=Decimal("35.00"))
    haircut = Service(name="Haircut", base_price=Decimal("50.00"))
    db.add_all([owner, dog, cat, small, large, wash, haircut])
    db.flush()

    db.add_all(
        [
            ServiceConfiguration(
                species_id=dog.id,
                service_id=wash.id,
                weight_class_id=small.id,
                price=Decimal("40.00"),
                duration_minutes=30,
            ),
            ServiceConfiguration(
                species_id=dog.id,
                service_id=wash.id,
                weight_class_id=large.id,
                price=Decimal("65.00"),
                duration_minutes=60,
            ),
            ServiceConfiguration(
                species_id=dog.id,
                service_id=haircut.id,
                weight_class_id=small.id,
                price=Decimal("55.00"),
                duration_minutes=45,
                is_active=False,
            ),
        ]
    )

    rex = Pet(name="Rex", species_id=dog.id, weight_class_id=small.id, owner_id=owner.id)
    bruno = Pet(name="Bruno", species_id=dog.id, weight_class_id=large.id, owner_id=owner.id)
    misty = Pet(name="Misty", species_id=cat.id, weight_class_id=None, owner_id=owner.id)
    db.add_all([rex, bruno, misty])
    db.flush()

    # Read ids before committing: touching expired attributes afterwards would
    # reopen a transaction on the connection the request sessions share
    ids = SimpleNamespace(
        user_id=owner.id,
        dog_id=dog.id,
        cat_id=cat.id,
        small_id=small.id,
        large_id=large.id,
        wash_id=wash.id,
        haircut_id=haircut.id,
        rex_id=rex.id,
        bruno_id=bruno.id,
        misty_id=misty.id,
    )
    db.commit()
    return ids
