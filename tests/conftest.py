# tests/conftest.py
"""
Shared fixtures: an in-memory SQLite database per test, seeded users, vehicles
and drivers, and a TestClient wired to the same session.
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from datetime import date
from types import SimpleNamespace
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from carrental.database import Base, get_db
from carrental.models import User, Vehicle, Driver
from carrental.schemas.booking import BookingCreate
from carrental.main import app

test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
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
def seed(db):
    """Admin, employee, stakeholder (20% commission), two vehicles owned by the stakeholder, two drivers."""
    admin = User(name="Admin", email="admin@example.com", password_hash="x", role="admin")
    employee = User(name="Sara", email="sara@example.com", password_hash="x", role="employee")
    stakeholder = User(
        name="Bilal", email="bilal@example.com", password_hash="x", role="stakeholder",
        phone="03001234567", id_card_number="3520112345671", commission_percentage=20,
    )
    db.add_all([admin, employee, stakeholder])
    db.flush()

    corolla = Vehicle(
        model="Corolla", year=2022, color="White", registration_number="LEA-1234",
        chassis_number="CH-1", engine_number="EN-1", owner_id=stakeholder.id,
    )
    civic = Vehicle(
        model="Civic", year=2023, color="Black", registration_number="LEB-5678",
        chassis_number="CH-2", engine_number="EN-2", owner_id=stakeholder.id,
    )
    ali = Driver(name="Ali", license_number="DL-1", id_number="ID-1", address="Lahore", phone="03110000001")
    umar = Driver(name="Umar", license_number="DL-2", id_number="ID-2", address="Lahore", phone="03110000002")
    db.add_all([corolla, civic, ali, umar])
    db.commit()

    return SimpleNamespace(
        admin=admin, employee=employee, stakeholder=stakeholder,
        corolla=corolla, civic=civic, ali=ali, umar=umar,
    )


@pytest.fixture
def booking_payload(seed):
    """Factory for a valid with-driver booking on the Corolla, 2024-06-01..2024-06-05."""
    def make(**overrides):
        fields = dict(
            vehicle_id=seed.corolla.id,
            driver_id=seed.ali.id,
            trip_type="withincity",
            start_date=date(2024, 6, 1),
            end_date=date(2024, 6, 5),
            trip_start_time="09:00",
            meter_reading=1000,
            total_bill=10000,
            advance_paid=3000,
            discount_percentage=0,
            driver_preference="driver",
            customer_name="Hamza Khan",
            cell_number="03211234567",
            id_card_number="3520198765431",
        )
        fields.update(overrides)
        return BookingCreate(**fields)
    return make


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def as_actor():
    """Headers identifying a seeded user as the request actor."""
    def headers(user) -> dict:
        return {"X-Actor-Id": str(user.id), "X-Actor-Role": user.role}
    return headers
