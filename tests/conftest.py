import os
from datetime import datetime, timezone

# Settings are read at import time; configure before importing fleetapp.
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AUTO_CREATE_TABLES"] = "false"
os.environ["SEED_DEFAULT_ADMIN"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from fleetapp.database import Base, get_db
from fleetapp.main import app
from fleetapp.models import RoleName, Trip, User, Vehicle, VehicleAssignment
from fleetapp.utils.security import create_access_token, hash_password

PASSWORD = "secret123"
_PASSWORD_HASH = hash_password(PASSWORD)


# ==================== DATABASE ====================

@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


# ==================== FACTORIES ====================

def make_user(db, name, role, email=None):
    user = User(
        name=name,
        role=role,
        email=email or f"{name.lower().replace(' ', '.')}@fleetco.com",
        password=_PASSWORD_HASH,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_vehicle(db, number, model="Hilux", fuel_type="Diesel", last_service_date=None):
    vehicle = Vehicle(
        vehicleNumber=number,
        model=model,
        fuelType=fuel_type,
        lastServiceDate=last_service_date,
    )
    db.add(vehicle)
    db.commit()
    db.refresh(vehicle)
    return vehicle


def make_trip(db, driver, vehicle, distance, fuel, time=2.0, when=None):
    trip = Trip(
        driverId=driver.id,
        vehicleId=vehicle.id,
        startLocation="Depot",
        endLocation="Site",
        distanceKm=distance,
        fuelUsedLtr=fuel,
        timeTakenHr=time,
        efficiency=distance / fuel,
        tripDate=when or datetime(2026, 10, 1, 8, 0, tzinfo=timezone.utc),
    )
    db.add(trip)
    db.commit()
    db.refresh(trip)
    return trip


def assign(db, vehicle, driver):
    row = VehicleAssignment(vehicleId=vehicle.id, driverId=driver.id)
    db.add(row)
    db.commit()
    return row


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role.value, user.email)}"}


# ==================== PRINCIPALS ====================

@pytest.fixture
def admin(db):
    return make_user(db, "Ada Admin", RoleName.ADMIN)


@pytest.fixture
def manager(db):
    return make_user(db, "Max Manager", RoleName.MANAGER)


@pytest.fixture
def driver(db):
    return make_user(db, "Dana Driver", RoleName.DRIVER)


@pytest.fixture
def other_driver(db):
    return make_user(db, "Omar Driver", RoleName.DRIVER)


@pytest.fixture
def vehicle(db):
    return make_vehicle(db, "TRK-001")
