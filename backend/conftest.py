"""Shared fixtures: in-memory SQLite app, authenticated TestClient, temp JSON store."""
import os

# Settings are read at import time
os.environ["API_TOKEN"] = "test-token"
os.environ["ENVIRONMENT"] = "test"
os.environ["INIT_DB_ON_STARTUP"] = "false"
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from pharmacy.api.deps import get_db
from pharmacy.client.local import LocalRepository, LocalStore
from pharmacy.db.base import Base
from pharmacy.main import app
from pharmacy import models  # noqa: F401 - register models

AUTH = {"Authorization": "Bearer test-token"}


def _engine():
    return create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


def _client_for(engine) -> TestClient:
    TestingSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)

    def override_get_db():
        db = TestingSession()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    client = TestClient(app)
    client.headers.update(AUTH)
    return client


@pytest.fixture
def engine():
    engine = _engine()
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(engine):
    db = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    yield db
    db.close()


@pytest.fixture
def client(engine):
    yield _client_for(engine)
    app.dependency_overrides.clear()


@pytest.fixture
def bare_client():
    """Client against a database with no tables at all."""
    engine = _engine()
    yield _client_for(engine)
    app.dependency_overrides.clear()
    engine.dispose()


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / "pharmacy_data.json"


@pytest.fixture
def local_repo(store_path):
    repo = LocalRepository(LocalStore(str(store_path)))
    yield repo
    repo.close()


def medicine_payload(**overrides):
    data = {
        "name": "Cetirizine",
        "category": "Antihistamine",
        "strength": "10mg",
        "manufacturer": "MediLife",
        "stock": 50,
        "minStock": 10,
        "maxStock": 200,
        "price": 4.25,
        "expiryDate": "2030-01-31",
        "batchNumber": "ML250101",
        "location": "D1-S1",
    }
    data.update(overrides)
    return data


def employee_payload(**overrides):
    data = {
        "name": "Anita Rao",
        "email": "anita.rao@wellnessforever.com",
        "phone": "+91-9876500000",
        "role": "Pharmacist",
        "department": "Pharmacy",
        "salary": 52000,
        "hireDate": "2024-02-01",
    }
    data.update(overrides)
    return data
