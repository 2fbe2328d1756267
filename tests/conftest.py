"""Shared test fixtures."""
import os
from datetime import date
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient
from langchain_core.messages import AIMessage

from hospital_desk.availability import AvailabilityEngine
from hospital_desk.database import Store
from hospital_desk.domain import AvailabilitySlot, DoctorCreate, PatientCreate
from hospital_desk.repository import HospitalRepository


@pytest.fixture(autouse=True)
def setup_env():
    """Set up environment variables for tests."""
    os.environ["OPENAI_API_KEY"] = "test-key"
    yield


@pytest.fixture
def store():
    """In-memory SQLite store, initialized."""
    store = Store("sqlite://")
    store.init()
    yield store
    store.close()


@pytest.fixture
def file_store(tmp_path):
    """File-backed SQLite store, as deployed by default."""
    store = Store(f"sqlite:///{tmp_path / 'hospital_desk.db'}")
    store.init()
    yield store
    store.close()


@pytest.fixture
def repository(store) -> HospitalRepository:
    return HospitalRepository(store)


@pytest.fixture
def engine(repository) -> AvailabilityEngine:
    return AvailabilityEngine(repository)


@pytest.fixture
def make_doctor(repository):
    """Factory registering doctors with unique email/license numbers."""
    counter = [0]

    def _create(**overrides):
        counter[0] += 1
        data = {
            "first_name": "Sarah",
            "last_name": "Johnson",
            "email": f"doctor{counter[0]}@hospital.test",
            "phone": "555-0100",
            "specialization": "Cardiologist",
            "department": "Cardiology",
            "license_number": f"LIC-{counter[0]:04d}",
            "experience": 12,
            "availability": [
                AvailabilitySlot(day_of_week=1, start_time="09:00", end_time="17:00"),
            ],
        }
        data.update(overrides)
        return repository.add_doctor(DoctorCreate(**data))

    return _create


@pytest.fixture
def doctor(make_doctor):
    """Active doctor available Mondays 09:00-17:00."""
    return make_doctor()


@pytest.fixture
def patient(repository):
    return repository.create_patient(PatientCreate(
        first_name="John",
        last_name="Doe",
        date_of_birth=date(1985, 4, 12),
        gender="male",
        email="John.Doe@Example.com",
        phone="555-0199",
        address="1 Main Street",
    ))


@pytest.fixture
def mock_llm():
    """Chat model stand-in exposing ``invoke``."""
    llm = Mock()
    llm.invoke.return_value = AIMessage(content="Let me help you with that.")
    return llm


@pytest.fixture
def app(store, mock_llm):
    from hospital_desk.api_server import create_app
    return create_app(store=store, llm=mock_llm)


@pytest.fixture
def client(app):
    """FastAPI test client with the lifespan running."""
    with TestClient(app) as test_client:
        yield test_client
