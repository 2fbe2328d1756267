"""Integration tests for patient registration and lookup."""
import pytest


@pytest.fixture
def registration():
    return {
        "firstName": "Maria",
        "lastName": "Garcia",
        "dateOfBirth": "1979-11-02",
        "gender": "female",
        "email": "Maria.Garcia@Example.com",
        "phone": "555-0123",
        "address": "42 Elm Street",
    }


def test_register_patient(client, registration):
    """Should return 201 with a P-prefixed id."""
    response = client.post("/api/patients", json=registration)

    assert response.status_code == 200
    patient = response.json()["patient"]
    assert patient["patientId"].startswith("P")
    assert patient["email"] == "maria.garcia@example.com"
    assert patient["assignedDepartment"] is None


def test_register_duplicate_email(client, registration):
    """A registered email returns 409."""
    client.post("/api/patients", json=registration)

    response = client.post("/api/patients", json={**registration, "email": "maria.garcia@example.com"})

    assert response.status_code == 409
    assert response.json()["code"] == "CONFLICT"


@pytest.mark.parametrize("field, value", [
    ("email", "not-an-email"),
    ("gender", "unknown"),
    ("dateOfBirth", "yesterday"),
    ("firstName", ""),
])
def test_register_invalid_field(client, registration, field, value):
    """Invalid fields return 400."""
    registration[field] = value

    response = client.post("/api/patients", json=registration)

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_find_by_email(client, patient):
    """Should find a patient by email."""
    response = client.get("/api/patients", params={"email": "JOHN.DOE@example.com"})

    assert response.status_code == 200
    assert response.json()["patient"]["patientId"] == patient.patient_id


def test_find_requires_email(client):
    """Email query parameter is required."""
    response = client.get("/api/patients")

    assert response.status_code == 400
    assert response.json()["error"] == "Email parameter is required"


def test_find_unknown_email(client):
    """Unknown email returns 404."""
    response = client.get("/api/patients", params={"email": "nobody@example.com"})

    assert response.status_code == 404
    assert response.json()["error"] == "Patient not found"
