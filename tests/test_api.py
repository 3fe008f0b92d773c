"""Tests for the HTTP surface with the FHIR and user stores replaced by in-memory fakes."""

import pytest
from fastapi.testclient import TestClient

from fhir_gateway.config import settings
from fhir_gateway.features.auth.dependencies import get_auth_service, get_token_manager
from fhir_gateway.features.auth.schemas import Role
from fhir_gateway.features.auth.service import AuthService
from fhir_gateway.features.patients.dependencies import get_patient_service
from fhir_gateway.features.patients.service import PatientService
from fhir_gateway.main import app


API = settings.API_V1_PREFIX


@pytest.fixture
def client(fhir_service, user_repository, token_manager):
    app.dependency_overrides[get_token_manager] = lambda: token_manager
    app.dependency_overrides[get_auth_service] = lambda: AuthService(user_repository, token_manager)
    app.dependency_overrides[get_patient_service] = lambda: PatientService(fhir_service)
    # Not used as a context manager: the lifespan (MongoDB) is not started
    yield TestClient(app)
    app.dependency_overrides.clear()


def _auth(token_manager, role):
    tokens = token_manager.issue_tokens("user-1", "user@example.com", role)
    return {"Authorization": f"Bearer {tokens.access_token}"}


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_register_login_refresh_flow(client):
    response = client.post(
        f"{API}/auth/register",
        json={"email": "ds@example.com", "name": "Dana", "password": "secret1", "role": "DATA_SCIENTIST"},
    )
    assert response.status_code == 201
    body = response.json()
    assert body["role"] == "DATA_SCIENTIST"
    assert "password_hash" not in body

    duplicate = client.post(
        f"{API}/auth/register", json={"email": "ds@example.com", "name": "Dana", "password": "secret1"}
    )
    assert duplicate.status_code == 409

    login = client.post(f"{API}/auth/login", json={"email": "ds@example.com", "password": "secret1"})
    assert login.status_code == 200
    tokens = login.json()
    assert tokens["token_type"] == "bearer"

    refreshed = client.post(f"{API}/auth/refresh-token", json={"refresh_token": tokens["refresh_token"]})
    assert refreshed.status_code == 200
    assert refreshed.json()["access_token"]

    bad_login = client.post(f"{API}/auth/login", json={"email": "ds@example.com", "password": "wrong!"})
    assert bad_login.status_code == 401


def test_register_short_password_is_rejected(client):
    response = client.post(f"{API}/auth/register", json={"email": "x@example.com", "name": "X", "password": "123"})
    assert response.status_code == 422


def test_patient_endpoints_require_token(client):
    assert client.get(f"{API}/patient/1").status_code in (401, 403)

    response = client.get(f"{API}/patient/1", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401


def test_onboard_requires_data_scientist(client, token_manager):
    response = client.post(
        f"{API}/patient/onboard",
        json={"first_name": "John", "last_name": "Doe"},
        headers=_auth(token_manager, Role.CLINICIAN),
    )
    assert response.status_code == 403


def test_onboard_read_search_and_history(client, token_manager):
    scientist = _auth(token_manager, Role.DATA_SCIENTIST)
    clinician = _auth(token_manager, Role.CLINICIAN)

    created = client.post(
        f"{API}/patient/onboard",
        json={"first_name": "John", "last_name": "Doe", "gender": "male", "phone": "555-0100"},
        headers=scientist,
    )
    assert created.status_code == 201
    patient_id = created.json()["patient"]["id"]

    fetched = client.get(f"{API}/patient/{patient_id}", headers=clinician)
    assert fetched.status_code == 200
    assert fetched.json()["patient"]["name"] == [{"family": "Doe", "given": ["John"]}]

    medication = client.post(
        f"{API}/patient/{patient_id}/medication",
        json={
            "patient_id": "ignored",
            "medication_name": "Acetaminophen",
            "status": "active",
            "dosage": {"quantity_value": "1", "quantity_unit": "Tablet", "frequency": "every 2 days"},
        },
        headers=scientist,
    )
    assert medication.status_code == 201
    statement = medication.json()["medication_statement"]
    assert statement["subject"] == {"reference": f"Patient/{patient_id}"}
    assert statement["dosage"][0]["timing"]["repeat"]["periodUnit"] == "d"

    history = client.get(f"{API}/patient/{patient_id}/history", headers=clinician)
    assert history.status_code == 200
    body = history.json()
    assert len(body["medications"]) == 1
    assert len(body["sources"]) == 4

    search = client.get(f"{API}/patient", headers=clinician)
    assert search.status_code == 200
    assert len(search.json()["patients"]) == 1


def test_missing_patient_is_404(client, token_manager):
    response = client.get(f"{API}/patient/404/history", headers=_auth(token_manager, Role.CLINICIAN))
    assert response.status_code == 404


def test_data_scientist_fhir_data(client, token_manager, fhir_store):
    fhir_store.add({"resourceType": "Patient", "name": [{"family": "Scofield", "given": ["Michael"]}]})

    denied = client.get(f"{API}/data-scientist/fhir-data", headers=_auth(token_manager, Role.CLINICIAN))
    assert denied.status_code == 403

    response = client.get(f"{API}/data-scientist/fhir-data", headers=_auth(token_manager, Role.DATA_SCIENTIST))
    assert response.status_code == 200
    assert response.json()["patients"][0]["name"][0]["family"] == "Scofield"


def test_patient_search_forwards_repeated_params(client, token_manager, fhir_store):
    response = client.get(
        f"{API}/patient?birthdate=ge1990-01-01&birthdate=le2000-12-31&name=Doe",
        headers=_auth(token_manager, Role.CLINICIAN),
    )

    assert response.status_code == 200
    params = fhir_store.requests[-1].url.params
    assert params.get_list("birthdate") == ["ge1990-01-01", "le2000-12-31"]
    assert params["name"] == "Doe"
