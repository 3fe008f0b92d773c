"""Shared fakes: an in-memory FHIR store behind httpx.MockTransport and an in-memory user store."""

import json
import uuid
from datetime import datetime
from typing import Dict, Optional

import httpx
import pytest

from fhir_gateway.core.security import TokenManager
from fhir_gateway.features.auth.schemas import Role, StoredUser
from fhir_gateway.services.fhir_service import FhirService


FHIR_BASE_URL = "http://fhir.test/fhir"


class FakeFhirStore:
    """Minimal FHIR server: create/read/update/delete/search with reference filters."""

    def __init__(self):
        self.resources: Dict[str, Dict[str, dict]] = {}
        self.requests = []
        self.failures: Dict[str, httpx.Response] = {}
        self.next_id = 1

    def answer(self, resource_type: str, response: httpx.Response):
        """Reply to every request for ``resource_type`` with ``response``."""
        self.failures[resource_type] = response

    def fail(self, resource_type: str, status_code: int, body: Optional[dict] = None):
        self.answer(resource_type, httpx.Response(status_code, json=body) if body else httpx.Response(status_code))

    def add(self, resource: dict) -> dict:
        stored = {**resource, "id": str(self.next_id), "meta": {"versionId": "1"}}
        self.next_id += 1
        self.resources.setdefault(resource["resourceType"], {})[stored["id"]] = stored
        return stored

    def _search(self, resource_type: str, params: httpx.QueryParams) -> dict:
        matches = list(self.resources.get(resource_type, {}).values())
        for key in ("subject", "patient"):
            if key in params:
                matches = [r for r in matches if (r.get(key) or {}).get("reference") == params[key]]
        return {
            "resourceType": "Bundle",
            "type": "searchset",
            "total": len(matches),
            "entry": [{"resource": r} for r in matches],
        }

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        parts = request.url.path.split("/fhir/", 1)[1].split("/")
        resource_type = parts[0]

        if resource_type in self.failures:
            return self.failures[resource_type]

        if len(parts) == 1:
            if request.method == "POST":
                return httpx.Response(201, json=self.add(json.loads(request.content)))
            return httpx.Response(200, json=self._search(resource_type, request.url.params))

        resource_id = parts[1]
        existing = self.resources.get(resource_type, {}).get(resource_id)
        if request.method == "PUT":
            body = json.loads(request.content)
            self.resources.setdefault(resource_type, {})[resource_id] = body
            return httpx.Response(200, json=body)
        if existing is None:
            return httpx.Response(
                404,
                json={"resourceType": "OperationOutcome", "issue": [{"severity": "error", "code": "not-found"}]},
            )
        if request.method == "DELETE":
            del self.resources[resource_type][resource_id]
            return httpx.Response(204)
        return httpx.Response(200, json=existing)


class InMemoryUserRepository:
    """User store with the same three lookups as UserRepository."""

    def __init__(self):
        self.users: Dict[str, StoredUser] = {}

    async def find_by_email(self, email: str) -> Optional[StoredUser]:
        return next((u for u in self.users.values() if u.email == email), None)

    async def find_by_id(self, user_id: str) -> Optional[StoredUser]:
        return self.users.get(user_id)

    async def insert(self, email: str, name: str, password_hash: str, role: Role) -> StoredUser:
        now = datetime.utcnow()
        user = StoredUser(
            id=uuid.uuid4().hex,
            email=email,
            name=name,
            role=role,
            password_hash=password_hash,
            created_at=now,
            updated_at=now,
        )
        self.users[user.id] = user
        return user


@pytest.fixture
def fhir_store():
    return FakeFhirStore()


@pytest.fixture
def fhir_service(fhir_store):
    return FhirService(base_url=FHIR_BASE_URL, transport=httpx.MockTransport(fhir_store.handler))


@pytest.fixture
def user_repository():
    return InMemoryUserRepository()


@pytest.fixture
def token_manager():
    return TokenManager(secret_key="test-secret", algorithm="HS256")
