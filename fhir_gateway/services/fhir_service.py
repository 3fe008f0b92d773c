"""HTTP client for the upstream FHIR store."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import httpx
from fhir.resources.R4B.allergyintolerance import AllergyIntolerance
from fhir.resources.R4B.bundle import Bundle
from fhir.resources.R4B.condition import Condition
from fhir.resources.R4B.medicationstatement import MedicationStatement
from fhir.resources.R4B.observation import Observation
from fhir.resources.R4B.patient import Patient
from pydantic import ValidationError

from fhir_gateway.config import settings
from fhir_gateway.core.logging import audit_logger, logger
from fhir_gateway.shared.exceptions import (
    NotFoundException,
    UpstreamRejectedException,
    UpstreamUnreachableException,
    ValidationFailedException,
)


FHIR_JSON = "application/fhir+json"

SearchParams = Union[Dict[str, str], Sequence[Tuple[str, str]]]

# Resource types the gateway knows how to validate
RESOURCE_CLASSES = {
    "Patient": Patient,
    "MedicationStatement": MedicationStatement,
    "AllergyIntolerance": AllergyIntolerance,
    "Condition": Condition,
    "Observation": Observation,
    "Bundle": Bundle,
}


@dataclass
class ValidationResult:
    """Outcome of validating one resource."""

    valid: bool
    messages: List[Dict[str, Any]] = field(default_factory=list)


class FhirService:
    """Performs validate/create/read/update/delete/search against the FHIR store."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.FHIR_BASE_URL).rstrip("/")
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Content-Type": FHIR_JSON, "Accept": FHIR_JSON},
            timeout=httpx.Timeout(timeout or settings.FHIR_TIMEOUT_SECONDS),
            transport=transport,
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.aclose()

    @staticmethod
    def validate(resource: Dict[str, Any]) -> ValidationResult:
        """Validate a resource's structure against the FHIR R4B models."""
        resource_type = resource.get("resourceType")
        resource_class = RESOURCE_CLASSES.get(resource_type)
        if resource_class is None:
            return ValidationResult(
                valid=False,
                messages=[{"loc": ["resourceType"], "msg": f"Unsupported resource type: {resource_type}"}],
            )

        try:
            resource_class.model_validate(resource)
        except ValidationError as e:
            messages = [
                {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg"), "type": err.get("type")}
                for err in e.errors()
            ]
            return ValidationResult(valid=False, messages=messages)

        return ValidationResult(valid=True)

    @staticmethod
    def _response_body(response: httpx.Response) -> Any:
        """Upstream body as JSON when possible, raw text otherwise, None when empty."""
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    async def _request(self, method: str, url: str, action: str, **kwargs) -> httpx.Response:
        """Send a request, translating transport failures and non-2xx answers."""
        try:
            response = await self.client.request(method, url, **kwargs)
        except httpx.TransportError as e:
            logger.error(f"FHIR store unreachable while trying to {action}: {type(e).__name__}: {e}")
            raise UpstreamUnreachableException(f"FHIR store unreachable while trying to {action}")

        if response.is_success:
            return response

        body = self._response_body(response)
        logger.error(f"FHIR store rejected {action} with status {response.status_code}")
        raise UpstreamRejectedException(
            detail=f"Failed to {action}",
            upstream_status=response.status_code,
            upstream_body=body,
        )

    def _ensure_valid(self, resource: Dict[str, Any]) -> None:
        result = self.validate(resource)
        if not result.valid:
            logger.error(f"FHIR validation failed for {resource.get('resourceType')}: {result.messages}")
            raise ValidationFailedException(result.messages)

    def _json_body(self, response: httpx.Response, action: str) -> Dict[str, Any]:
        """Decode a 2xx body as a FHIR JSON object; anything else is an upstream rejection."""
        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            logger.error(f"FHIR store answered {action} with an unreadable body (status {response.status_code})")
            raise UpstreamRejectedException(
                detail=f"Failed to {action}: unreadable response body",
                upstream_status=response.status_code,
                upstream_body=response.text or None,
            )
        return body

    @staticmethod
    def _location_id(response: httpx.Response, resource_type: str) -> Optional[str]:
        """Resource id from a Location header such as ``.../Patient/9/_history/1``."""
        parts = response.headers.get("location", "").split("/")
        if resource_type in parts:
            index = parts.index(resource_type)
            if index + 1 < len(parts) and parts[index + 1]:
                return parts[index + 1]
        return None

    async def create(self, resource: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate then create a resource; returns the store's copy with its id.

        A store answering with an empty body (``Prefer: return=minimal``) only
        names the new id in its Location header; the sent resource is returned
        with that id.
        """
        self._ensure_valid(resource)

        resource_type = resource["resourceType"]
        action = f"create {resource_type}"
        response = await self._request("POST", f"/{resource_type}", action, json=resource)

        location_id = self._location_id(response, resource_type)
        if not response.content and location_id:
            created = {**resource, "id": location_id}
        else:
            created = self._json_body(response, action)

        audit_logger.info(f"Created {resource_type} with id: {created.get('id')}")
        return created

    async def read(self, resource_type: str, resource_id: str) -> Dict[str, Any]:
        """Read a resource by id."""
        action = f"read {resource_type}"
        try:
            response = await self._request("GET", f"/{resource_type}/{resource_id}", action)
        except UpstreamRejectedException as e:
            if e.upstream_status == 404:
                raise NotFoundException(f"{resource_type} with id {resource_id} not found")
            raise
        return self._json_body(response, action)

    async def update(self, resource: Dict[str, Any], resource_id: str) -> Dict[str, Any]:
        """Validate then replace a resource. An empty reply returns the resource as sent."""
        resource_with_id = {**resource, "id": resource_id}
        self._ensure_valid(resource_with_id)

        resource_type = resource_with_id["resourceType"]
        action = f"update {resource_type}"
        response = await self._request("PUT", f"/{resource_type}/{resource_id}", action, json=resource_with_id)
        updated = self._json_body(response, action) if response.content else resource_with_id

        audit_logger.info(f"Updated {resource_type} with id: {resource_id}")
        return updated

    async def delete(self, resource_type: str, resource_id: str) -> None:
        """Delete a resource by id."""
        await self._request("DELETE", f"/{resource_type}/{resource_id}", f"delete {resource_type}")
        audit_logger.info(f"Deleted {resource_type} with id: {resource_id}")

    async def search(self, resource_type: str, params: Optional[SearchParams] = None) -> Dict[str, Any]:
        """
        Search a resource type; returns the result Bundle.

        ``params`` may be a dict or a list of (name, value) pairs; the latter
        keeps repeated parameters such as ``birthdate=ge..&birthdate=le..``.
        """
        action = f"search {resource_type}"
        response = await self._request("GET", f"/{resource_type}", action, params=params or {})
        return self._json_body(response, action)
