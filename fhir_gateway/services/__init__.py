"""Clients for external services."""

from fhir_gateway.services.fhir_service import FhirService

__all__ = ["FhirService"]
