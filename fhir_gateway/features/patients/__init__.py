# Patient Feature

from fhir_gateway.features.patients.router import router
from fhir_gateway.features.patients.service import PatientService

__all__ = ["router", "PatientService"]
