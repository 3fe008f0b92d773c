# Patient Feature - Dependencies

from fastapi import Depends, Request
from fhir_gateway.features.patients.service import PatientService
from fhir_gateway.services.fhir_service import FhirService


def get_fhir_service(request: Request) -> FhirService:
    """Dependency returning the process-wide FHIR client created at startup."""
    return request.app.state.fhir_service


def get_patient_service(fhir: FhirService = Depends(get_fhir_service)) -> PatientService:
    """Dependency providing the patient service."""
    return PatientService(fhir)
