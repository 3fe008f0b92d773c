# Data Scientist Feature - Router

from fastapi import APIRouter, Depends, Query
from typing import Optional
from fhir_gateway.features.auth.dependencies import require_roles
from fhir_gateway.features.auth.schemas import AccessClaims, Role
from fhir_gateway.features.patients.dependencies import get_patient_service
from fhir_gateway.features.patients.schemas import PatientListResponse
from fhir_gateway.features.patients.service import PatientService


router = APIRouter(prefix="/data-scientist", tags=["Data Scientist"])


@router.get("/fhir-data", response_model=PatientListResponse)
async def get_all_patient_fhir_data(
    count: Optional[int] = Query(None, ge=1, le=1000, description="Maximum number of patients to return"),
    claims: AccessClaims = Depends(require_roles(Role.DATA_SCIENTIST)),
    patient_service: PatientService = Depends(get_patient_service),
):
    """
    Get FHIR Patient resources from the store.

    Requires DATA_SCIENTIST role.
    """
    params = {"_count": str(count)} if count else {}
    patients = await patient_service.search_patients(params)
    return PatientListResponse(patients=patients)
