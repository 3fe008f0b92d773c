# Patient Feature - Router

from fastapi import APIRouter, Depends, Request, status
from fhir_gateway.features.auth.dependencies import get_current_claims, require_roles
from fhir_gateway.features.auth.schemas import AccessClaims, Role
from fhir_gateway.features.patients.dependencies import get_patient_service
from fhir_gateway.features.patients.schemas import (
    CreateMedicationStatementRequest,
    CreatePatientRequest,
    MedicationStatementResponse,
    PatientHistoryResponse,
    PatientListResponse,
    PatientResponse,
)
from fhir_gateway.features.patients.service import PatientService


router = APIRouter(prefix="/patient", tags=["Patient"])


@router.post("/onboard", response_model=PatientResponse, status_code=status.HTTP_201_CREATED)
async def onboard_patient(
    request: CreatePatientRequest,
    claims: AccessClaims = Depends(require_roles(Role.DATA_SCIENTIST)),
    patient_service: PatientService = Depends(get_patient_service),
):
    """
    Onboard a new patient.

    Converts the payload to a FHIR Patient and stores it in the FHIR store.

    Requires DATA_SCIENTIST role.
    """
    patient = await patient_service.create_patient(request)
    return PatientResponse(patient=patient)


@router.get("", response_model=PatientListResponse)
async def search_patients(
    request: Request,
    claims: AccessClaims = Depends(get_current_claims),
    patient_service: PatientService = Depends(get_patient_service),
):
    """
    Search patients in the FHIR store.

    Query parameters (e.g. **name**, **birthdate**) are passed through as FHIR search parameters;
    repeated parameters such as a birthdate range are all kept.

    Requires authentication.
    """
    patients = await patient_service.search_patients(request.query_params.multi_items())
    return PatientListResponse(patients=patients)


@router.get("/{patient_id}/history", response_model=PatientHistoryResponse)
async def get_patient_with_history(
    patient_id: str,
    claims: AccessClaims = Depends(get_current_claims),
    patient_service: PatientService = Depends(get_patient_service),
):
    """
    Get a patient with medications, allergies, conditions and observations.

    **sources** lists each secondary search and whether it succeeded.

    Requires authentication.
    """
    return await patient_service.get_patient_with_history(patient_id)


@router.post(
    "/{patient_id}/medication",
    response_model=MedicationStatementResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_medication_statement(
    patient_id: str,
    request: CreateMedicationStatementRequest,
    claims: AccessClaims = Depends(require_roles(Role.DATA_SCIENTIST)),
    patient_service: PatientService = Depends(get_patient_service),
):
    """
    Add a MedicationStatement for a patient.

    Example: "takes 1 Tablet every 6 hours as needed for pain". The patient id
    in the path replaces any **patient_id** in the body.

    Requires DATA_SCIENTIST role.
    """
    statement = await patient_service.add_medication_statement(patient_id, request)
    return MedicationStatementResponse(medication_statement=statement)


@router.get("/{patient_id}", response_model=PatientResponse)
async def get_patient(
    patient_id: str,
    claims: AccessClaims = Depends(get_current_claims),
    patient_service: PatientService = Depends(get_patient_service),
):
    """
    Get a patient by FHIR id.

    Requires authentication.
    """
    patient = await patient_service.get_patient_by_id(patient_id)
    return PatientResponse(patient=patient)
