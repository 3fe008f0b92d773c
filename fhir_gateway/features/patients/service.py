# Patient Feature - Service

import asyncio
from typing import Any, Dict, List, Optional, Tuple

from fhir_gateway.config import settings
from fhir_gateway.features.patients.schemas import (
    CreateMedicationStatementRequest,
    CreatePatientRequest,
    HistorySource,
    PatientHistoryResponse,
)
from fhir_gateway.features.patients.transformer import (
    medication_statement_from_input,
    patient_from_onboarding,
)
from fhir_gateway.services.fhir_service import FhirService, SearchParams
from fhir_gateway.shared.exceptions import FhirGatewayException
from fhir_gateway.core.logging import logger


# Secondary searches for a patient history: (resource type, search parameter)
HISTORY_QUERIES: Tuple[Tuple[str, str], ...] = (
    ("MedicationStatement", "subject"),
    ("AllergyIntolerance", "patient"),
    ("Condition", "subject"),
    ("Observation", "subject"),
)


def bundle_resources(bundle: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Resources wrapped in a search Bundle, in entry order."""
    return [entry["resource"] for entry in bundle.get("entry") or [] if entry.get("resource")]


class PatientService:
    """Service class for patient onboarding, lookup and history aggregation."""

    def __init__(self, fhir: FhirService, history_timeout: Optional[float] = None):
        self.fhir = fhir
        self.history_timeout = history_timeout or settings.FHIR_HISTORY_QUERY_TIMEOUT_SECONDS

    async def create_patient(self, request: CreatePatientRequest) -> Dict[str, Any]:
        """Convert onboarding data to a FHIR Patient and store it. Returns the store's copy."""
        logger.info("Converting patient data to FHIR format")
        fhir_patient = patient_from_onboarding(request)

        logger.info("Storing patient in FHIR store")
        return await self.fhir.create(fhir_patient)

    async def get_patient_by_id(self, patient_id: str) -> Dict[str, Any]:
        """Get a patient from the FHIR store."""
        return await self.fhir.read("Patient", patient_id)

    async def search_patients(self, params: Optional[SearchParams] = None) -> List[Dict[str, Any]]:
        """Search patients; an empty result is an empty list."""
        bundle = await self.fhir.search("Patient", params)
        return bundle_resources(bundle)

    async def add_medication_statement(
        self,
        patient_id: str,
        request: CreateMedicationStatementRequest,
    ) -> Dict[str, Any]:
        """Create a MedicationStatement for a patient. ``patient_id`` wins over the payload."""
        request = request.model_copy(update={"patient_id": patient_id})
        statement = medication_statement_from_input(request, patient_id=patient_id)

        logger.info(f"Storing MedicationStatement for patient {patient_id}")
        return await self.fhir.create(statement)

    async def _collect(self, patient_id: str, resource_type: str, param: str) -> Tuple[List[Dict[str, Any]], HistorySource]:
        """Run one secondary search. Failures and timeouts become an empty result."""
        try:
            bundle = await asyncio.wait_for(
                self.fhir.search(resource_type, {param: f"Patient/{patient_id}"}),
                timeout=self.history_timeout,
            )
            resources = bundle_resources(bundle)
        except asyncio.TimeoutError:
            logger.warning(f"Timed out fetching {resource_type} for patient {patient_id}")
            return [], HistorySource(resource_type=resource_type, ok=False, error="timed out")
        except FhirGatewayException as e:
            logger.warning(f"Failed to fetch {resource_type} for patient {patient_id}: {e.detail}")
            return [], HistorySource(resource_type=resource_type, ok=False, error=str(e.detail))
        except Exception as e:
            logger.warning(f"Failed to fetch {resource_type} for patient {patient_id}: {type(e).__name__}: {e}")
            return [], HistorySource(resource_type=resource_type, ok=False, error=f"{type(e).__name__}: {e}")

        return resources, HistorySource(resource_type=resource_type, ok=True, count=len(resources))

    async def get_patient_with_history(self, patient_id: str) -> PatientHistoryResponse:
        """
        Get a patient with medications, allergies, conditions and observations.

        Only the patient lookup is fatal. The four secondary searches run
        concurrently; one that fails contributes nothing and is reported in
        ``sources`` with ok=False.
        """
        patient = await self.fhir.read("Patient", patient_id)

        results = await asyncio.gather(
            *(self._collect(patient_id, resource_type, param) for resource_type, param in HISTORY_QUERIES)
        )

        medications: List[Dict[str, Any]] = []
        other_resources: List[Dict[str, Any]] = []
        sources: List[HistorySource] = []
        for (resource_type, _), (resources, source) in zip(HISTORY_QUERIES, results):
            if resource_type == "MedicationStatement":
                medications.extend(resources)
            else:
                other_resources.extend(resources)
            sources.append(source)

        return PatientHistoryResponse(
            patient=patient,
            medications=medications,
            other_resources=other_resources,
            sources=sources,
        )
