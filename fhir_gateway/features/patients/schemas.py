# Patient Feature - Schemas

from enum import Enum
from typing import Any, Dict, List, Optional
from datetime import date
from pydantic import BaseModel, EmailStr, Field


# ============== Enums ==============

class Gender(str, Enum):
    """FHIR administrative gender."""
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"
    UNKNOWN = "unknown"


class MedicationStatementStatus(str, Enum):
    """FHIR R4 MedicationStatement status codes."""
    ACTIVE = "active"
    COMPLETED = "completed"
    ENTERED_IN_ERROR = "entered-in-error"
    INTENDED = "intended"
    STOPPED = "stopped"
    ON_HOLD = "on-hold"
    UNKNOWN = "unknown"
    NOT_TAKEN = "not-taken"


# ============== Onboarding ==============

class AddressInput(BaseModel):
    """Postal address, every part optional."""
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None


class IdentifierInput(BaseModel):
    """External identifier such as a medical record number."""
    value: Optional[str] = None
    type: Optional[str] = Field(None, description="Human readable type, e.g. Medical Record Number")
    system: Optional[str] = Field(None, description="Identifier system URI")


class CreatePatientRequest(BaseModel):
    """Flat onboarding payload converted into a FHIR Patient."""
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    middle_name: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[AddressInput] = None
    identifiers: Optional[List[IdentifierInput]] = None

    class Config:
        json_schema_extra = {
            "example": {
                "first_name": "John",
                "last_name": "Doe",
                "date_of_birth": "1990-01-15",
                "gender": "male",
                "email": "john.doe@example.com",
                "phone": "+1-555-0100",
                "address": {"street": "123 Main St", "city": "Springfield", "country": "USA"},
                "identifiers": [{"value": "MRN12345", "type": "Medical Record Number"}],
            }
        }


# ============== Medication ==============

class DosageInput(BaseModel):
    """Dosage as entered by a person, e.g. 1 Tablet every 6 hours as needed for pain."""
    quantity_value: Optional[str] = Field(None, pattern=r"^\d+(\.\d+)?$")
    quantity_unit: Optional[str] = None
    frequency: Optional[str] = Field(None, description="e.g. 'every 6 hours'")
    as_needed_reason: Optional[str] = None


class CreateMedicationStatementRequest(BaseModel):
    """Flat payload converted into a FHIR MedicationStatement."""
    patient_id: Optional[str] = Field(None, description="Overridden by the patient id in the URL")
    medication_name: str = Field(..., min_length=1)
    medication_system: Optional[str] = None
    medication_code: Optional[str] = None
    status: MedicationStatementStatus
    dosage: Optional[DosageInput] = None
    reason: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    class Config:
        json_schema_extra = {
            "example": {
                "medication_name": "Acetaminophen 500 MG Oral Tablet",
                "medication_system": "http://www.nlm.nih.gov/research/umls/rxnorm",
                "medication_code": "198440",
                "status": "active",
                "dosage": {
                    "quantity_value": "1",
                    "quantity_unit": "Tablet",
                    "frequency": "every 6 hours",
                    "as_needed_reason": "pain",
                },
                "start_date": "2024-01-15",
            }
        }


# ============== Responses ==============

class PatientResponse(BaseModel):
    """A single FHIR Patient resource."""
    patient: Dict[str, Any]


class PatientListResponse(BaseModel):
    """FHIR Patient resources matching a search."""
    patients: List[Dict[str, Any]]


class MedicationStatementResponse(BaseModel):
    """A created FHIR MedicationStatement resource."""
    medication_statement: Dict[str, Any]


class HistorySource(BaseModel):
    """Outcome of one secondary search in a history aggregation."""
    resource_type: str
    ok: bool
    count: int = 0
    error: Optional[str] = None


class PatientHistoryResponse(BaseModel):
    """Patient with medications and other clinical resources."""
    patient: Dict[str, Any]
    medications: List[Dict[str, Any]]
    other_resources: List[Dict[str, Any]]
    sources: List[HistorySource]
