# Patient Feature - FHIR transformation
#
# Pure functions turning flat request payloads into FHIR R4 resources. No I/O.

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from fhir_gateway.features.patients.schemas import (
    CreateMedicationStatementRequest,
    CreatePatientRequest,
    DosageInput,
)
from fhir_gateway.shared.exceptions import MissingReferenceException


FREQUENCY_PATTERN = re.compile(r"every\s+(\d+)\s+(hours?|days?|weeks?)\b", re.IGNORECASE)
FIRST_INTEGER_PATTERN = re.compile(r"\d+")

# FHIR UCUM units of time keyed by the singular English word
PERIOD_UNITS = {
    "hour": "h",
    "day": "d",
    "week": "wk",
}

DEFAULT_PERIOD = 6
DEFAULT_PERIOD_UNIT = "h"


@dataclass(frozen=True)
class TimingRepeat:
    """Structured repeating schedule parsed from a frequency description."""

    period: int
    period_unit: str

    def to_fhir(self) -> Dict[str, Any]:
        return {"frequency": 1, "period": self.period, "periodUnit": self.period_unit}


def parse_frequency(text: Optional[str]) -> TimingRepeat:
    """
    Parse a natural-language frequency such as "every 6 hours".

    Three tiers, first hit wins:
    1. ``every <N> <hour|day|week>(s)``, case-insensitive
    2. the first integer anywhere in the text, read as hours
    3. every 6 hours
    """
    if text:
        match = FREQUENCY_PATTERN.search(text)
        if match:
            unit = match.group(2).lower().rstrip("s")
            return TimingRepeat(period=int(match.group(1)), period_unit=PERIOD_UNITS[unit])

        number = FIRST_INTEGER_PATTERN.search(text)
        if number:
            return TimingRepeat(period=int(number.group(0)), period_unit="h")

    return TimingRepeat(period=DEFAULT_PERIOD, period_unit=DEFAULT_PERIOD_UNIT)


def _decimal(value: str) -> Union[int, float]:
    """FHIR decimal from a numeric string, keeping whole numbers integral."""
    number = float(value)
    return int(number) if number.is_integer() else number


# ============== Patient ==============

def patient_from_onboarding(request: CreatePatientRequest) -> Dict[str, Any]:
    """Convert an onboarding payload into a FHIR Patient resource."""
    patient: Dict[str, Any] = {"resourceType": "Patient"}

    given = [request.first_name, request.middle_name] if request.middle_name else [request.first_name]
    patient["name"] = [{"family": request.last_name, "given": given}]

    if request.date_of_birth:
        patient["birthDate"] = request.date_of_birth.isoformat()

    if request.gender:
        patient["gender"] = request.gender.value

    telecom: List[Dict[str, str]] = []
    if request.phone:
        telecom.append({"system": "phone", "value": request.phone})
    if request.email:
        telecom.append({"system": "email", "value": str(request.email)})
    if telecom:
        patient["telecom"] = telecom

    # An address block with nothing filled in is still sent as {}
    if request.address is not None:
        source = request.address
        address: Dict[str, Any] = {}
        if source.street:
            address["line"] = [source.street]
        if source.city:
            address["city"] = source.city
        if source.state:
            address["state"] = source.state
        if source.postal_code:
            address["postalCode"] = source.postal_code
        if source.country:
            address["country"] = source.country
        patient["address"] = [address]

    if request.identifiers:
        identifiers = []
        for item in request.identifiers:
            identifier: Dict[str, Any] = {}
            if item.value:
                identifier["value"] = item.value
            if item.system:
                identifier["system"] = item.system
            if item.type:
                identifier["type"] = {"text": item.type}
            identifiers.append(identifier)
        patient["identifier"] = identifiers

    return patient


# ============== MedicationStatement ==============

def dosage_from_input(dosage: DosageInput) -> Dict[str, Any]:
    """Convert a dosage payload into a FHIR Dosage element."""
    result: Dict[str, Any] = {
        "timing": {"repeat": TimingRepeat(DEFAULT_PERIOD, DEFAULT_PERIOD_UNIT).to_fhir()},
    }

    if dosage.frequency:
        result["text"] = dosage.frequency
        result["timing"]["repeat"] = parse_frequency(dosage.frequency).to_fhir()

    if dosage.quantity_value or dosage.quantity_unit:
        quantity: Dict[str, Any] = {}
        if dosage.quantity_value:
            quantity["value"] = _decimal(dosage.quantity_value)
        if dosage.quantity_unit:
            quantity["unit"] = dosage.quantity_unit
        result["doseAndRate"] = [{"doseQuantity": quantity}]

    # asNeededCodeableConcept is FHIR's "as needed = true, for this reason"
    if dosage.as_needed_reason:
        result["asNeededCodeableConcept"] = {"text": dosage.as_needed_reason}

    return result


def medication_statement_from_input(
    request: CreateMedicationStatementRequest,
    patient_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Convert a medication payload into a FHIR MedicationStatement resource.

    Args:
        request: Medication payload
        patient_id: Owning patient id; takes precedence over ``request.patient_id``

    Raises:
        MissingReferenceException: If no patient id is available
    """
    subject_id = patient_id or request.patient_id
    if not subject_id:
        raise MissingReferenceException("MedicationStatement requires a patient id")

    medication: Dict[str, Any] = {"text": request.medication_name}
    if request.medication_code or request.medication_system:
        coding: Dict[str, Any] = {"display": request.medication_name}
        if request.medication_system:
            coding["system"] = request.medication_system
        if request.medication_code:
            coding["code"] = request.medication_code
        medication["coding"] = [coding]

    statement: Dict[str, Any] = {
        "resourceType": "MedicationStatement",
        "status": request.status.value,
        "medicationCodeableConcept": medication,
        "subject": {"reference": f"Patient/{subject_id}"},
    }

    if request.dosage:
        statement["dosage"] = [dosage_from_input(request.dosage)]

    if request.reason:
        statement["reasonCode"] = [{"text": request.reason}]

    # An end date without a start date is dropped
    if request.start_date:
        period: Dict[str, str] = {"start": request.start_date.isoformat()}
        if request.end_date:
            period["end"] = request.end_date.isoformat()
        statement["effectivePeriod"] = period

    return statement
