from enum import Enum
from pydantic import BaseModel, ConfigDict, Field


class EventKind(str, Enum):
    ENCOUNTER = "encounter"
    CONDITION = "condition"
    MEDICATION = "medication"
    ALLERGY = "allergy"
    OBSERVATION = "observation"
    PROCEDURE = "procedure"

    @property
    def collection(self) -> str:
        return COLLECTIONS[self]


COLLECTIONS: dict[EventKind, str] = {
    EventKind.ENCOUNTER: "encounters",
    EventKind.CONDITION: "conditions",
    EventKind.MEDICATION: "medications",
    EventKind.ALLERGY: "allergies",
    EventKind.OBSERVATION: "observations",
    EventKind.PROCEDURE: "procedures",
}


class RecordCategory(str, Enum):
    """URL segment for a clinical-event collection."""
    encounters = "encounters"
    conditions = "conditions"
    medications = "medications"
    allergies = "allergies"
    observations = "observations"
    procedures = "procedures"

    @property
    def kind(self) -> EventKind:
        return next(k for k, c in COLLECTIONS.items() if c == self.value)


class PatientRecords(BaseModel):
    encounters: list[dict] = []
    conditions: list[dict] = []
    medications: list[dict] = []
    allergies: list[dict] = []
    observations: list[dict] = []
    procedures: list[dict] = []

    def for_kind(self, kind: EventKind) -> list[dict]:
        return getattr(self, kind.collection)


# ---- Create payloads ----
# Documents are schemaless; the models below name the fields the app reads
# and let everything else through untouched.

class _RecordIn(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    def to_document(self) -> dict:
        return self.model_dump(exclude_none=True, by_alias=True)


class Period(BaseModel):
    model_config = ConfigDict(extra="allow")
    start: str | None = None
    end: str | None = None


class Quantity(BaseModel):
    model_config = ConfigDict(extra="allow")
    value: float | str | None = None
    unit: str | None = None


class EncounterCreate(_RecordIn):
    type: str | None = None
    status: str | None = None
    class_: str | None = Field(None, alias="class")
    period: Period | None = None
    reasonCode: str | None = None
    location: str | None = None
    cost: float | None = None
    notes: str | None = None


class ConditionCreate(_RecordIn):
    display: str | None = None
    code: dict | str | None = None
    clinicalStatus: str | None = None
    severity: str | None = None
    onsetDateTime: str | None = None
    abatementDateTime: str | None = None
    notes: str | None = None


class MedicationCreate(_RecordIn):
    display: str | None = None
    medicationCodeableConcept: dict | None = None
    status: str | None = None
    dosage: str | None = None
    frequency: str | None = None
    prescriber: str | None = None
    instructions: str | None = None
    reasonCode: str | None = None
    authoredOn: str | None = None
    effectivePeriod: Period | None = None
    cost: float | None = None


class AllergyCreate(_RecordIn):
    display: str | None = None
    type: str | None = None
    criticality: str | None = None
    category: list[str] | None = None
    clinicalStatus: str | None = None
    onsetDateTime: str | None = None
    recordedDate: str | None = None


class ObservationCreate(_RecordIn):
    display: str | None = None
    code: dict | str | None = None
    category: str | None = None
    status: str | None = None
    valueQuantity: Quantity | None = None
    valueString: str | None = None
    effectiveDateTime: str | None = None


class ProcedureCreate(_RecordIn):
    display: str | None = None
    code: dict | str | None = None
    status: str | None = None
    reasonCode: str | None = None
    performedDateTime: str | None = None
    cost: float | None = None


CREATE_SCHEMAS: dict[EventKind, type[_RecordIn]] = {
    EventKind.ENCOUNTER: EncounterCreate,
    EventKind.CONDITION: ConditionCreate,
    EventKind.MEDICATION: MedicationCreate,
    EventKind.ALLERGY: AllergyCreate,
    EventKind.OBSERVATION: ObservationCreate,
    EventKind.PROCEDURE: ProcedureCreate,
}
