from typing import Literal
from pydantic import BaseModel, ConfigDict

# Every model allows extra keys and defaults to None so that documents are
# stored exactly as supplied (exclude_none on dump).

class _Doc(BaseModel):
    model_config = ConfigDict(extra="allow")

class HumanName(_Doc):
    use: str | None = None
    family: str | None = None
    given: list[str] | None = None

class ContactPoint(_Doc):
    system: str | None = None  # phone | email
    value: str | None = None
    use: str | None = None

class Address(_Doc):
    use: str | None = None
    line: list[str] | str | None = None
    city: str | None = None
    state: str | None = None
    postalCode: str | None = None
    country: str | None = None

class EmergencyContact(_Doc):
    name: str | None = None
    relationship: str | None = None
    phone: str | None = None

class Insurance(_Doc):
    provider: str | None = None
    memberId: str | None = None

class ReportedSymptom(_Doc):
    id: int | str | None = None
    symptom: str | None = None
    severity: str | None = None
    duration: str | None = None

class PatientIn(_Doc):
    resourceType: str | None = None
    name: list[HumanName] | HumanName | str | None = None
    gender: Literal["male", "female", "other", "unknown"] | None = None
    birthDate: str | None = None
    telecom: list[ContactPoint] | None = None
    address: list[Address] | Address | None = None
    race: str | None = None
    ethnicity: str | None = None
    maritalStatus: str | None = None
    emergencyContact: EmergencyContact | None = None
    insurance: Insurance | None = None

    # symptom assessment captured at registration
    hasSymptomAssessment: bool | None = None
    initialSymptoms: list[ReportedSymptom] | None = None
    symptomAdditionalInfo: str | None = None
    aiSymptomAnalysis: str | None = None
    symptomAssessmentDate: str | None = None

    aiAnalysis: str | None = None

    def to_document(self, *, exclude_unset: bool = False) -> dict:
        return self.model_dump(exclude_none=True, exclude_unset=exclude_unset)

class PatientCreate(PatientIn):
    resourceType: str | None = "Patient"

class PatientUpdate(PatientIn):
    pass

class PatientDisplay(BaseModel):
    fullName: str
    cleanName: str
    age: int | str

class PatientOut(_Doc):
    id: str
    active: bool | None = None
    createdAt: str | None = None
    updatedAt: str | None = None
    display: PatientDisplay | None = None

class PatientStats(BaseModel):
    total: int
    byGender: dict[str, int]
    byAgeGroup: dict[str, int]
    newThisMonth: int
