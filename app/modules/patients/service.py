from app.modules.patients.repository import PatientRepository
from app.modules.patients.schemas import PatientCreate, PatientUpdate
from app.modules.patients.naming import format_name, clean_name, calculate_age
from app.modules.patients.validation import validate_registration

def with_display(patient: dict) -> dict:
    return {
        **patient,
        "display": {
            "fullName": format_name(patient.get("name")),
            "cleanName": clean_name(patient.get("name")),
            "age": calculate_age(patient.get("birthDate")),
        },
    }

class PatientService:
    def __init__(self, repo: PatientRepository):
        self.repo = repo

    async def register(self, payload: PatientCreate) -> dict:
        data = payload.to_document()
        validate_registration(data)
        return await self.repo.create_patient(data)

    async def edit(self, patient_id: str, payload: PatientUpdate) -> dict:
        changes = payload.to_document(exclude_unset=True)
        existing = await self.repo.get_patient(patient_id)
        # the edit form enforces the same required fields as registration
        validate_registration({**existing, **changes})
        return await self.repo.update_patient(patient_id, changes)

    async def get(self, patient_id: str) -> dict:
        return await self.repo.get_patient(patient_id)

    async def list(self, q: str | None = None) -> list[dict]:
        if q:
            return await self.repo.search_patients(q)
        return await self.repo.get_all_patients()

    async def delete(self, patient_id: str) -> bool:
        return await self.repo.delete_patient(patient_id)

    async def stats(self) -> dict:
        return await self.repo.get_patient_stats()
