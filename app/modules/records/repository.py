import logging
from app.core.errors import StoreWriteFailure
from app.modules.patients.repository import PatientRepository
from app.modules.records.schemas import EventKind
from app.platform.ports.document_store import DocumentStorePort

log = logging.getLogger(__name__)

class ClinicalRecordRepository:
    """Writes for the six clinical-event collections. Each add is an independent, non-transactional write."""

    def __init__(self, store: DocumentStorePort, patients: PatientRepository):
        self.store = store
        self.patients = patients

    async def add_record(self, kind: EventKind, patient_id: str, data: dict) -> dict:
        # raises NotFound before anything is written
        await self.patients.get_patient(patient_id)
        now = self.patients.clock().isoformat()
        doc = {**{k: v for k, v in data.items() if k != "id"}, "patientId": patient_id, "createdAt": now, "updatedAt": now}
        try:
            doc_id = await self.store.add(kind.collection, doc)
        except Exception as e:
            log.error(f"Error adding {kind.value}: {e}", exc_info=True)
            raise StoreWriteFailure(f"Failed to add {kind.value}: {e}") from e
        log.info(f"Added {kind.value} {doc_id} for patient {patient_id}")
        return {"id": doc_id, **doc}

    async def add_encounter(self, patient_id: str, data: dict) -> dict:
        return await self.add_record(EventKind.ENCOUNTER, patient_id, data)

    async def add_condition(self, patient_id: str, data: dict) -> dict:
        return await self.add_record(EventKind.CONDITION, patient_id, data)

    async def add_medication(self, patient_id: str, data: dict) -> dict:
        return await self.add_record(EventKind.MEDICATION, patient_id, data)

    async def add_allergy(self, patient_id: str, data: dict) -> dict:
        return await self.add_record(EventKind.ALLERGY, patient_id, data)

    async def add_observation(self, patient_id: str, data: dict) -> dict:
        return await self.add_record(EventKind.OBSERVATION, patient_id, data)

    async def add_procedure(self, patient_id: str, data: dict) -> dict:
        return await self.add_record(EventKind.PROCEDURE, patient_id, data)
