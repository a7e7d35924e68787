import asyncio
import calendar
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from app.core.errors import NotFound, StoreReadFailure, StoreWriteFailure
from app.modules.patients.naming import AGE_GROUPS, age_group, calculate_age, format_name
from app.modules.records.schemas import EventKind, PatientRecords
from app.modules.timeline.normalizer import newest_first, parse_datetime, sort_key
from app.platform.ports.document_store import DocumentStorePort, OrderingUnavailable

log = logging.getLogger(__name__)

PATIENTS = "patients"

def _now() -> datetime:
    return datetime.now(timezone.utc)

def one_month_before(moment: datetime) -> datetime:
    """Same day one calendar month earlier, clamped to the end of a shorter month."""
    year, month = (moment.year, moment.month - 1) if moment.month > 1 else (moment.year - 1, 12)
    return moment.replace(year=year, month=month, day=min(moment.day, calendar.monthrange(year, month)[1]))

def _is_active(doc: dict) -> bool:
    return doc.get("active") is not False

# stamped by the repository, never taken from the caller
MANAGED_FIELDS = frozenset({"id", "active", "createdAt", "updatedAt", "deletedAt"})

@dataclass
class CategoryResult:
    """Outcome of one per-category fetch; a failure carries the error instead of raising."""
    kind: EventKind
    records: list[dict]
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

class PatientRepository:
    """
    The only boundary between the app and the document store for patients
    and their clinical-event collections.
    """
    def __init__(self, store: DocumentStorePort, clock: Callable[[], datetime] = _now):
        self.store = store
        self.clock = clock

    def _stamp(self) -> str:
        return self.clock().isoformat()

    # ---- Patients ----
    async def create_patient(self, data: dict) -> dict:
        now = self._stamp()
        doc = {**{k: v for k, v in data.items() if k not in MANAGED_FIELDS}, "createdAt": now, "updatedAt": now, "active": True}
        try:
            patient_id = await self.store.add(PATIENTS, doc)
        except Exception as e:
            log.error(f"Error creating patient: {e}", exc_info=True)
            raise StoreWriteFailure(f"Failed to create patient: {e}") from e
        log.info(f"Created patient {patient_id}")
        return {"id": patient_id, **doc}

    async def update_patient(self, patient_id: str, data: dict) -> dict:
        changes = {**{k: v for k, v in data.items() if k not in MANAGED_FIELDS}, "updatedAt": self._stamp()}
        try:
            found = await self.store.update(PATIENTS, patient_id, changes)
        except Exception as e:
            log.error(f"Error updating patient {patient_id}: {e}", exc_info=True)
            raise StoreWriteFailure(f"Failed to update patient: {e}") from e
        if not found:
            raise NotFound(f"Patient {patient_id} not found")
        return await self.get_patient(patient_id)

    async def delete_patient(self, patient_id: str) -> bool:
        """Soft delete: the document stays, flagged inactive."""
        try:
            found = await self.store.update(PATIENTS, patient_id, {"active": False, "deletedAt": self._stamp()})
        except Exception as e:
            log.error(f"Error deleting patient {patient_id}: {e}", exc_info=True)
            raise StoreWriteFailure(f"Failed to delete patient: {e}") from e
        if not found:
            raise NotFound(f"Patient {patient_id} not found")
        log.info(f"Soft-deleted patient {patient_id}")
        return True

    async def get_patient(self, patient_id: str) -> dict:
        try:
            doc = await self.store.get(PATIENTS, patient_id)
        except Exception as e:
            log.error(f"Error fetching patient {patient_id}: {e}", exc_info=True)
            raise StoreReadFailure(f"Failed to fetch patient: {e}") from e
        if doc is None:
            raise NotFound(f"Patient {patient_id} not found")
        return doc

    async def get_all_patients(self) -> list[dict]:
        try:
            try:
                docs = await self.store.query(PATIENTS, order_by=("createdAt", "desc"))
            except OrderingUnavailable as e:
                log.warning(f"Ordering not supported, using simple query: {e}")
                docs = await self.store.query(PATIENTS)
                docs.sort(key=lambda d: sort_key(d.get("createdAt")), reverse=True)
        except Exception as e:
            log.error(f"Error fetching patients: {e}", exc_info=True)
            raise StoreReadFailure(f"Failed to fetch patients: {e}") from e
        return [d for d in docs if _is_active(d)]

    async def search_patients(self, term: str | None) -> list[dict]:
        patients = await self.get_all_patients()
        needle = (term or "").strip().lower()
        if not needle:
            return patients
        return [p for p in patients if needle in format_name(p.get("name")).lower()]

    async def get_patient_stats(self) -> dict:
        stats = {
            "total": 0,
            "byGender": {"male": 0, "female": 0, "other": 0},
            "byAgeGroup": {g: 0 for g in AGE_GROUPS},
            "newThisMonth": 0,
        }
        try:
            docs = await self.store.query(PATIENTS)
        except Exception as e:
            log.error(f"Error fetching patient stats: {e}", exc_info=True)
            return stats
        cutoff = one_month_before(self.clock())
        for p in filter(_is_active, docs):
            stats["total"] += 1
            if p.get("gender") in stats["byGender"]:
                stats["byGender"][p["gender"]] += 1
            group = age_group(calculate_age(p.get("birthDate")))
            if group:
                stats["byAgeGroup"][group] += 1
            created = parse_datetime(p.get("createdAt"))
            if created and created > cutoff:
                stats["newThisMonth"] += 1
        return stats

    # ---- Clinical events ----
    async def fetch_category(self, kind: EventKind, patient_id: str) -> CategoryResult:
        try:
            docs = await self.store.query(kind.collection, where=[("patientId", patient_id)])
        except Exception as e:
            return CategoryResult(kind, [], e)
        return CategoryResult(kind, list(newest_first(kind, docs)))

    async def get_category(self, kind: EventKind, patient_id: str) -> list[dict]:
        result = await self.fetch_category(kind, patient_id)
        if not result.ok:
            log.warning(f"Error fetching {kind.collection} for patient {patient_id}, returning empty list: {result.error}")
        return result.records

    async def get_patient_encounters(self, patient_id: str) -> list[dict]:
        return await self.get_category(EventKind.ENCOUNTER, patient_id)

    async def get_patient_conditions(self, patient_id: str) -> list[dict]:
        return await self.get_category(EventKind.CONDITION, patient_id)

    async def get_patient_medications(self, patient_id: str) -> list[dict]:
        return await self.get_category(EventKind.MEDICATION, patient_id)

    async def get_patient_procedures(self, patient_id: str) -> list[dict]:
        return await self.get_category(EventKind.PROCEDURE, patient_id)

    async def get_patient_observations(self, patient_id: str) -> list[dict]:
        return await self.get_category(EventKind.OBSERVATION, patient_id)

    async def get_patient_allergies(self, patient_id: str) -> list[dict]:
        return await self.get_category(EventKind.ALLERGY, patient_id)

    async def get_patient_records(self, patient_id: str) -> PatientRecords:
        # categories load concurrently and fail independently
        lists = await asyncio.gather(*(self.get_category(k, patient_id) for k in EventKind))
        return PatientRecords(**{k.collection: records for k, records in zip(EventKind, lists)})
