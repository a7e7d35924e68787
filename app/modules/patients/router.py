from fastapi import APIRouter, Depends
from app.api.deps import get_patient_service, get_patient_repo
from app.modules.patients.repository import PatientRepository
from app.modules.patients.schemas import PatientCreate, PatientUpdate, PatientOut, PatientStats
from app.modules.patients.service import PatientService, with_display
from app.modules.records.schemas import PatientRecords

router = APIRouter()

@router.get("", response_model=list[PatientOut])
async def list_patients(
    q: str | None = None,
    service: PatientService = Depends(get_patient_service),
):
    return [with_display(p) for p in await service.list(q)]

@router.post("", response_model=PatientOut, status_code=201)
async def register_patient(
    payload: PatientCreate,
    service: PatientService = Depends(get_patient_service),
):
    return with_display(await service.register(payload))

@router.get("/stats", response_model=PatientStats)
async def patient_stats(service: PatientService = Depends(get_patient_service)):
    return await service.stats()

@router.get("/{patient_id}", response_model=PatientOut)
async def get_patient(
    patient_id: str,
    service: PatientService = Depends(get_patient_service),
):
    return with_display(await service.get(patient_id))

@router.put("/{patient_id}", response_model=PatientOut)
async def edit_patient(
    patient_id: str,
    payload: PatientUpdate,
    service: PatientService = Depends(get_patient_service),
):
    return with_display(await service.edit(patient_id, payload))

@router.delete("/{patient_id}", status_code=204)
async def delete_patient(
    patient_id: str,
    service: PatientService = Depends(get_patient_service),
):
    await service.delete(patient_id)

@router.get("/{patient_id}/records", response_model=PatientRecords)
async def patient_records(
    patient_id: str,
    repo: PatientRepository = Depends(get_patient_repo),
):
    await repo.get_patient(patient_id)
    return await repo.get_patient_records(patient_id)
