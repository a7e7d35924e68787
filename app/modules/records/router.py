import pydantic
from fastapi import APIRouter, Body, Depends
from app.api.deps import get_patient_repo, get_record_repo
from app.core.errors import ValidationError
from app.modules.patients.repository import PatientRepository
from app.modules.records.repository import ClinicalRecordRepository
from app.modules.records.schemas import CREATE_SCHEMAS, RecordCategory

router = APIRouter()

@router.get("/{patient_id}/{category}", response_model=list[dict])
async def list_records(
    patient_id: str,
    category: RecordCategory,
    repo: PatientRepository = Depends(get_patient_repo),
):
    await repo.get_patient(patient_id)
    # a single-category view still degrades to an empty list
    return await repo.get_category(category.kind, patient_id)

@router.post("/{patient_id}/{category}", response_model=dict, status_code=201)
async def add_record(
    patient_id: str,
    category: RecordCategory,
    payload: dict = Body(...),
    records: ClinicalRecordRepository = Depends(get_record_repo),
):
    kind = category.kind
    try:
        parsed = CREATE_SCHEMAS[kind].model_validate(payload)
    except pydantic.ValidationError as e:
        raise ValidationError([f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()])
    return await records.add_record(kind, patient_id, parsed.to_document())
