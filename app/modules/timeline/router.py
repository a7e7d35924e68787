from fastapi import APIRouter, Depends, Query
from app.api.deps import get_patient_repo
from app.modules.patients.repository import PatientRepository
from app.modules.timeline.merger import merge_timeline
from app.modules.timeline.schemas import TimelineOut, TimelineFilter

router = APIRouter()

@router.get("/{patient_id}/timeline", response_model=TimelineOut)
async def patient_timeline(
    patient_id: str,
    filter: TimelineFilter = Query("all"),
    repo: PatientRepository = Depends(get_patient_repo),
):
    await repo.get_patient(patient_id)
    records = await repo.get_patient_records(patient_id)
    events = merge_timeline(records, filter)
    return TimelineOut(patient_id=patient_id, filter=filter, events=events, empty=not events)
