from fastapi import APIRouter, Depends, Query
from app.api.deps import get_ai_service
from app.modules.ai.schemas import (
    SummaryRequest, SummaryOut, ChatRequest, ChatOut, ChatHistoryOut,
    SymptomAssessmentRequest, SymptomAssessmentOut, NewIssueRequest, ImageAnalysisRequest, AnalysisOut,
)
from app.modules.ai.service import AIService

# mounted under /patients
router = APIRouter()
# mounted under /ai; symptom assessment can run before a patient exists
assessment_router = APIRouter()

@router.post("/{patient_id}/ai/summary", response_model=SummaryOut)
async def generate_summary(
    patient_id: str,
    payload: SummaryRequest | None = None,
    ai: AIService = Depends(get_ai_service),
):
    return await ai.summarize(patient_id, save=bool(payload and payload.save))

@router.post("/{patient_id}/ai/chat", response_model=ChatOut)
async def chat(
    patient_id: str,
    payload: ChatRequest,
    ai: AIService = Depends(get_ai_service),
):
    return await ai.chat(patient_id, payload.message, session_id=payload.session_id, limit=payload.limit)

@router.get("/{patient_id}/ai/chat", response_model=ChatHistoryOut)
async def chat_history(
    patient_id: str,
    session_id: str = Query("default", min_length=1, max_length=64),
    ai: AIService = Depends(get_ai_service),
):
    history = await ai.chat_history(patient_id, session_id)
    return ChatHistoryOut(patient_id=patient_id, session_id=session_id, history=history)

@router.delete("/{patient_id}/ai/chat", status_code=204)
async def clear_chat(
    patient_id: str,
    session_id: str = Query("default", min_length=1, max_length=64),
    ai: AIService = Depends(get_ai_service),
):
    await ai.clear_chat(patient_id, session_id)

@router.post("/{patient_id}/ai/new-issues", response_model=AnalysisOut)
async def analyze_new_issues(
    patient_id: str,
    payload: NewIssueRequest,
    ai: AIService = Depends(get_ai_service),
):
    issues = [i.model_dump() for i in payload.issues]
    return await ai.analyze_new_issues(patient_id, issues, notes=payload.notes)

@router.post("/{patient_id}/ai/image", response_model=AnalysisOut)
async def analyze_image(
    patient_id: str,
    payload: ImageAnalysisRequest,
    ai: AIService = Depends(get_ai_service),
):
    return await ai.analyze_image(
        patient_id,
        payload.image_base64,
        mime_type=payload.mime_type,
        image_type=payload.image_type,
        context=payload.context,
    )

@assessment_router.post("/symptoms", response_model=SymptomAssessmentOut)
async def assess_symptoms(
    payload: SymptomAssessmentRequest,
    ai: AIService = Depends(get_ai_service),
):
    return await ai.analyze_symptoms(
        [s.model_dump() for s in payload.symptoms],
        additional_info=payload.additional_info,
        name=payload.name,
        birth_date=payload.birth_date,
        gender=payload.gender,
        patient_id=payload.patient_id,
    )
