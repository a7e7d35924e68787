from fastapi import APIRouter
from app.modules.patients.router import router as patients_router
from app.modules.timeline.router import router as timeline_router
from app.modules.ai.router import router as ai_router, assessment_router
from app.modules.records.router import router as records_router

api_router = APIRouter()
# /patients/{id}/{category} is the catch-all of the patient subtree, so it goes last
api_router.include_router(patients_router, prefix="/patients", tags=["patients"])
api_router.include_router(timeline_router, prefix="/patients", tags=["timeline"])
api_router.include_router(ai_router, prefix="/patients", tags=["ai"])
api_router.include_router(assessment_router, prefix="/ai", tags=["ai"])
api_router.include_router(records_router, prefix="/patients", tags=["records"])

@api_router.get("/health", tags=["health"])
async def health():
    return {"status": "ok"}
