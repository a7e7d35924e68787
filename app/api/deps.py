from fastapi import Request
from app.modules.patients.repository import PatientRepository
from app.modules.patients.service import PatientService
from app.modules.records.repository import ClinicalRecordRepository
from app.modules.ai.service import AIService

# The application builds these once in create_app(); routes only borrow them.

def get_patient_repo(request: Request) -> PatientRepository:
    return request.app.state.patients

def get_patient_service(request: Request) -> PatientService:
    return PatientService(request.app.state.patients)

def get_record_repo(request: Request) -> ClinicalRecordRepository:
    return request.app.state.records

def get_ai_service(request: Request) -> AIService:
    return request.app.state.ai
