from datetime import datetime
from typing import Literal
from pydantic import BaseModel, Field

# Summary
class SummaryRequest(BaseModel):
    save: bool = False

class SummaryOut(BaseModel):
    patient_id: str
    summary: str
    saved: bool = False
    generated_at: datetime

# Chat
class ChatMessage(BaseModel):
    type: Literal["user", "ai"]
    content: str
    timestamp: datetime
    context_limit: int | None = None

class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1)
    session_id: str = Field(default="default", min_length=1, max_length=64)
    limit: Literal[5, 10, 15, 20, 50] = 5

class ChatOut(BaseModel):
    patient_id: str
    session_id: str
    reply: ChatMessage
    history: list[ChatMessage]

class ChatHistoryOut(BaseModel):
    patient_id: str
    session_id: str
    history: list[ChatMessage]

# Symptom assessment
class SymptomIn(BaseModel):
    symptom: str = Field(..., min_length=1)
    severity: str = Field(default="moderate", pattern="^(mild|moderate|severe|critical)$")
    duration: str = "Unknown duration"

class SymptomAssessmentRequest(BaseModel):
    symptoms: list[SymptomIn] = Field(..., min_length=1)
    additional_info: str | None = None
    name: str | None = None
    birth_date: str | None = None
    gender: str | None = None
    # when set, the analysis is written back to this patient
    patient_id: str | None = None

class SymptomAssessmentOut(BaseModel):
    analysis: str
    patient_id: str | None = None
    saved: bool = False

# New issues
class NewIssueIn(BaseModel):
    issue: str = Field(..., min_length=1)
    severity: str = "moderate"
    duration: str = "Unknown duration"

class NewIssueRequest(BaseModel):
    issues: list[NewIssueIn] = Field(..., min_length=1)
    notes: str | None = None

class AnalysisOut(BaseModel):
    patient_id: str
    analysis: str
    generated_at: datetime

# Image analysis
class ImageAnalysisRequest(BaseModel):
    image_base64: str = Field(..., min_length=1)
    mime_type: str = Field(default="image/jpeg", pattern="^image/[a-z0-9.+-]+$")
    image_type: Literal["skin", "wound", "eye", "oral", "dermatology", "xray", "other"] = "other"
    context: str | None = None
