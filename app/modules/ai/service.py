import logging
from datetime import datetime, timezone
from typing import Any

from app.core.errors import AppError, ValidationError
from app.modules.ai import prompts
from app.modules.ai.chat import ChatLog
from app.modules.ai.client import GeminiClient, image_part, text_part
from app.modules.ai.context import CHAT_LIMITS, DEFAULT_LIMIT, build_context
from app.modules.patients.naming import calculate_age, format_name
from app.modules.patients.repository import PatientRepository
from app.platform.ports.chat_sessions import ChatSessionPort

logger = logging.getLogger(__name__)

SUMMARY_CONFIG = {"temperature": 0.7, "max_output_tokens": 2048}
CHAT_CONFIG = {"temperature": 0.7, "max_output_tokens": 2048}
SYMPTOM_CONFIG = {"temperature": 0.5, "max_output_tokens": 2048}
NEW_ISSUE_CONFIG = {"temperature": 0.6, "max_output_tokens": 3072}
IMAGE_CONFIG = {"temperature": 0.4, "max_output_tokens": 3072}

NEW_ISSUE_HISTORY_LIMIT = 10

def _bullets(items: list[dict], label: str) -> str:
    return "\n".join(
        f"- {i[label]} (Severity: {i.get('severity') or 'unknown'}, Duration: {i.get('duration') or 'Unknown duration'})"
        for i in items
    )

class AIService:
    """
    Builds prompts from a patient's stored records and sends them to the
    generative endpoint. Nothing here retries; AI errors propagate to the caller.
    """
    def __init__(
        self,
        client: GeminiClient,
        patients: PatientRepository,
        chats: ChatSessionPort,
        context_limit: int = DEFAULT_LIMIT,
    ):
        self.client = client
        self.patients = patients
        self.chats = ChatLog(chats)
        self.context_limit = context_limit

    async def _generate(self, what: str, parts: list[dict], config: dict) -> str:
        try:
            return await self.client.generate(parts, **config)
        except AppError as e:
            logger.error(f"AI {what} failed: {e.message}")
            raise

    async def _context(self, patient_id: str, limit: int, full_history: bool = False) -> tuple[dict, str]:
        patient = await self.patients.get_patient(patient_id)
        records = await self.patients.get_patient_records(patient_id)
        return patient, build_context(patient, records, limit, full_history=full_history)

    # ---- Summary ----
    async def summarize(self, patient_id: str, save: bool = False) -> dict:
        _, context = await self._context(patient_id, self.context_limit)
        summary = await self._generate("summary", [text_part(prompts.SUMMARY.format(context=context))], SUMMARY_CONFIG)
        if save:
            await self.patients.update_patient(patient_id, {"aiAnalysis": summary})
        return {
            "patient_id": patient_id,
            "summary": summary,
            "saved": save,
            "generated_at": datetime.now(timezone.utc),
        }

    # ---- Chat ----
    async def chat(self, patient_id: str, question: str, session_id: str = "default", limit: int = DEFAULT_LIMIT) -> dict:
        if limit not in CHAT_LIMITS:
            raise ValidationError(f"limit must be one of {', '.join(str(n) for n in CHAT_LIMITS)}")
        question = question.strip()
        if not question:
            raise ValidationError("Message required")
        _, context = await self._context(patient_id, limit)

        # the question stays in the history even if the model call fails
        await self.chats.add_user(patient_id, session_id, question)
        prompt = prompts.CHAT.format(limit=limit, context=context, question=question)
        answer = await self._generate("chat", [text_part(prompt)], CHAT_CONFIG)
        reply = await self.chats.add_ai(patient_id, session_id, answer, limit)
        return {
            "patient_id": patient_id,
            "session_id": session_id,
            "reply": reply,
            "history": await self.chats.history(patient_id, session_id),
        }

    async def chat_history(self, patient_id: str, session_id: str = "default") -> list[dict]:
        return await self.chats.history(patient_id, session_id)

    async def clear_chat(self, patient_id: str, session_id: str = "default") -> None:
        await self.chats.clear(patient_id, session_id)

    # ---- Symptom assessment ----
    async def analyze_symptoms(
        self,
        symptoms: list[dict],
        additional_info: str | None = None,
        name: str | None = None,
        birth_date: str | None = None,
        gender: str | None = None,
        patient_id: str | None = None,
    ) -> dict:
        if not symptoms:
            raise ValidationError("Please add at least one symptom before analyzing")
        patient: dict[str, Any] = {}
        if patient_id:
            patient = await self.patients.get_patient(patient_id)

        age = calculate_age(birth_date or patient.get("birthDate"))
        prompt = prompts.SYMPTOMS.format(
            name=name or (format_name(patient["name"]) if patient.get("name") else "New Patient"),
            age=age if isinstance(age, int) else "Not specified",
            gender=gender or patient.get("gender") or "Not specified",
            symptoms=_bullets(symptoms, "symptom"),
            additional=additional_info or "None provided",
        )
        analysis = await self._generate("symptom assessment", [text_part(prompt)], SYMPTOM_CONFIG)

        if patient_id:
            await self.patients.update_patient(patient_id, {
                "hasSymptomAssessment": True,
                "initialSymptoms": [{"id": str(i), **s} for i, s in enumerate(symptoms, start=1)],
                "symptomAdditionalInfo": additional_info or "",
                "aiSymptomAnalysis": analysis,
                "symptomAssessmentDate": self.patients.clock().isoformat(),
            })
        return {"analysis": analysis, "patient_id": patient_id, "saved": bool(patient_id)}

    # ---- New issues ----
    async def analyze_new_issues(self, patient_id: str, issues: list[dict], notes: str | None = None) -> dict:
        if not issues:
            raise ValidationError("Please add at least one new issue before analyzing")
        _, context = await self._context(patient_id, NEW_ISSUE_HISTORY_LIMIT, full_history=True)
        prompt = prompts.NEW_ISSUES.format(
            context=context,
            issues=_bullets(issues, "issue"),
            notes=notes or "None provided",
        )
        analysis = await self._generate("new-issue analysis", [text_part(prompt)], NEW_ISSUE_CONFIG)
        return {"patient_id": patient_id, "analysis": analysis, "generated_at": datetime.now(timezone.utc)}

    # ---- Image analysis ----
    async def analyze_image(
        self,
        patient_id: str,
        image_base64: str,
        mime_type: str = "image/jpeg",
        image_type: str = "other",
        context: str | None = None,
    ) -> dict:
        patient = await self.patients.get_patient(patient_id)
        # tolerate a data URL as produced by browsers
        if image_base64.startswith("data:") and "," in image_base64:
            image_base64 = image_base64.split(",", 1)[1]
        prompt = prompts.IMAGE.format(
            name=format_name(patient.get("name")),
            age=calculate_age(patient.get("birthDate")),
            gender=patient.get("gender") or "Unknown",
            image_type=prompts.IMAGE_TYPES.get(image_type, prompts.IMAGE_TYPES["other"]),
            additional=context or "None provided",
        )
        parts = [text_part(prompt), image_part(image_base64, mime_type)]
        analysis = await self._generate("image analysis", parts, IMAGE_CONFIG)
        return {"patient_id": patient_id, "analysis": analysis, "generated_at": datetime.now(timezone.utc)}
