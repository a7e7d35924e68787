import json

import httpx
import pytest

from app.core.errors import AIRequestFailed, AIResponseMalformed, NotFound, ValidationError
from app.modules.ai.client import GeminiClient, image_part, text_part
from app.modules.ai.context import build_context
from app.modules.ai.service import AIService
from app.modules.records.schemas import PatientRecords
from conftest import gemini_reply, jane_doe, run

URL = "https://ai.test/v1/models/test:generateContent"


def client_for(handler, key="test-key"):
    return GeminiClient(URL, key, timeout=5, transport=httpx.MockTransport(handler))


# ---- client ----

def test_generate_posts_contents_config_and_safety(ai_client, ai_transport):
    text = run(ai_client.generate([text_part("hello"), image_part("QUJD", "image/png")], temperature=0.5, max_output_tokens=99))
    assert text == "Stable patient."

    request = ai_transport.requests[0]
    assert request.url.params["key"] == "test-key"
    body = json.loads(request.content)
    assert body["contents"][0]["parts"] == [
        {"text": "hello"},
        {"inline_data": {"mime_type": "image/png", "data": "QUJD"}},
    ]
    assert body["generationConfig"]["temperature"] == 0.5
    assert body["generationConfig"]["maxOutputTokens"] == 99
    assert {s["category"] for s in body["safetySettings"]} == {
        "HARM_CATEGORY_HARASSMENT",
        "HARM_CATEGORY_HATE_SPEECH",
        "HARM_CATEGORY_SEXUALLY_EXPLICIT",
        "HARM_CATEGORY_DANGEROUS_CONTENT",
    }
    assert {s["threshold"] for s in body["safetySettings"]} == {"BLOCK_MEDIUM_AND_ABOVE"}


def test_non_2xx_carries_upstream_status_and_message():
    client = client_for(lambda r: httpx.Response(429, json={"error": {"message": "Quota exceeded"}}))
    with pytest.raises(AIRequestFailed) as exc:
        run(client.generate([text_part("x")]))
    assert exc.value.upstream_status == 429
    assert "Quota exceeded" in exc.value.message


def test_network_failure_is_request_failed_and_not_retried():
    calls = []

    def handler(request):
        calls.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(AIRequestFailed):
        run(client_for(handler).generate([text_part("x")]))
    assert len(calls) == 1


def test_timeout_is_request_failed():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(AIRequestFailed) as exc:
        run(client_for(handler).generate([text_part("x")]))
    assert "timed out" in exc.value.message


def test_invalid_json_is_request_failed():
    client = client_for(lambda r: httpx.Response(200, content=b"<html>oops</html>"))
    with pytest.raises(AIRequestFailed):
        run(client.generate([text_part("x")]))


@pytest.mark.parametrize("payload", [
    {},
    {"candidates": []},
    {"candidates": [{"content": {"parts": []}}]},
    {"candidates": [{"finishReason": "SAFETY"}]},
    {"promptFeedback": {"blockReason": "SAFETY"}},
    {"promptFeedback": "blocked"},
    {"candidates": {"content": {}}},
    {"candidates": [{"content": [{"text": "x"}]}]},
    {"candidates": [{"content": {"parts": {"text": "x"}}}]},
    {"candidates": [{"content": {"parts": [{"text": 42}]}}]},
    [],
])
def test_unusable_candidates_are_malformed(payload):
    client = client_for(lambda r: httpx.Response(200, json=payload))
    with pytest.raises(AIResponseMalformed):
        run(client.generate([text_part("x")]))


def test_missing_key_fails_without_calling_out():
    calls = []
    client = client_for(lambda r: calls.append(r) or httpx.Response(200, json=gemini_reply("x")), key="")
    with pytest.raises(AIRequestFailed):
        run(client.generate([text_part("x")]))
    assert calls == []


# ---- context ----

def test_context_keeps_five_newest_medications():
    meds = [{"display": f"Med{i}", "authoredOn": f"2024-0{i}-01"} for i in range(1, 8)]
    context = build_context(jane_doe(), PatientRecords(medications=meds), limit=5)

    for name in ("Med7", "Med6", "Med5", "Med4", "Med3"):
        assert name in context
    assert "Med2" not in context and "Med1" not in context
    assert context.index("1. Med7") < context.index("5. Med3")


def test_context_header_and_empty_sections():
    context = build_context(jane_doe(race="Asian", ethnicity="Non-Hispanic"), PatientRecords())
    assert "- Name: Jane Doe" in context
    assert "- Gender: female" in context
    assert "- Demographics: Asian, Non-Hispanic" in context
    assert context.count("None recorded") == 5


def test_full_history_adds_allergies_and_symptoms():
    patient = jane_doe(hasSymptomAssessment=True, initialSymptoms=[{"symptom": "Cough", "severity": "mild", "duration": "2 days"}])
    context = build_context(patient, PatientRecords(allergies=[{"display": "Peanuts"}]), full_history=True)
    assert "Peanuts" in context
    assert "- Cough (mild, 2 days)" in context


# ---- service ----

@pytest.fixture
def ai(ai_client, repo, chat_sessions):
    return AIService(ai_client, repo, chat_sessions)


@pytest.fixture
def patient_id(repo, records):
    pid = run(repo.create_patient(jane_doe()))["id"]
    run(records.add_condition(pid, {"display": "Hypertension", "onsetDateTime": "2020-01-01"}))
    return pid


def test_summary_uses_context_and_optionally_saves(ai, repo, patient_id, ai_transport):
    result = run(ai.summarize(patient_id))
    assert result["summary"] == "Stable patient."
    assert "aiAnalysis" not in run(repo.get_patient(patient_id))

    prompt = json.loads(ai_transport.requests[0].content)["contents"][0]["parts"][0]["text"]
    assert "Hypertension" in prompt
    assert "Jane Doe" in prompt

    run(ai.summarize(patient_id, save=True))
    assert run(repo.get_patient(patient_id))["aiAnalysis"] == "Stable patient."


def test_summary_for_missing_patient(ai):
    with pytest.raises(NotFound):
        run(ai.summarize("missing"))


def test_chat_appends_history_and_clears(ai, patient_id):
    first = run(ai.chat(patient_id, "Any chronic conditions?"))
    assert [m["type"] for m in first["history"]] == ["user", "ai"]
    assert first["reply"]["content"] == "Stable patient."
    assert first["reply"]["context_limit"] == 5

    run(ai.chat(patient_id, "And medications?", limit=10))
    assert len(run(ai.chat_history(patient_id))) == 4
    # sessions are scoped per patient and per session id
    assert run(ai.chat_history(patient_id, "other")) == []

    run(ai.clear_chat(patient_id))
    assert run(ai.chat_history(patient_id)) == []


def test_chat_rejects_unsupported_limit(ai, patient_id):
    with pytest.raises(ValidationError):
        run(ai.chat(patient_id, "hi", limit=7))


def test_chat_failure_keeps_question_without_reply(repo, chat_sessions, patient_id):
    failing = GeminiClient(URL, "k", transport=httpx.MockTransport(lambda r: httpx.Response(500, json={})))
    ai = AIService(failing, repo, chat_sessions)
    with pytest.raises(AIRequestFailed):
        run(ai.chat(patient_id, "hello?"))
    assert [m["type"] for m in run(ai.chat_history(patient_id))] == ["user"]


def test_symptom_assessment_writes_back(ai, repo, patient_id, ai_transport):
    symptoms = [{"symptom": "Headache", "severity": "severe", "duration": "1 week"}]
    result = run(ai.analyze_symptoms(symptoms, additional_info="worse at night", patient_id=patient_id))
    assert result["saved"] is True

    stored = run(repo.get_patient(patient_id))
    assert stored["aiSymptomAnalysis"] == "Stable patient."
    assert stored["hasSymptomAssessment"] is True
    assert stored["initialSymptoms"][0]["symptom"] == "Headache"

    body = json.loads(ai_transport.requests[0].content)
    assert body["generationConfig"]["temperature"] == 0.5
    assert "- Headache (Severity: severe, Duration: 1 week)" in body["contents"][0]["parts"][0]["text"]


def test_new_issue_analysis_uses_wider_history(ai, patient_id, ai_transport):
    run(ai.analyze_new_issues(patient_id, [{"issue": "Dizziness", "severity": "mild", "duration": "2 days"}]))
    body = json.loads(ai_transport.requests[0].content)
    assert body["generationConfig"]["temperature"] == 0.6
    assert body["generationConfig"]["maxOutputTokens"] == 3072
    assert "(Last 10," in body["contents"][0]["parts"][0]["text"]


def test_image_analysis_forwards_inline_data(ai, patient_id, ai_transport):
    run(ai.analyze_image(patient_id, "data:image/png;base64,QUJD", mime_type="image/png", image_type="skin"))
    parts = json.loads(ai_transport.requests[0].content)["contents"][0]["parts"]
    assert "Skin Condition/Rash" in parts[0]["text"]
    assert parts[1] == {"inline_data": {"mime_type": "image/png", "data": "QUJD"}}
