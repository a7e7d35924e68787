import asyncio
from datetime import datetime, timezone

import httpx
import pytest

from app.modules.ai.client import GeminiClient
from app.modules.patients.repository import PatientRepository
from app.modules.records.repository import ClinicalRecordRepository
from app.platform.adapters.chat_memory import InMemoryChatSessions
from app.platform.adapters.store_memory import InMemoryDocumentStore

FIXED_NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)

def run(coro):
    return asyncio.run(coro)

def gemini_reply(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}, "finishReason": "STOP"}]}

def jane_doe(**overrides) -> dict:
    data = {
        "resourceType": "Patient",
        "name": [{"use": "official", "given": ["Jane"], "family": "Doe"}],
        "gender": "female",
        "birthDate": "1980-05-12",
        "telecom": [{"system": "phone", "value": "555-0100", "use": "mobile"}],
    }
    data.update(overrides)
    return data

class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler):
        self.requests: list[httpx.Request] = []

        def recording(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(recording)

@pytest.fixture
def store():
    return InMemoryDocumentStore()

@pytest.fixture
def repo(store):
    return PatientRepository(store, clock=lambda: FIXED_NOW)

@pytest.fixture
def records(store, repo):
    return ClinicalRecordRepository(store, repo)

@pytest.fixture
def chat_sessions():
    return InMemoryChatSessions()

@pytest.fixture
def ai_transport():
    return RecordingTransport(lambda request: httpx.Response(200, json=gemini_reply("Stable patient.")))

@pytest.fixture
def ai_client(ai_transport):
    return GeminiClient("https://ai.test/v1/models/test:generateContent", "test-key", timeout=5, transport=ai_transport)
