import httpx
import logging
from app.core.errors import AIRequestFailed, AIResponseMalformed

logger = logging.getLogger(__name__)

SAFETY_SETTINGS = [
    {"category": category, "threshold": "BLOCK_MEDIUM_AND_ABOVE"}
    for category in (
        "HARM_CATEGORY_HARASSMENT",
        "HARM_CATEGORY_HATE_SPEECH",
        "HARM_CATEGORY_SEXUALLY_EXPLICIT",
        "HARM_CATEGORY_DANGEROUS_CONTENT",
    )
]

def text_part(text: str) -> dict:
    return {"text": text}

def image_part(data_b64: str, mime_type: str) -> dict:
    return {"inline_data": {"mime_type": mime_type, "data": data_b64}}

class GeminiClient:
    """
    Thin client for a generateContent-style endpoint.

    One POST per call, no retries; every failure surfaces as AIRequestFailed
    or AIResponseMalformed and the caller decides whether to try again.
    """
    def __init__(
        self,
        api_url: str,
        api_key: str,
        timeout: float = 60.0,
        max_output_tokens: int = 2048,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_url = api_url
        self.api_key = api_key
        self.timeout = timeout
        self.max_output_tokens = max_output_tokens
        self.transport = transport

    def build_body(self, parts: list[dict], temperature: float, max_output_tokens: int | None) -> dict:
        return {
            "contents": [{"parts": parts}],
            "generationConfig": {
                "temperature": temperature,
                "topK": 40,
                "topP": 0.95,
                "maxOutputTokens": max_output_tokens or self.max_output_tokens,
                "candidateCount": 1,
            },
            "safetySettings": SAFETY_SETTINGS,
        }

    async def generate(
        self,
        parts: list[dict],
        temperature: float = 0.7,
        max_output_tokens: int | None = None,
    ) -> str:
        if not self.api_key:
            raise AIRequestFailed("AI API key is not configured")

        body = self.build_body(parts, temperature, max_output_tokens)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.api_url, params={"key": self.api_key}, json=body)
        except httpx.TimeoutException as e:
            logger.error(f"AI request timed out after {self.timeout}s: {e}")
            raise AIRequestFailed(f"AI request timed out: {e}") from e
        except httpx.HTTPError as e:
            logger.error(f"AI request failed: {e}", exc_info=True)
            raise AIRequestFailed(f"AI request failed: {e}") from e

        if not response.is_success:
            raise AIRequestFailed(
                f"AI API error: {response.status_code} - {self._error_message(response)}",
                upstream_status=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"AI response was not JSON: {response.text[:200]}")
            raise AIRequestFailed("AI API returned malformed JSON", upstream_status=response.status_code) from e

        return self.extract_text(data)

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            payload = response.json()
        except ValueError:
            return response.reason_phrase or "Unknown error"
        if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
            return payload["error"].get("message") or response.reason_phrase
        return response.reason_phrase or "Unknown error"

    @staticmethod
    def extract_text(data: dict) -> str:
        if not isinstance(data, dict):
            raise AIResponseMalformed("Invalid response format from AI API")
        feedback = data.get("promptFeedback")
        if feedback is not None and not isinstance(feedback, dict):
            raise AIResponseMalformed("Invalid response format from AI API: promptFeedback")
        block = (feedback or {}).get("blockReason")
        if block:
            raise AIResponseMalformed(f"Prompt blocked by safety filter: {block}")
        candidates = data.get("candidates") or []
        if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
            raise AIResponseMalformed("Invalid response format from AI API: no candidates")
        first = candidates[0]
        content = first.get("content") or {}
        parts = content.get("parts") if isinstance(content, dict) else None
        if parts is not None and not isinstance(parts, list):
            parts = None
        text = parts[0].get("text") if parts and isinstance(parts[0], dict) else None
        if not isinstance(text, str) or not text:
            if first.get("finishReason") == "SAFETY":
                raise AIResponseMalformed("Response blocked by safety filter")
            raise AIResponseMalformed("Invalid response format from AI API: candidate has no text")
        return text
