from datetime import datetime, timezone
from app.platform.ports.chat_sessions import ChatSessionPort

def session_key(patient_id: str, session_id: str) -> str:
    return f"{patient_id}:{session_id}"

def message(kind: str, content: str, context_limit: int | None = None) -> dict:
    msg = {"type": kind, "content": content, "timestamp": datetime.now(timezone.utc).isoformat()}
    if context_limit is not None:
        msg["context_limit"] = context_limit
    return msg

class ChatLog:
    """Append-only per-session message history; clearing discards it."""

    def __init__(self, sessions: ChatSessionPort):
        self.sessions = sessions

    async def history(self, patient_id: str, session_id: str) -> list[dict]:
        return await self.sessions.history(session_key(patient_id, session_id))

    async def add_user(self, patient_id: str, session_id: str, content: str) -> dict:
        msg = message("user", content)
        await self.sessions.append(session_key(patient_id, session_id), msg)
        return msg

    async def add_ai(self, patient_id: str, session_id: str, content: str, context_limit: int) -> dict:
        msg = message("ai", content, context_limit)
        await self.sessions.append(session_key(patient_id, session_id), msg)
        return msg

    async def clear(self, patient_id: str, session_id: str) -> None:
        await self.sessions.clear(session_key(patient_id, session_id))
