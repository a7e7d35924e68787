import copy
from app.platform.ports.chat_sessions import ChatSessionPort

class InMemoryChatSessions(ChatSessionPort):
    def __init__(self):
        self._sessions: dict[str, list[dict]] = {}

    async def history(self, session_key: str) -> list[dict]:
        return copy.deepcopy(self._sessions.get(session_key, []))

    async def append(self, session_key: str, message: dict) -> None:
        self._sessions.setdefault(session_key, []).append(dict(message))

    async def clear(self, session_key: str) -> None:
        self._sessions.pop(session_key, None)
