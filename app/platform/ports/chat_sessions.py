from typing import Protocol, runtime_checkable

@runtime_checkable
class ChatSessionPort(Protocol):
    async def history(self, session_key: str) -> list[dict]: ...
    async def append(self, session_key: str, message: dict) -> None: ...
    async def clear(self, session_key: str) -> None: ...
