import json
import logging
from datetime import timedelta
from app.core.redis import RedisManager
from app.platform.ports.chat_sessions import ChatSessionPort

log = logging.getLogger("chat.redis")

class RedisChatSessions(ChatSessionPort):
    """Chat history as a redis list per session; the whole list expires after inactivity."""

    def __init__(self, manager: RedisManager, ttl: timedelta = timedelta(minutes=15)):
        self.manager = manager
        self.ttl = ttl

    def _key(self, session_key: str) -> str:
        return f"chat_session:{session_key}"

    async def history(self, session_key: str) -> list[dict]:
        redis = await self.manager.connect()
        raw = await redis.lrange(self._key(session_key), 0, -1)
        return [json.loads(item) for item in raw]

    async def append(self, session_key: str, message: dict) -> None:
        redis = await self.manager.connect()
        key = self._key(session_key)
        pipe = redis.pipeline()
        pipe.rpush(key, json.dumps(message))
        pipe.expire(key, int(self.ttl.total_seconds()))
        await pipe.execute()
        log.debug(f"appended {message.get('type')} message to {key}")

    async def clear(self, session_key: str) -> None:
        redis = await self.manager.connect()
        await redis.delete(self._key(session_key))
