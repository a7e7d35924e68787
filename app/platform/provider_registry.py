from datetime import timedelta
from app.core.config import settings
from app.core.redis import RedisManager
from app.platform.ports.document_store import DocumentStorePort
from app.platform.adapters.store_memory import InMemoryDocumentStore
from app.platform.ports.chat_sessions import ChatSessionPort
from app.platform.adapters.chat_memory import InMemoryChatSessions
from app.platform.adapters.chat_redis import RedisChatSessions

class ProviderRegistry:
    _document_store: DocumentStorePort | None = None
    _chat_sessions: ChatSessionPort | None = None
    _redis: RedisManager | None = None

    @classmethod
    def document_store(cls) -> DocumentStorePort:
        if cls._document_store is None:
            if settings.STORE_PROVIDER == "postgres":
                # imported lazily so memory-only deployments do not need asyncpg
                from app.platform.adapters.store_postgres import PostgresDocumentStore
                cls._document_store = PostgresDocumentStore(settings.POSTGRES_DSN)
            else:
                cls._document_store = InMemoryDocumentStore()
        return cls._document_store

    @classmethod
    def chat_sessions(cls) -> ChatSessionPort:
        if cls._chat_sessions is None:
            if settings.CHAT_SESSION_PROVIDER == "redis":
                if not settings.REDIS_URL:
                    raise RuntimeError("REDIS_URL not configured")
                cls._redis = RedisManager(settings.REDIS_URL)
                cls._chat_sessions = RedisChatSessions(
                    cls._redis, ttl=timedelta(minutes=settings.CHAT_SESSION_TTL_MINUTES)
                )
            else:
                cls._chat_sessions = InMemoryChatSessions()
        return cls._chat_sessions

    @classmethod
    async def close(cls):
        if cls._redis is not None:
            await cls._redis.close()
        close = getattr(cls._document_store, "close", None)
        if close is not None:
            await close()

registry = ProviderRegistry()
