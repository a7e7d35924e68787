from redis import asyncio as aioredis


class RedisManager:
    def __init__(self, url: str):
        self.url = url
        self.redis = None

    async def connect(self):
        """Connect to Redis (called on FastAPI startup)."""
        if self.redis is None:
            self.redis = aioredis.from_url(
                self.url,
                encoding="utf-8",
                decode_responses=True
            )
        return self.redis

    async def close(self):
        """Close Redis connection."""
        if self.redis:
            await self.redis.aclose()
            self.redis = None
