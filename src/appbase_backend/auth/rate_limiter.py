import logging
from aiocache.base import BaseCache

from appbase_backend.errors import RateLimitedError

logger = logging.getLogger(__name__)


class RateLimiter:
    """Fixed-window request counter on top of an aiocache backend.

    The window starts with the first hit for a key and lasts ``window_seconds``.
    """

    def __init__(self, cache: BaseCache, namespace: str, limit: int, window_seconds: int):
        self.cache = cache
        self.namespace = namespace
        self.limit = limit
        self.window_seconds = window_seconds

    def _key(self, identifier: str) -> str:
        return f"ratelimit:{self.namespace}:{identifier}"

    async def hit(self, identifier: str) -> bool:
        """Count one request. Returns False once the limit is exceeded."""
        key = self._key(identifier)

        count = await self.cache.increment(key, 1)
        if count == 1:
            await self.cache.expire(key, self.window_seconds)

        return count <= self.limit

    async def check(self, identifier: str) -> None:
        if not await self.hit(identifier):
            logger.warning(f"Rate limit exceeded for {self.namespace} from {identifier}")
            raise RateLimitedError()

    async def reset(self, identifier: str) -> None:
        await self.cache.delete(self._key(identifier))
