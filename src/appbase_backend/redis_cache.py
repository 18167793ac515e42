from aiocache import Cache

from appbase_backend.settings import settings

if settings.REDIS_HOST:
    _cache = Cache(
        Cache.REDIS,
        endpoint=settings.REDIS_HOST,
        port=settings.REDIS_PORT,
        password=settings.REDIS_PASSWORD if settings.REDIS_PASSWORD else None,
        pool_max_size=10,
        db=0
    )
else:
    # single-process fallback, counters are not shared between workers
    _cache = Cache(Cache.MEMORY)

async def get_cache_client() -> Cache:
    return _cache
