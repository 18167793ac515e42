import uuid

import pytest
from aiocache import Cache

from appbase_backend.auth.rate_limiter import RateLimiter
from appbase_backend.errors import RateLimitedError


@pytest.fixture
def limiter():
    return RateLimiter(Cache(Cache.MEMORY), namespace=f"test-{uuid.uuid4().hex}", limit=3, window_seconds=900)


class TestRateLimiter:

    @pytest.mark.asyncio
    async def test_allows_up_to_limit(self, limiter):
        assert [await limiter.hit("198.51.100.1") for _ in range(4)] == [True, True, True, False]

    @pytest.mark.asyncio
    async def test_check_raises_after_limit(self, limiter):
        for _ in range(3):
            await limiter.check("198.51.100.1")

        with pytest.raises(RateLimitedError):
            await limiter.check("198.51.100.1")

    @pytest.mark.asyncio
    async def test_identifiers_are_counted_separately(self, limiter):
        for _ in range(3):
            await limiter.check("198.51.100.1")

        await limiter.check("198.51.100.2")

    @pytest.mark.asyncio
    async def test_reset_clears_counter(self, limiter):
        for _ in range(3):
            await limiter.check("198.51.100.1")

        await limiter.reset("198.51.100.1")

        await limiter.check("198.51.100.1")
