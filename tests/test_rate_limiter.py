"""Tests for the Redis-backed rate limiter"""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
import redis
from fastapi import HTTPException

from medibook import rate_limiter


@pytest.fixture(autouse=True)
def clear_memory_cache():
    rate_limiter.memory_cache.clear()
    yield
    rate_limiter.memory_cache.clear()


def _redis(stored=None, ttl=-2):
    client = MagicMock(spec=redis.Redis)
    client.get.return_value = stored
    client.ttl.return_value = ttl
    return client


def _request(ip="203.0.113.7", forwarded=None):
    headers = {"X-Forwarded-For": forwarded} if forwarded else {}
    return SimpleNamespace(client=SimpleNamespace(host=ip), headers=headers)


class TestCheckRateLimit:
    def test_allows_up_to_limit(self):
        client = _redis()

        results = [rate_limiter.check_rate_limit("booking:ip", 3, 60, client)[0] for _ in range(4)]

        assert results == [True, True, True, False]
        client.set.assert_called_with("booking:ip", 1, ex=60)

    def test_seeds_window_from_redis(self):
        client = _redis(stored="5", ttl=30)

        allowed, count, ttl = rate_limiter.check_rate_limit("booking:ip", 5, 60, client)

        assert not allowed
        assert count == 5
        assert 0 < ttl <= 30

    def test_redis_errors_fall_back_to_memory(self):
        client = _redis()
        client.get.side_effect = redis.ConnectionError("down")
        client.set.side_effect = redis.ConnectionError("down")

        assert rate_limiter.check_rate_limit("booking:ip", 1, 60, client)[0] is True
        assert rate_limiter.check_rate_limit("booking:ip", 1, 60, client)[0] is False


class TestRateLimitDependency:
    @pytest.mark.asyncio
    async def test_disabled_limiter_admits_everything(self):
        with patch.object(rate_limiter, "RATE_LIMIT_ENABLED", False):
            with patch.object(rate_limiter, "get_redis_client") as get_client:
                await rate_limiter.rate_limit_dependency(_request(), 1, 60, "booking")

        get_client.assert_not_called()

    @pytest.mark.asyncio
    async def test_fails_closed_when_redis_is_unreachable(self):
        with patch.object(rate_limiter, "RATE_LIMIT_ENABLED", True):
            with patch.object(
                rate_limiter, "get_redis_client", side_effect=redis.ConnectionError("down")
            ):
                with pytest.raises(HTTPException) as exc_info:
                    await rate_limiter.rate_limit_dependency(_request(), 1, 60, "booking")

        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_exceeding_limit_returns_429_keyed_by_forwarded_ip(self):
        client = _redis()
        limiter = rate_limiter.create_rate_limiter(limit=1, window_seconds=60, key_prefix="booking")

        with patch.object(rate_limiter, "RATE_LIMIT_ENABLED", True):
            with patch.object(rate_limiter, "get_redis_client", return_value=client):
                await limiter(_request(forwarded="198.51.100.1, 10.0.0.1"))
                with pytest.raises(HTTPException) as exc_info:
                    await limiter(_request(forwarded="198.51.100.1"))

        assert exc_info.value.status_code == 429
        assert exc_info.value.headers["Retry-After"]
        assert "booking:198.51.100.1" in rate_limiter.memory_cache
