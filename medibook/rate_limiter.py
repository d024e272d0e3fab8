"""
Hybrid in-memory + Redis rate limiting for booking and application endpoints
"""

import logging
import os
import time
from threading import Lock
from typing import Optional

import redis
from fastapi import HTTPException, Request, status

from .config import RATE_LIMIT_ENABLED

logger = logging.getLogger(__name__)

redis_client: Optional[redis.Redis] = None

# Format: {key: {'count': int, 'reset_time': int, 'last_redis_sync': int}}
memory_cache: dict[str, dict] = {}
cache_lock = Lock()

REDIS_SYNC_INTERVAL = 10  # seconds between pushes of a window's count to Redis


def get_redis_client() -> redis.Redis:
    """Get or create the shared Redis client"""
    global redis_client

    if redis_client is None:
        redis_url = os.getenv("REDIS_URL")
        options = {
            "decode_responses": True,
            "socket_connect_timeout": 15,
            "socket_timeout": 30,
            "retry_on_timeout": True,
            "health_check_interval": 30,
        }

        try:
            if redis_url:
                logger.info("📡 Connecting to Redis via REDIS_URL")
                client = redis.from_url(redis_url, max_connections=20, **options)
            else:
                redis_host = os.getenv("REDIS_HOST", "localhost")
                redis_port = int(os.getenv("REDIS_PORT", "6379"))
                logger.info(f"📡 Connecting to Redis at {redis_host}:{redis_port}")
                client = redis.Redis(
                    host=redis_host,
                    port=redis_port,
                    password=os.getenv("REDIS_PASSWORD"),
                    db=int(os.getenv("REDIS_DB", "0")),
                    ssl=os.getenv("REDIS_SSL", "false").lower() == "true",
                    **options,
                )
            client.ping()
        except Exception as e:
            logger.error(f"❌ Failed to connect to Redis: {str(e)}")
            raise

        redis_client = client
        logger.info("Redis connected successfully")

    return redis_client


def check_rate_limit(
    key: str, limit: int, window_seconds: int, client: redis.Redis
) -> tuple[bool, int, int]:
    """Count a request against a fixed window.

    Counts live in process memory and are pushed to Redis every
    REDIS_SYNC_INTERVAL seconds; a window unknown to this process is seeded
    from Redis so restarts and other workers share the budget.

    Returns:
        Tuple of (is_allowed, current_count, ttl_seconds)
    """
    current_time = int(time.time())

    with cache_lock:
        entry = memory_cache.get(key)
        if entry is None:
            entry = {"count": 0, "reset_time": current_time + window_seconds, "last_redis_sync": 0}
            try:
                stored = client.get(key)
                stored_ttl = client.ttl(key)
                if stored and stored_ttl > 0:
                    entry = {
                        "count": int(stored),
                        "reset_time": current_time + stored_ttl,
                        "last_redis_sync": current_time,
                    }
            except redis.RedisError as e:
                logger.warning(f"⚠️ Failed to load {key} from Redis, using memory only: {e}")
            memory_cache[key] = entry

        if current_time >= entry["reset_time"]:
            entry["count"] = 0
            entry["reset_time"] = current_time + window_seconds
            entry["last_redis_sync"] = 0

        is_allowed = entry["count"] < limit
        if is_allowed:
            entry["count"] += 1

        if current_time - entry["last_redis_sync"] >= REDIS_SYNC_INTERVAL:
            try:
                client.set(key, entry["count"], ex=window_seconds)
                entry["last_redis_sync"] = current_time
            except redis.RedisError as e:
                logger.warning(f"⚠️ Failed to sync {key} to Redis: {e}")

        return is_allowed, entry["count"], max(0, entry["reset_time"] - current_time)


async def rate_limit_dependency(
    request: Request, limit: int, window_seconds: int, key_prefix: str = "rate_limit"
):
    """Per-client-IP rate limit; denies the request when Redis is unreachable"""
    if not RATE_LIMIT_ENABLED:
        return

    client_ip = request.client.host if request.client else "unknown"
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        client_ip = forwarded.split(",")[0].strip()
    key = f"{key_prefix}:{client_ip}"

    try:
        is_allowed, current_count, ttl = check_rate_limit(
            key, limit, window_seconds, get_redis_client()
        )
    except Exception as e:
        logger.error(f"❌ Rate limiting error: {str(e)}")
        logger.warning("🔒 Denying request due to rate limiting error (fail-closed mode)")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Rate limiting service temporarily unavailable",
        ) from e

    if not is_allowed:
        logger.warning(f"🚫 Rate limit EXCEEDED for {key} - {current_count}/{limit} requests used")
        raise HTTPException(
            status_code=429,
            detail={
                "message": f"Rate limit exceeded. Maximum {limit} requests per {window_seconds} seconds.",
                "retry_after": ttl,
            },
            headers={"Retry-After": str(ttl)},
        )


def create_rate_limiter(limit: int, window_seconds: int, key_prefix: str = "rate_limit"):
    """
    Create a rate limiter dependency with specific parameters

    Example usage:
        limit_bookings = create_rate_limiter(limit=20, window_seconds=60, key_prefix="booking")

        @router.post("")
        async def book(data: BookingRequest, _: None = Depends(limit_bookings)):
            ...
    """

    async def rate_limiter(request: Request):
        return await rate_limit_dependency(request, limit, window_seconds, key_prefix)

    return rate_limiter
