# Optional Redis connection shared by the rate limiter and the inquiry locks.
# Enabled with REDIS_ENABLED; every caller must cope with get_redis() returning None.
import logging
import os

from .config import _truthy

_logger = logging.getLogger("uninest.redis")


def is_redis_enabled() -> bool:
    return _truthy(os.getenv("REDIS_ENABLED", "false"))


# Cached client and a one-shot guard: after a failed connect this process stays without Redis.
_client = None
_initialized = False


def get_redis():
    """
    Return a connected Redis client, or None when Redis is disabled or unreachable.

    The first call connects and pings; failures are logged once and never raised,
    so rate limiting and locking degrade to no-ops instead of failing requests.
    """
    global _client, _initialized
    if not is_redis_enabled():
        return None
    if _client is not None:
        return _client
    if _initialized:
        return None

    url = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    _initialized = True
    try:
        import redis

        client = redis.Redis.from_url(
            url,
            socket_timeout=0.25,
            socket_connect_timeout=0.25,
            retry_on_timeout=False,
            health_check_interval=0,
        )
        client.ping()
    except Exception as exc:
        _logger.warning("Redis unavailable, continuing without it: %s", exc)
        return None

    _client = client
    _logger.info("Connected to Redis at %s", url)
    return _client


def reset_redis() -> None:
    """Forget the cached client (used on shutdown and by tests that toggle REDIS_ENABLED)."""
    global _client, _initialized
    if _client is not None:
        try:
            _client.close()
        except Exception as exc:
            _logger.debug("Redis close error: %s", exc)
    _client = None
    _initialized = False
