# Redis-backed fixed-window rate limiter for login, registration and write endpoints.
# Counters are per client IP under rl:uninest:{scope}:{ip}; no Redis means no limiting.
import logging
import os
from typing import Callable, Literal

from fastapi import Request

from .config import _to_int
from .errors import RateLimitedError
from .redis_client import get_redis

logger = logging.getLogger("uninest.rate_limit")

Scope = Literal["login", "register", "write"]

# Per-scope default caps per window; override with RATE_LIMIT_<SCOPE>_PER_WINDOW
_DEFAULT_LIMITS = {"login": 10, "register": 5, "write": 30}


def _window_seconds() -> int:
    return _to_int(os.getenv("RATE_LIMIT_WINDOW_SECONDS"), 60)


def _limit_for_scope(scope: Scope) -> int:
    return _to_int(os.getenv(f"RATE_LIMIT_{scope.upper()}_PER_WINDOW"), _DEFAULT_LIMITS[scope])


def _client_ip(request: Request) -> str:
    # Remote address only; X-Forwarded-For is not trusted here
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def rate_limit(scope: Scope) -> Callable[[Request], None]:
    """
    Build a dependency that caps requests per client IP within a fixed window.

    The first hit in a window sets the key's TTL; later hits share that expiry.
    Exceeding the cap raises 429 with a Retry-After header. Redis errors are
    logged and the request is let through.
    """
    window = _window_seconds()
    limit = _limit_for_scope(scope)

    def _dependency(request: Request) -> None:
        r = get_redis()
        if r is None:
            return

        ip = _client_ip(request)
        key = f"rl:uninest:{scope}:{ip}"
        try:
            current = r.incr(key, amount=1)
            if current == 1:
                r.expire(key, window)
            if current <= limit:
                return
            ttl = r.ttl(key)
        except Exception as exc:
            logger.warning("Rate limit skipped (scope=%s, ip=%s): %s", scope, ip, exc)
            return

        retry_after = ttl if isinstance(ttl, int) and ttl > 0 else window
        raise RateLimitedError(headers={"Retry-After": str(retry_after)})

    return _dependency
