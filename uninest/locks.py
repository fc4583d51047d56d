# Short-lived Redis locks that serialize check-then-insert sequences across processes.
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator
from uuid import uuid4

from .redis_client import get_redis

logger = logging.getLogger("uninest.locks")

# Delete the key only if it still holds our token
_RELEASE_SCRIPT = """
if redis.call('get', KEYS[1]) == ARGV[1] then
    return redis.call('del', KEYS[1])
else
    return 0
end
"""


@contextmanager
def redis_try_lock(key: str, ttl_ms: int = 5000) -> Iterator[bool]:
    """
    Try to take `key` with SET NX PX; yields whether the caller may proceed.

    - True when the lock was acquired, or when Redis is disabled/erroring.
    - False when another holder owns the key.

        with redis_try_lock(f"lock:inquiry:{property_id}:{student_id}") as locked:
            if not locked:
                raise BusyError()
            ...
    """
    r = get_redis()
    if r is None:
        yield True
        return

    token = uuid4().hex
    try:
        acquired = bool(r.set(key, token, nx=True, px=ttl_ms))
    except Exception as exc:
        logger.warning("redis_try_lock error (key=%s): %s", key, exc)
        yield True
        return

    try:
        yield acquired
    finally:
        if acquired:
            try:
                r.eval(_RELEASE_SCRIPT, 1, key, token)
            except Exception as exc:
                # The TTL releases it eventually
                logger.debug("redis_try_lock release error (key=%s): %s", key, exc)
