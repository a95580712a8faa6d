"""
Per-item locks serializing the check-then-write section of bookings.

The local backend covers a single API process. Deployments running several
workers set RESERVATION_LOCK_BACKEND=redis so the lock lives in Redis.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional

import structlog
from redis.asyncio import Redis
from redis.exceptions import LockError, RedisError

from app.config import settings
from app.core.errors import InternalError
from app.services.items import ItemRef, lock_key

logger = structlog.get_logger()


class LocalItemLocks:
    """In-process asyncio locks keyed by item"""

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._waiters: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, ref: ItemRef) -> AsyncIterator[None]:
        key = lock_key(ref)
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                del self._waiters[key]
                del self._locks[key]


class RedisItemLocks:
    """Redis-backed locks shared by every API worker"""

    def __init__(self, redis: Redis, timeout: float, prefix: str = "reservation-lock"):
        self._redis = redis
        self._timeout = timeout
        self._prefix = prefix

    @asynccontextmanager
    async def hold(self, ref: ItemRef) -> AsyncIterator[None]:
        name = f"{self._prefix}:{lock_key(ref)}"
        lock = self._redis.lock(name, timeout=self._timeout, blocking_timeout=self._timeout)
        try:
            acquired = await lock.acquire()
        except RedisError as exc:
            logger.error("Could not acquire reservation lock", lock=name, error=str(exc))
            raise InternalError(f"Failed to lock {lock_key(ref)} for booking: {exc}") from exc
        if not acquired:
            logger.error("Timed out waiting for reservation lock", lock=name)
            raise InternalError(f"Timed out waiting to lock {lock_key(ref)} for booking")
        try:
            yield
        finally:
            try:
                await lock.release()
            except LockError:
                # Lock expired while held; the overlap constraint still guards the write
                logger.warning("Reservation lock expired before release", lock=name)


_item_locks: Optional[object] = None


def get_item_locks():
    """Process-wide lock manager for the configured backend"""
    global _item_locks
    if _item_locks is None:
        if settings.reservation_lock_backend == "redis":
            logger.info("Using Redis reservation locks", redis_url=settings.redis_url)
            _item_locks = RedisItemLocks(
                Redis.from_url(settings.redis_url),
                timeout=settings.reservation_lock_timeout_seconds,
            )
        else:
            _item_locks = LocalItemLocks()
    return _item_locks
