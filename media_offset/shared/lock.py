import asyncio
from collections.abc import AsyncIterator, Hashable
from contextlib import asynccontextmanager

from loguru import logger


class KeyedLock:
    """In-process mutual exclusion keyed by resource (async).

    One holder per key at a time; different keys never block each other.
    Entries are dropped once no coroutine holds or waits on them.
    """

    def __init__(self, label: str = "lock"):
        self.label = label
        self._locks: dict[Hashable, asyncio.Lock] = {}
        self._waiters: dict[Hashable, int] = {}

    def locked(self, key: Hashable) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiters[key] = self._waiters.get(key, 0) + 1
        if lock.locked():
            logger.debug("Waiting for lock: label={} key={}", self.label, key)
        try:
            async with lock:
                logger.debug("Acquired lock: label={} key={}", self.label, key)
                yield
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                del self._waiters[key]
                del self._locks[key]
            logger.debug("Released lock: label={} key={}", self.label, key)
